from typing import Any, Dict, List

from psycopg_pool import AsyncConnectionPool


async def _fetch_all(pool: AsyncConnectionPool, query: str) -> List[Dict[str, Any]]:
    async with pool.connection() as conn, conn.cursor() as cur:
        await cur.execute(query)
        return await cur.fetchall()


async def list_programs(pool: AsyncConnectionPool) -> List[Dict[str, Any]]:
    return await _fetch_all(
        pool,
        "SELECT program_id, program_name FROM programs WHERE is_active = TRUE ORDER BY program_name",
    )


async def list_staff(pool: AsyncConnectionPool) -> List[Dict[str, Any]]:
    return await _fetch_all(
        pool,
        "SELECT staff_id, full_name FROM staff WHERE is_active = TRUE ORDER BY full_name",
    )


async def list_services(pool: AsyncConnectionPool) -> List[Dict[str, Any]]:
    return await _fetch_all(
        pool,
        "SELECT service_id, service_type FROM services ORDER BY service_type",
    )
