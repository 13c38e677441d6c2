from typing import Any, Dict, List

from psycopg_pool import AsyncConnectionPool


async def ping(pool: AsyncConnectionPool) -> bool:
    async with pool.connection() as conn, conn.cursor() as cur:
        await cur.execute("SELECT 1 AS ok")
        row = await cur.fetchone()
    return bool(row) and row["ok"] == 1


async def list_tables(pool: AsyncConnectionPool) -> List[Dict[str, Any]]:
    async with pool.connection() as conn, conn.cursor() as cur:
        await cur.execute(
            """
            SELECT table_name, table_type
            FROM information_schema.tables
            WHERE table_schema = 'public'
            ORDER BY table_name
            """
        )
        return await cur.fetchall()
