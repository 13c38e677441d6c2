from datetime import date
from typing import Any, Dict, List, Optional

from psycopg_pool import AsyncConnectionPool

CLIENT_SEARCH_LIMIT = 20


def _like_pattern(q: str) -> str:
    escaped = q.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


async def search_clients(pool: AsyncConnectionPool, q: Optional[str]) -> List[Dict[str, Any]]:
    """Case-insensitive substring match over key, first and last name.

    A blank query returns nothing instead of scanning the table.
    """
    term = (q or "").strip()
    if not term:
        return []

    like = _like_pattern(term)
    async with pool.connection() as conn, conn.cursor() as cur:
        await cur.execute(
            """
            SELECT client_id, external_client_key, first_name, last_name
            FROM clients
            WHERE is_active = TRUE
              AND (
                external_client_key ILIKE %(like)s
                OR first_name ILIKE %(like)s
                OR last_name ILIKE %(like)s
              )
            ORDER BY last_name, first_name
            LIMIT %(limit)s
            """,
            {"like": like, "limit": CLIENT_SEARCH_LIMIT},
        )
        return await cur.fetchall()


async def create_client(
    pool: AsyncConnectionPool,
    *,
    external_client_key: str,
    first_name: str,
    last_name: str,
    dob: Optional[date] = None,
    gender: Optional[str] = None,
    housing_status: Optional[str] = None,
) -> int:
    async with pool.connection() as conn, conn.cursor() as cur:
        await cur.execute(
            """
            INSERT INTO clients (external_client_key, first_name, last_name, dob, gender, housing_status)
            VALUES (%(external_client_key)s, %(first_name)s, %(last_name)s, %(dob)s, %(gender)s, %(housing_status)s)
            RETURNING client_id
            """,
            {
                "external_client_key": external_client_key,
                "first_name": first_name,
                "last_name": last_name,
                "dob": dob,
                "gender": gender,
                "housing_status": housing_status,
            },
        )
        row = await cur.fetchone()
        await conn.commit()
    return row["client_id"]


async def update_client(
    pool: AsyncConnectionPool,
    client_id: int,
    *,
    external_client_key: str,
    first_name: str,
    last_name: str,
    dob: Optional[date] = None,
    gender: Optional[str] = None,
    housing_status: Optional[str] = None,
) -> int:
    """Overwrite every editable column; returns the number of rows touched."""
    async with pool.connection() as conn, conn.cursor() as cur:
        await cur.execute(
            """
            UPDATE clients
            SET external_client_key = %(external_client_key)s,
                first_name = %(first_name)s,
                last_name = %(last_name)s,
                dob = %(dob)s,
                gender = %(gender)s,
                housing_status = %(housing_status)s
            WHERE client_id = %(client_id)s
            """,
            {
                "client_id": client_id,
                "external_client_key": external_client_key,
                "first_name": first_name,
                "last_name": last_name,
                "dob": dob,
                "gender": gender,
                "housing_status": housing_status,
            },
        )
        updated = cur.rowcount
        await conn.commit()
    return updated
