"""Read-only access to the precomputed KPI views.

The views are maintained outside this service. Every query uses a fixed
ordering so repeated calls page through rows the same way.

v_exec_org_monthly holds one row per month_start, so the month alone is a
total order there. The other views break ties on a name column.
"""

from typing import Any, Dict, List

from psycopg_pool import AsyncConnectionPool

ORG_MONTHLY_LIMIT = 24
PROGRAM_MONTHLY_LIMIT = 500


async def org_monthly(pool: AsyncConnectionPool) -> List[Dict[str, Any]]:
    async with pool.connection() as conn, conn.cursor() as cur:
        await cur.execute(
            """
            SELECT *
            FROM v_exec_org_monthly
            ORDER BY month_start DESC
            LIMIT %(limit)s
            """,
            {"limit": ORG_MONTHLY_LIMIT},
        )
        return await cur.fetchall()


async def program_monthly(pool: AsyncConnectionPool) -> List[Dict[str, Any]]:
    async with pool.connection() as conn, conn.cursor() as cur:
        await cur.execute(
            """
            SELECT *
            FROM v_program_monthly
            ORDER BY month_start DESC, program_name ASC
            LIMIT %(limit)s
            """,
            {"limit": PROGRAM_MONTHLY_LIMIT},
        )
        return await cur.fetchall()


async def staff_caseload(pool: AsyncConnectionPool) -> List[Dict[str, Any]]:
    async with pool.connection() as conn, conn.cursor() as cur:
        await cur.execute(
            """
            SELECT *
            FROM v_staff_caseload_active
            ORDER BY active_caseload DESC, full_name ASC
            """
        )
        return await cur.fetchall()
