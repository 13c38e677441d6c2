import logging
from typing import Optional

from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool

from casedash.config import Settings

logger = logging.getLogger("db")

pool: Optional[AsyncConnectionPool] = None


async def init_pool(settings: Settings) -> None:
    global pool
    if pool is not None:
        return

    pool = AsyncConnectionPool(
        conninfo=settings.conninfo,
        min_size=settings.db_pool_min_size,
        max_size=settings.db_pool_max_size,
        # Callers queue for a free connection up to this many seconds.
        timeout=settings.db_pool_timeout,
        # Dict rows keep the response payload simple.
        kwargs={"row_factory": dict_row},
        open=False,
    )
    await pool.open()
    logger.info(
        "Connection pool opened (min=%s, max=%s)",
        settings.db_pool_min_size,
        settings.db_pool_max_size,
    )


async def close_pool() -> None:
    global pool
    if pool is not None:
        await pool.close()
        pool = None
        logger.info("Connection pool closed")


def get_pool() -> AsyncConnectionPool:
    if pool is None:
        raise RuntimeError("Database pool is not initialized")
    return pool
