from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from psycopg_pool import AsyncConnectionPool

from casedash.core.domain.auth import TokenClaims
from casedash.infrastructure.db import connection as db
from casedash.infrastructure.db import system_repository
from casedash.interfaces.api.deps import get_current_user

router = APIRouter(tags=["system"])


@router.get("/health")
async def health(pool: AsyncConnectionPool = Depends(db.get_pool)) -> dict:
    """
    Liveness plus a round-trip to the store; no token required.
    """
    return {"ok": await system_repository.ping(pool)}


@router.get("/db-test")
async def db_test(
    pool: AsyncConnectionPool = Depends(db.get_pool),
    _: TokenClaims = Depends(get_current_user),
) -> List[Dict[str, Any]]:
    return await system_repository.list_tables(pool)
