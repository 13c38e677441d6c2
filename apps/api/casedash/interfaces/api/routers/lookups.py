from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query
from psycopg_pool import AsyncConnectionPool

from casedash.core.domain.auth import TokenClaims
from casedash.infrastructure.db import client_repository, lookup_repository
from casedash.infrastructure.db import connection as db
from casedash.interfaces.api.deps import get_current_user

router = APIRouter(prefix="/lookups", tags=["lookups"])


@router.get("/programs")
async def programs(
    pool: AsyncConnectionPool = Depends(db.get_pool),
    _: TokenClaims = Depends(get_current_user),
) -> List[Dict[str, Any]]:
    return await lookup_repository.list_programs(pool)


@router.get("/staff")
async def staff(
    pool: AsyncConnectionPool = Depends(db.get_pool),
    _: TokenClaims = Depends(get_current_user),
) -> List[Dict[str, Any]]:
    return await lookup_repository.list_staff(pool)


@router.get("/services")
async def services(
    pool: AsyncConnectionPool = Depends(db.get_pool),
    _: TokenClaims = Depends(get_current_user),
) -> List[Dict[str, Any]]:
    return await lookup_repository.list_services(pool)


@router.get("/clients")
async def clients(
    q: Optional[str] = Query(default=None),
    pool: AsyncConnectionPool = Depends(db.get_pool),
    _: TokenClaims = Depends(get_current_user),
) -> List[Dict[str, Any]]:
    return await client_repository.search_clients(pool, q)
