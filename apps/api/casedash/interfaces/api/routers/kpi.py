from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from psycopg_pool import AsyncConnectionPool

from casedash.core.domain.auth import TokenClaims
from casedash.core.domain.user import Role
from casedash.infrastructure.db import connection as db
from casedash.infrastructure.db import kpi_repository
from casedash.interfaces.api.deps import require_any_role

router = APIRouter(prefix="/kpi", tags=["kpi"])

executive_access = require_any_role(Role.executive, Role.admin)
program_access = require_any_role(Role.program_director, Role.executive, Role.admin)


@router.get("/org-monthly")
async def org_monthly(
    pool: AsyncConnectionPool = Depends(db.get_pool),
    _: TokenClaims = Depends(executive_access),
) -> List[Dict[str, Any]]:
    return await kpi_repository.org_monthly(pool)


@router.get("/program-monthly")
async def program_monthly(
    pool: AsyncConnectionPool = Depends(db.get_pool),
    _: TokenClaims = Depends(program_access),
) -> List[Dict[str, Any]]:
    return await kpi_repository.program_monthly(pool)


@router.get("/staff-caseload")
async def staff_caseload(
    pool: AsyncConnectionPool = Depends(db.get_pool),
    _: TokenClaims = Depends(executive_access),
) -> List[Dict[str, Any]]:
    return await kpi_repository.staff_caseload(pool)
