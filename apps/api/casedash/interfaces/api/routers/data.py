import logging

from fastapi import APIRouter, Depends
from psycopg_pool import AsyncConnectionPool

from casedash.core.domain.auth import TokenClaims
from casedash.core.domain.user import Role
from casedash.core.errors import BadRequest
from casedash.infrastructure.db import connection as db
from casedash.infrastructure.db import service_repository
from casedash.interfaces.api.deps import require_any_role
from casedash.interfaces.api.schemas import AddServiceRequest, AddServiceResponse

router = APIRouter(prefix="/data", tags=["data-entry"])
logger = logging.getLogger("data_entry")


@router.post("/add-service", response_model=AddServiceResponse)
async def add_service(
    payload: AddServiceRequest,
    pool: AsyncConnectionPool = Depends(db.get_pool),
    user: TokenClaims = Depends(require_any_role(Role.staff, Role.admin)),
) -> AddServiceResponse:
    try:
        client_service_id = await service_repository.add_client_service(pool, **payload.model_dump())
    except service_repository.InvalidReference as exc:
        logger.warning("Service entry rejected: unknown reference %s", exc)
        raise BadRequest("client_id, program_id, staff_id or service_id does not exist")
    logger.info(
        "Service recorded",
        extra={"client_service_id": client_service_id, "user_id": user.user_id},
    )
    return AddServiceResponse(client_service_id=client_service_id)
