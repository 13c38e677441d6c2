import logging

from fastapi import APIRouter, Depends, Path
from psycopg_pool import AsyncConnectionPool

from casedash.core.domain.auth import TokenClaims
from casedash.core.domain.user import Role
from casedash.core.errors import BadRequest, ServerError
from casedash.infrastructure.db import client_repository
from casedash.infrastructure.db import connection as db
from casedash.interfaces.api.deps import require_any_role
from casedash.interfaces.api.schemas import ClientCreated, ClientIn, ClientUpdated

router = APIRouter(prefix="/clients", tags=["clients"])
logger = logging.getLogger("clients")

case_worker_access = require_any_role(Role.staff, Role.admin)


@router.post("", response_model=ClientCreated)
async def create_client(
    payload: ClientIn,
    pool: AsyncConnectionPool = Depends(db.get_pool),
    user: TokenClaims = Depends(case_worker_access),
) -> ClientCreated:
    try:
        client_id = await client_repository.create_client(pool, **payload.model_dump())
    except Exception as exc:
        logger.exception("Create client failed", extra={"user_id": user.user_id})
        raise ServerError("Failed to create client") from exc
    logger.info("Client created", extra={"client_id": client_id, "user_id": user.user_id})
    return ClientCreated(client_id=client_id)


@router.put("/{client_id}", response_model=ClientUpdated)
async def update_client(
    payload: ClientIn,
    client_id: int = Path(...),
    pool: AsyncConnectionPool = Depends(db.get_pool),
    user: TokenClaims = Depends(case_worker_access),
) -> ClientUpdated:
    if client_id <= 0:
        raise BadRequest("Invalid client id")
    try:
        await client_repository.update_client(pool, client_id, **payload.model_dump())
    except Exception as exc:
        logger.exception("Update client failed", extra={"client_id": client_id})
        raise ServerError("Failed to update client") from exc
    logger.info("Client updated", extra={"client_id": client_id, "user_id": user.user_id})
    return ClientUpdated(client_id=client_id)
