import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException, Request, status
from psycopg_pool import AsyncConnectionPool
from starlette.concurrency import run_in_threadpool

from casedash.config import Settings
from casedash.core.domain.auth import TokenClaims
from casedash.core.errors import BadRequest, Conflict, ServerError, Unauthorized
from casedash.infrastructure.db import connection as db
from casedash.infrastructure.db import user_repository
from casedash.infrastructure.security import auth as security
from casedash.infrastructure.security import rate_limit
from casedash.interfaces.api.deps import get_current_user, get_settings
from casedash.interfaces.api.schemas import (
    BootstrapAdminRequest,
    BootstrapAdminResponse,
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    OkResponse,
    RegisterRequest,
    UserPublic,
)

router = APIRouter(tags=["auth"])
logger = logging.getLogger("auth")

INVALID_CREDENTIALS = "Invalid credentials"


async def _enforce_login_rate_limit(request: Request, settings: Settings) -> None:
    ip = request.client.host if request.client else "unknown"
    try:
        await rate_limit.enforce(
            "login",
            ip,
            settings.login_rate_limit,
            settings.login_rate_window_seconds,
            redis_url=settings.rate_limit_redis_url,
        )
    except rate_limit.RateLimitExceeded:
        logger.warning("Login throttled", extra={"ip": ip})
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many login attempts, try again later.",
        )


@router.post("/bootstrap-admin", response_model=BootstrapAdminResponse)
async def bootstrap_admin(
    payload: BootstrapAdminRequest,
    pool: AsyncConnectionPool = Depends(db.get_pool),
    settings: Settings = Depends(get_settings),
) -> BootstrapAdminResponse:
    password_hash = await run_in_threadpool(
        security.hash_password, payload.password, settings.bcrypt_rounds
    )
    try:
        user_id = await user_repository.bootstrap_admin(
            pool,
            email=payload.email,
            full_name=payload.full_name,
            password_hash=password_hash,
        )
    except user_repository.UserAlreadyExists:
        raise Conflict("User already exists")
    except user_repository.RoleNotFound:
        logger.error("Bootstrap failed: Admin role missing from app_roles")
        raise ServerError("Admin role not found")
    except Exception as exc:
        logger.exception("Bootstrap failed", extra={"email": payload.email})
        raise ServerError("bootstrap failed") from exc
    return BootstrapAdminResponse(user_id=user_id)


@router.post("/register", response_model=OkResponse, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    pool: AsyncConnectionPool = Depends(db.get_pool),
    settings: Settings = Depends(get_settings),
) -> OkResponse:
    if not security.meets_registration_policy(payload.password):
        raise BadRequest(f"Password must be at least {security.MIN_PASSWORD_LENGTH} characters")

    try:
        taken = await user_repository.email_registered(pool, payload.email)
    except Exception as exc:
        logger.exception("Registration failed", extra={"email": payload.email})
        raise ServerError() from exc
    if taken:
        logger.warning("Registration blocked: email already registered", extra={"email": payload.email})
        raise Conflict("Email already registered")

    # create_user repeats the check inside its transaction for concurrent signups.
    password_hash = await run_in_threadpool(
        security.hash_password, payload.password, settings.bcrypt_rounds
    )
    try:
        user_id = await user_repository.create_user(
            pool,
            email=payload.email,
            full_name=payload.full_name,
            password_hash=password_hash,
            role_id=settings.default_role_id,
        )
    except user_repository.UserAlreadyExists:
        logger.warning("Registration blocked: email already registered", extra={"email": payload.email})
        raise Conflict("Email already registered")
    except Exception as exc:
        logger.exception("Registration failed", extra={"email": payload.email})
        raise ServerError() from exc

    logger.info("User registered", extra={"user_id": user_id, "email": payload.email})
    return OkResponse()


@router.post("/login", response_model=LoginResponse)
async def login(
    payload: LoginRequest,
    request: Request,
    pool: AsyncConnectionPool = Depends(db.get_pool),
    settings: Settings = Depends(get_settings),
) -> LoginResponse:
    await _enforce_login_rate_limit(request, settings)
    try:
        user = await user_repository.get_user_with_roles_by_email(pool, payload.email)
        # Unknown, inactive and wrong-password accounts all get the same answer.
        if user is None or not user.is_active:
            logger.warning("Login failed: invalid credentials", extra={"email": payload.email})
            raise Unauthorized(INVALID_CREDENTIALS)

        ok = await run_in_threadpool(security.verify_password, payload.password, user.password_hash)
        if not ok:
            logger.warning("Login failed: invalid credentials", extra={"email": payload.email})
            raise Unauthorized(INVALID_CREDENTIALS)

        await user_repository.touch_last_login(pool, user.user_id)
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Login failed", extra={"email": payload.email})
        raise ServerError() from exc

    claims = TokenClaims(
        user_id=user.user_id,
        email=user.email,
        full_name=user.full_name,
        roles=list(user.roles),
    )
    token = security.create_access_token(
        claims,
        settings.jwt_secret,
        ttl=timedelta(hours=settings.jwt_expire_hours),
        algorithm=settings.jwt_algorithm,
    )
    logger.info(
        "Login success",
        extra={
            "user_id": user.user_id,
            "ip": request.client.host if request.client else "unknown",
        },
    )
    return LoginResponse(
        token=token,
        user=UserPublic(
            user_id=user.user_id,
            email=user.email,
            full_name=user.full_name,
            roles=list(user.roles),
        ),
    )


@router.post("/change-password", response_model=OkResponse)
async def change_password(
    payload: ChangePasswordRequest,
    current_user: TokenClaims = Depends(get_current_user),
    pool: AsyncConnectionPool = Depends(db.get_pool),
    settings: Settings = Depends(get_settings),
) -> OkResponse:
    if not security.meets_change_policy(payload.new_password):
        raise BadRequest(
            "Password must be at least 12 characters and include at least 1 number and 1 symbol"
        )

    try:
        user = await user_repository.get_user_by_id(pool, current_user.user_id)
        if user is None or not user.is_active:
            raise Unauthorized()

        ok = await run_in_threadpool(
            security.verify_password, payload.current_password, user.password_hash
        )
        if not ok:
            raise Unauthorized("Current password is incorrect")

        new_hash = await run_in_threadpool(
            security.hash_password, payload.new_password, settings.bcrypt_rounds
        )
        await user_repository.update_password_hash(pool, user.user_id, new_hash)
    except HTTPException:
        raise
    except Exception as exc:
        logger.exception("Password change failed", extra={"user_id": current_user.user_id})
        raise ServerError() from exc

    logger.info("Password changed", extra={"user_id": current_user.user_id})
    return OkResponse()


@router.get("/me", response_model=UserPublic)
async def me(current_user: TokenClaims = Depends(get_current_user)) -> UserPublic:
    return UserPublic(
        user_id=current_user.user_id,
        email=current_user.email,
        full_name=current_user.full_name,
        roles=list(current_user.roles),
    )
