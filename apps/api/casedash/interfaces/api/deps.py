"""Request guards shared by the routers.

Endpoints compose them in order: ``get_current_user`` authenticates the
bearer token and ``require_any_role`` authorizes the decoded identity.
"""

import logging
from enum import Enum
from typing import Callable, Optional, Union

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from casedash.config import Settings
from casedash.core.domain.auth import TokenClaims
from casedash.core.errors import Forbidden, ServerError, Unauthorized
from casedash.infrastructure.security import auth as security

bearer_scheme = HTTPBearer(auto_error=False)
logger = logging.getLogger("auth")


def get_settings(request: Request) -> Settings:
    settings = getattr(request.app.state, "settings", None)
    if settings is None:
        raise ServerError("server_config_missing")
    return settings


def get_current_user(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    settings: Settings = Depends(get_settings),
) -> TokenClaims:
    if credentials is None or not credentials.credentials:
        raise Unauthorized("Missing token")

    try:
        claims = security.decode_access_token(
            credentials.credentials,
            settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
        )
    except security.InvalidToken as exc:
        logger.info("Token rejected: %s", exc)
        raise Unauthorized("Invalid token") from exc

    request.state.user = claims
    return claims


def require_any_role(*allowed: Union[str, Enum]) -> Callable[..., TokenClaims]:
    """Build a guard that passes when the identity holds at least one allowed role."""
    allowed_names = frozenset(r.value if isinstance(r, Enum) else str(r) for r in allowed)

    def _guard(user: TokenClaims = Depends(get_current_user)) -> TokenClaims:
        if not user.has_any_role(allowed_names):
            logger.info(
                "Role check failed",
                extra={"user_id": user.user_id, "allowed": sorted(allowed_names)},
            )
            raise Forbidden()
        return user

    return _guard
