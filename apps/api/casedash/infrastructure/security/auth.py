import re
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Dict, Optional

from jose import JWTError, jwt
from passlib.context import CryptContext

from casedash.core.domain.auth import TokenClaims

TOKEN_TTL = timedelta(hours=12)
DEFAULT_ALGORITHM = "HS256"
BCRYPT_ROUNDS = 12

MIN_PASSWORD_LENGTH = 12
_DIGIT = re.compile(r"[0-9]")
_SYMBOL = re.compile(r"[^A-Za-z0-9]")


class InvalidToken(Exception):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@lru_cache(maxsize=None)
def _pwd_context(rounds: int) -> CryptContext:
    return CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)


def hash_password(password: str, rounds: int = BCRYPT_ROUNDS) -> str:
    if not password:
        raise ValueError("password_blank")
    return _pwd_context(rounds).hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    if not password or not password_hash:
        return False
    try:
        return _pwd_context(BCRYPT_ROUNDS).verify(password, password_hash)
    except ValueError:
        # Unrecognised or corrupt hash in the store.
        return False


def meets_registration_policy(password: str) -> bool:
    return len(password) >= MIN_PASSWORD_LENGTH


def meets_change_policy(password: str) -> bool:
    """At least 12 characters with one digit and one non-alphanumeric symbol."""
    return (
        len(password) >= MIN_PASSWORD_LENGTH
        and _DIGIT.search(password) is not None
        and _SYMBOL.search(password) is not None
    )


def create_access_token(
    claims: TokenClaims,
    secret: str,
    ttl: Optional[timedelta] = None,
    algorithm: str = DEFAULT_ALGORITHM,
) -> str:
    if not secret:
        raise ValueError("jwt_secret_blank")
    now = _utcnow()
    expire = now + (ttl if ttl is not None else TOKEN_TTL)
    to_encode: Dict[str, Any] = {
        "user_id": claims.user_id,
        "email": claims.email,
        "full_name": claims.full_name,
        "roles": list(claims.roles),
        "iat": int(now.timestamp()),
        "exp": int(expire.timestamp()),
    }
    return jwt.encode(to_encode, secret, algorithm=algorithm)


def decode_access_token(token: str, secret: str, algorithm: str = DEFAULT_ALGORITHM) -> TokenClaims:
    """Verify signature and expiry, then rebuild the claim set.

    Raises InvalidToken for every failure mode so callers never need to know
    which check tripped.
    """
    if not token or not secret:
        raise InvalidToken("token_or_secret_blank")
    try:
        payload = jwt.decode(
            token,
            secret,
            algorithms=[algorithm],
            options={"require_exp": True, "require_iat": True},
        )
    except JWTError as exc:
        raise InvalidToken(str(exc)) from exc

    user_id = payload.get("user_id")
    roles = payload.get("roles")
    if not isinstance(user_id, int) or isinstance(user_id, bool):
        raise InvalidToken("user_id_missing")
    if not isinstance(roles, list) or not all(isinstance(r, str) for r in roles):
        raise InvalidToken("roles_malformed")
    return TokenClaims(
        user_id=user_id,
        email=str(payload.get("email") or ""),
        full_name=str(payload.get("full_name") or ""),
        roles=roles,
    )
