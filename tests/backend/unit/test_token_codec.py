from datetime import timedelta

import pytest
from jose import jwt

from casedash.core.domain.auth import TokenClaims
from casedash.infrastructure.security import auth as security

SECRET = "s" * 32
OTHER_SECRET = "o" * 32


def _claims(**overrides) -> TokenClaims:
    data = {
        "user_id": 42,
        "email": "director@example.org",
        "full_name": "Dana Director",
        "roles": ["ProgramDirector", "Staff"],
    }
    data.update(overrides)
    return TokenClaims(**data)


def test_token_round_trip_preserves_identity():
    claims = _claims()
    token = security.create_access_token(claims, SECRET)

    assert security.decode_access_token(token, SECRET) == claims


def test_token_expires_twelve_hours_after_issue():
    token = security.create_access_token(_claims(), SECRET)
    payload = jwt.get_unverified_claims(token)

    assert payload["exp"] - payload["iat"] == 12 * 60 * 60
    assert set(payload) == {"user_id", "email", "full_name", "roles", "iat", "exp"}


def test_token_signed_with_other_secret_is_rejected():
    token = security.create_access_token(_claims(), OTHER_SECRET)
    with pytest.raises(security.InvalidToken):
        security.decode_access_token(token, SECRET)


def test_expired_token_is_rejected():
    token = security.create_access_token(_claims(), SECRET, ttl=timedelta(seconds=-5))
    with pytest.raises(security.InvalidToken):
        security.decode_access_token(token, SECRET)


@pytest.mark.parametrize("token", ["", "not-a-token", "a.b.c"])
def test_malformed_token_is_rejected(token):
    with pytest.raises(security.InvalidToken):
        security.decode_access_token(token, SECRET)


def test_token_without_roles_claim_is_rejected():
    token = jwt.encode(
        {"user_id": 1, "email": "x@example.org", "iat": 1, "exp": 4102444800},
        SECRET,
        algorithm="HS256",
    )
    with pytest.raises(security.InvalidToken):
        security.decode_access_token(token, SECRET)


def test_token_with_non_integer_user_id_is_rejected():
    token = jwt.encode(
        {"user_id": "1", "roles": [], "iat": 1, "exp": 4102444800},
        SECRET,
        algorithm="HS256",
    )
    with pytest.raises(security.InvalidToken):
        security.decode_access_token(token, SECRET)


def test_blank_secret_cannot_sign():
    with pytest.raises(ValueError):
        security.create_access_token(_claims(), "")
