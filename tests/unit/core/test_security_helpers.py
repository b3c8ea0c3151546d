from __future__ import annotations

from datetime import timedelta

import jwt
import pytest

from backoffice_api.core.security import hash_password, verify_password
from backoffice_api.core.security.tokens import (
    SESSION_TOKEN_TYPE,
    create_session_token,
    decode_token,
    encode_token,
)

SECRET = "unit-test-secret-that-is-long-enough-1234"


def test_hash_and_verify_round_trip() -> None:
    hashed = hash_password("s3cret-value")

    assert hashed.startswith("scrypt$")
    assert verify_password("s3cret-value", hashed) is True
    assert verify_password("wrong-value", hashed) is False


def test_hashes_are_salted() -> None:
    assert hash_password("same-password") != hash_password("same-password")


@pytest.mark.parametrize("stored", [None, "", "bcrypt$abc", "scrypt$not$a$valid$hash"])
def test_verify_rejects_unusable_hashes(stored: str | None) -> None:
    assert verify_password("anything", stored) is False


def test_blank_password_cannot_be_hashed() -> None:
    with pytest.raises(ValueError):
        hash_password("   ")


def test_session_token_carries_identity_and_csrf() -> None:
    token = create_session_token(
        user_id=42,
        session_id="sid-1",
        csrf_token="csrf-1",
        secret=SECRET,
        algorithm="HS256",
        ttl=timedelta(minutes=5),
    )

    payload = decode_token(token, secret=SECRET, algorithm="HS256", token_type=SESSION_TOKEN_TYPE)

    assert payload["sub"] == "42"
    assert payload["sid"] == "sid-1"
    assert payload["csrf"] == "csrf-1"


def test_decode_rejects_wrong_token_type() -> None:
    token = encode_token(
        {"path": "/dashboard"},
        secret=SECRET,
        algorithm="HS256",
        token_type="intended",
        ttl=timedelta(minutes=5),
    )

    with pytest.raises(jwt.InvalidTokenError):
        decode_token(token, secret=SECRET, algorithm="HS256", token_type=SESSION_TOKEN_TYPE)


def test_decode_rejects_foreign_signature() -> None:
    token = encode_token(
        {},
        secret=SECRET,
        algorithm="HS256",
        token_type="flash",
        ttl=timedelta(minutes=5),
    )

    with pytest.raises(jwt.InvalidTokenError):
        decode_token(token, secret=SECRET + "x", algorithm="HS256", token_type="flash")
