"""JWT helpers for session tokens and signed cookie payloads."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

import jwt

SESSION_TOKEN_TYPE = "session"


def encode_token(
    payload: Mapping[str, Any],
    *,
    secret: str,
    algorithm: str,
    token_type: str,
    ttl: timedelta,
) -> str:
    """Sign ``payload`` with an issued-at, expiry and ``typ`` claim."""

    issued_at = datetime.now(UTC)
    claims = dict(payload)
    claims.update({"typ": token_type, "iat": issued_at, "exp": issued_at + ttl})
    return jwt.encode(claims, secret, algorithm=algorithm)


def decode_token(
    token: str,
    *,
    secret: str,
    algorithm: str,
    token_type: str,
) -> dict[str, Any]:
    """Decode a JWT and return its payload.

    Raises :class:`jwt.InvalidTokenError` when the signature, expiry or
    ``typ`` claim does not check out.
    """

    payload = jwt.decode(token, secret, algorithms=[algorithm])
    if payload.get("typ") != token_type:
        raise jwt.InvalidTokenError("Unexpected token type")
    return payload


def create_session_token(
    *,
    user_id: int,
    session_id: str,
    csrf_token: str,
    secret: str,
    algorithm: str,
    ttl: timedelta,
) -> str:
    return encode_token(
        {"sub": str(user_id), "sid": session_id, "csrf": csrf_token},
        secret=secret,
        algorithm=algorithm,
        token_type=SESSION_TOKEN_TYPE,
        ttl=ttl,
    )


__all__ = ["SESSION_TOKEN_TYPE", "create_session_token", "decode_token", "encode_token"]
