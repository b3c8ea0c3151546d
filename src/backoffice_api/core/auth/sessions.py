"""Cookie-backed browser session state.

Three signed cookies carry state between requests:

* the session cookie: a JWT naming the user, a session id and the CSRF token;
* the flash cookie: one-shot messages shown after a redirect;
* the intended cookie: the local path a bounced browser GET wanted to reach.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

import jwt
from fastapi import Request, Response

from backoffice_api.core.security.csrf import clear_csrf_cookie, mint_csrf_token, set_csrf_cookie
from backoffice_api.core.security.tokens import (
    SESSION_TOKEN_TYPE,
    create_session_token,
    decode_token,
    encode_token,
)
from backoffice_api.settings import Settings

_FLASH_TOKEN_TYPE = "flash"
_INTENDED_TOKEN_TYPE = "intended"
_INTENDED_TTL = timedelta(minutes=30)

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class SessionState:
    """Decoded session cookie."""

    user_id: int
    session_id: str
    csrf_token: str


def _set_cookie(
    response: Response,
    settings: Settings,
    *,
    key: str,
    value: str,
    max_age: timedelta,
) -> None:
    response.set_cookie(
        key=key,
        value=value,
        max_age=int(max_age.total_seconds()),
        path=settings.session_cookie_path or "/",
        domain=settings.session_cookie_domain,
        secure=settings.secure_cookies,
        httponly=True,
        samesite="lax",
    )


def _delete_cookie(response: Response, settings: Settings, key: str) -> None:
    response.delete_cookie(
        key,
        path=settings.session_cookie_path or "/",
        domain=settings.session_cookie_domain,
    )


def _decode(value: str | None, settings: Settings, token_type: str) -> dict[str, Any] | None:
    candidate = (value or "").strip()
    if not candidate:
        return None
    try:
        return decode_token(
            candidate,
            secret=settings.secret_key_value,
            algorithm=settings.jwt_algorithm,
            token_type=token_type,
        )
    except jwt.InvalidTokenError:
        return None


# Session ---------------------------------------------------------------


def start_session(response: Response, settings: Settings, *, user_id: int) -> SessionState:
    """Issue a fresh session id and CSRF token for ``user_id``.

    Any previous session cookie is replaced, so the identifier always changes
    across a login.
    """

    state = SessionState(
        user_id=user_id,
        session_id=secrets.token_urlsafe(24),
        csrf_token=mint_csrf_token(),
    )
    token = create_session_token(
        user_id=state.user_id,
        session_id=state.session_id,
        csrf_token=state.csrf_token,
        secret=settings.secret_key_value,
        algorithm=settings.jwt_algorithm,
        ttl=settings.session_ttl,
    )
    _set_cookie(
        response,
        settings,
        key=settings.session_cookie_name,
        value=token,
        max_age=settings.session_ttl,
    )
    set_csrf_cookie(response, settings, token=state.csrf_token)
    return state


def read_session_token(token: str | None, settings: Settings) -> SessionState | None:
    payload = _decode(token, settings, SESSION_TOKEN_TYPE)
    if payload is None:
        return None
    try:
        user_id = int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        logger.warning("auth.session.malformed")
        return None
    return SessionState(
        user_id=user_id,
        session_id=str(payload.get("sid") or ""),
        csrf_token=str(payload.get("csrf") or ""),
    )


def read_session(request: Request, settings: Settings) -> SessionState | None:
    """Return the session carried by the cookie or a bearer header."""

    header = request.headers.get("authorization") or ""
    scheme, _, token = header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return read_session_token(token, settings)
    return read_session_token(request.cookies.get(settings.session_cookie_name), settings)


def end_session(response: Response, settings: Settings) -> None:
    _delete_cookie(response, settings, settings.session_cookie_name)
    clear_csrf_cookie(response, settings)


# Flash -----------------------------------------------------------------


def flash(
    response: Response,
    settings: Settings,
    *,
    errors: dict[str, str] | None = None,
    success: str | None = None,
    old: dict[str, str] | None = None,
) -> None:
    """Store one-shot messages for the next request."""

    payload: dict[str, Any] = {"errors": dict(errors or {})}
    if success:
        payload["success"] = success
    if old:
        payload["old"] = dict(old)
    token = encode_token(
        payload,
        secret=settings.secret_key_value,
        algorithm=settings.jwt_algorithm,
        token_type=_FLASH_TOKEN_TYPE,
        ttl=settings.flash_ttl,
    )
    _set_cookie(
        response,
        settings,
        key=settings.flash_cookie_name,
        value=token,
        max_age=settings.flash_ttl,
    )


def read_flash(request: Request, settings: Settings) -> dict[str, Any]:
    payload = _decode(request.cookies.get(settings.flash_cookie_name), settings, _FLASH_TOKEN_TYPE)
    if payload is None:
        return {"errors": {}}
    return {
        key: payload[key]
        for key in ("errors", "success", "old")
        if key in payload
    }


def consume_flash(response: Response, settings: Settings) -> None:
    _delete_cookie(response, settings, settings.flash_cookie_name)


# Intended URL ----------------------------------------------------------


def is_local_path(value: str | None) -> bool:
    candidate = (value or "").strip()
    return candidate.startswith("/") and not candidate.startswith("//") and "\\" not in candidate


def remember_intended(response: Response, settings: Settings, path: str) -> None:
    if not is_local_path(path):
        return
    token = encode_token(
        {"path": path},
        secret=settings.secret_key_value,
        algorithm=settings.jwt_algorithm,
        token_type=_INTENDED_TOKEN_TYPE,
        ttl=_INTENDED_TTL,
    )
    _set_cookie(
        response,
        settings,
        key=settings.intended_cookie_name,
        value=token,
        max_age=_INTENDED_TTL,
    )


def read_intended(request: Request, settings: Settings) -> str | None:
    payload = _decode(
        request.cookies.get(settings.intended_cookie_name),
        settings,
        _INTENDED_TOKEN_TYPE,
    )
    if payload is None:
        return None
    path = payload.get("path")
    return path if isinstance(path, str) and is_local_path(path) else None


def forget_intended(response: Response, settings: Settings) -> None:
    _delete_cookie(response, settings, settings.intended_cookie_name)


__all__ = [
    "SessionState",
    "consume_flash",
    "end_session",
    "flash",
    "forget_intended",
    "is_local_path",
    "read_flash",
    "read_intended",
    "read_session",
    "read_session_token",
    "remember_intended",
    "start_session",
]
