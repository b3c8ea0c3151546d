"""CSRF helper utilities for double-submit cookie flows."""

from __future__ import annotations

import secrets

from fastapi import Response

from backoffice_api.settings import Settings


def mint_csrf_token() -> str:
    return secrets.token_urlsafe(32)


def set_csrf_cookie(
    response: Response,
    settings: Settings,
    *,
    token: str | None = None,
) -> str:
    value = token or mint_csrf_token()
    response.set_cookie(
        key=settings.session_csrf_cookie_name,
        value=value,
        max_age=int(settings.session_ttl.total_seconds()),
        path=settings.session_cookie_path or "/",
        domain=settings.session_cookie_domain,
        secure=settings.secure_cookies,
        httponly=False,
        samesite="lax",
    )
    return value


def clear_csrf_cookie(response: Response, settings: Settings) -> None:
    response.delete_cookie(
        settings.session_csrf_cookie_name,
        path=settings.session_cookie_path or "/",
        domain=settings.session_cookie_domain,
    )


__all__ = ["clear_csrf_cookie", "mint_csrf_token", "set_csrf_cookie"]
