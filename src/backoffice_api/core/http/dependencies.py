"""FastAPI dependencies that bridge HTTP requests to the auth/RBAC foundation."""

from __future__ import annotations

import secrets
from typing import Annotated

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backoffice_api.db.session import get_session as get_db_session
from backoffice_api.models import Role, User, UserRoleAssignment
from backoffice_api.settings import Settings, get_settings

from ..auth.errors import AuthenticationError
from ..auth.facade import Authorization
from ..auth.sessions import read_session

SessionDep = Annotated[AsyncSession, Depends(get_db_session)]
SettingsDep = Annotated[Settings, Depends(get_settings)]


def identity_load_options() -> tuple:
    """Eager-load everything the authorization facade reads."""

    return (
        selectinload(User.role_assignments)
        .selectinload(UserRoleAssignment.role)
        .selectinload(Role.permissions),
        selectinload(User.customer),
    )


async def load_identity(db: AsyncSession, user_id: int) -> User | None:
    stmt = select(User).where(User.id == user_id).options(*identity_load_options())
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_optional_identity(
    request: Request,
    db: SessionDep,
    settings: SettingsDep,
) -> User | None:
    """Return the user behind the session cookie (or bearer token), if any."""

    state = read_session(request, settings)
    if state is None:
        return None
    user = await load_identity(db, state.user_id)
    if user is not None:
        request.state.user_id = user.id
    return user


async def require_authenticated(
    user: Annotated[User | None, Depends(get_optional_identity)],
) -> User:
    """Ensure the request is authenticated and return the persisted user."""

    if user is None:
        raise AuthenticationError("Authentication required.")
    return user


def get_optional_authorization(
    user: Annotated[User | None, Depends(get_optional_identity)],
) -> Authorization:
    return Authorization(user)


def get_authorization(
    user: Annotated[User, Depends(require_authenticated)],
) -> Authorization:
    """Facade for the authenticated identity; built once per request."""

    return Authorization(user)


CurrentUser = Annotated[User, Depends(require_authenticated)]
AuthorizationDep = Annotated[Authorization, Depends(get_authorization)]
OptionalAuthorizationDep = Annotated[Authorization, Depends(get_optional_authorization)]


_SAFE_METHODS = {"GET", "HEAD", "OPTIONS", "TRACE"}


async def require_csrf(
    request: Request,
    settings: SettingsDep,
    csrf_token: Annotated[str | None, Header(alias="X-CSRF-Token")] = None,
) -> None:
    """Enforce double-submit CSRF protection for cookie-authenticated requests.

    CSRF is required when the browser automatically attaches the session cookie.
    Requests authenticated via bearer tokens skip this guard.
    """

    if request.method.upper() in _SAFE_METHODS:
        return

    auth_header = request.headers.get("authorization") or ""
    scheme, _, token = auth_header.partition(" ")
    if scheme.lower() == "bearer" and token.strip():
        return

    session_cookie = (request.cookies.get(settings.session_cookie_name) or "").strip()
    if not session_cookie:
        return

    cookie_csrf = (request.cookies.get(settings.session_csrf_cookie_name) or "").strip()
    header_csrf = (csrf_token or "").strip()

    if not cookie_csrf or not header_csrf or not secrets.compare_digest(cookie_csrf, header_csrf):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail={
                "error": "csrf_failed",
                "message": "CSRF token missing or invalid.",
            },
        )


__all__ = [
    "AuthorizationDep",
    "CurrentUser",
    "OptionalAuthorizationDep",
    "SessionDep",
    "SettingsDep",
    "get_authorization",
    "get_optional_authorization",
    "get_optional_identity",
    "identity_load_options",
    "load_identity",
    "require_authenticated",
    "require_csrf",
]
