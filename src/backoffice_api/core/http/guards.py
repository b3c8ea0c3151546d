"""Route guards: ordered pipeline stages over the authorization facade.

Each guard is a FastAPI dependency. Attaching several to a route ANDs them;
conditions inside one guard are ORed. Every guard depends on
:func:`get_authorization`, so authentication always resolves first.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import NoReturn

from fastapi import HTTPException, Request, status

from backoffice_api.common.logging import log_context
from backoffice_api.core.rbac.registry import Permissions, Roles

from ..auth.errors import DEFAULT_DENIED_MESSAGE, PermissionDeniedError
from ..auth.facade import Authorization
from .dependencies import AuthorizationDep

Guard = Callable[..., Awaitable[None]]

ADMIN_ONLY_MESSAGE = "Only administrators can access this section."
MANAGE_USERS_MESSAGE = "You do not have permission to manage users."
MANAGE_PRODUCTS_MESSAGE = "You do not have permission to manage products."
MANAGE_SALES_MESSAGE = "You do not have permission to manage sales."
DASHBOARD_MESSAGE = "You do not have permission to access the dashboard."
REPORTS_MESSAGE = "You do not have permission to view reports."

SELF_SERVICE_ROUTE = "users.show"
CLIENT_PORTAL_ROUTE = "client.dashboard"

logger = logging.getLogger(__name__)


def _deny(auth: Authorization, request: Request, message: str, *, guard: str) -> NoReturn:
    logger.info(
        "authz.denied",
        extra=log_context(
            user_id=auth.user_id,
            role=auth.primary_role(),
            guard=guard,
            path=request.url.path,
            method=request.method,
        ),
    )
    raise PermissionDeniedError(message)


def require_permission(permission: str | Permissions) -> Guard:
    """Return a guard that passes when the identity holds ``permission``."""

    key = getattr(permission, "value", permission)

    async def dependency(request: Request, auth: AuthorizationDep) -> None:
        if not auth.has_permission(key):
            _deny(auth, request, DEFAULT_DENIED_MESSAGE, guard=f"permission:{key}")

    dependency.__name__ = f"require_permission_{key.replace('.', '_')}"
    return dependency


def require_any_role(*roles: str | Roles) -> Guard:
    """Return a guard that passes when the identity holds any of ``roles``."""

    slugs = tuple(getattr(role, "value", role) for role in roles)

    async def dependency(request: Request, auth: AuthorizationDep) -> None:
        if not auth.has_any_role(slugs):
            _deny(auth, request, DEFAULT_DENIED_MESSAGE, guard=f"roles:{','.join(slugs)}")

    dependency.__name__ = "require_any_role_" + "_".join(s.replace("-", "_") for s in slugs)
    return dependency


async def require_management_role(request: Request, auth: AuthorizationDep) -> None:
    if not auth.is_management():
        _deny(auth, request, DEFAULT_DENIED_MESSAGE, guard="management_role")


async def admin_only(request: Request, auth: AuthorizationDep) -> None:
    if not auth.is_admin():
        _deny(auth, request, ADMIN_ONLY_MESSAGE, guard="admin_only")


def is_self_service_request(request: Request, auth: Authorization) -> bool:
    """True only for a GET of ``users.show`` on the requester's own id."""

    if request.method.upper() != "GET" or auth.user_id is None:
        return False
    route = request.scope.get("route")
    if getattr(route, "name", None) != SELF_SERVICE_ROUTE:
        return False
    return str(request.path_params.get("user_id")) == str(auth.user_id)


async def can_manage_users(request: Request, auth: AuthorizationDep) -> None:
    if is_self_service_request(request, auth):
        return
    if not (auth.can_manage_users() or auth.is_admin()):
        _deny(auth, request, MANAGE_USERS_MESSAGE, guard="can_manage_users")


async def can_manage_products(request: Request, auth: AuthorizationDep) -> None:
    if not (auth.can_manage_products() or auth.is_management()):
        _deny(auth, request, MANAGE_PRODUCTS_MESSAGE, guard="can_manage_products")


async def can_manage_sales(request: Request, auth: AuthorizationDep) -> None:
    if not (auth.can_manage_sales() or auth.is_management()):
        _deny(auth, request, MANAGE_SALES_MESSAGE, guard="can_manage_sales")


async def require_dashboard_access(request: Request, auth: AuthorizationDep) -> None:
    if not auth.can_access_dashboard():
        _deny(auth, request, DASHBOARD_MESSAGE, guard="dashboard_access")


async def require_reports_access(request: Request, auth: AuthorizationDep) -> None:
    if not auth.can_view_reports():
        _deny(auth, request, REPORTS_MESSAGE, guard="reports_access")


async def redirect_clients_to_portal(request: Request, auth: AuthorizationDep) -> None:
    """Send active clients without a management role to their own portal.

    Inactive users fall through to the dashboard access check and get a 403.
    """

    if auth.is_active_user() and auth.is_client() and not auth.is_management():
        raise HTTPException(
            status_code=status.HTTP_303_SEE_OTHER,
            detail={
                "error": "redirect",
                "message": "Clients are served from the client portal.",
            },
            headers={"Location": str(request.url_for(CLIENT_PORTAL_ROUTE))},
        )


__all__ = [
    "ADMIN_ONLY_MESSAGE",
    "DASHBOARD_MESSAGE",
    "MANAGE_PRODUCTS_MESSAGE",
    "MANAGE_SALES_MESSAGE",
    "MANAGE_USERS_MESSAGE",
    "REPORTS_MESSAGE",
    "admin_only",
    "can_manage_products",
    "can_manage_sales",
    "can_manage_users",
    "is_self_service_request",
    "redirect_clients_to_portal",
    "require_any_role",
    "require_dashboard_access",
    "require_management_role",
    "require_permission",
    "require_reports_access",
]
