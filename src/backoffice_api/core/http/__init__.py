"""HTTP-facing auth helpers: dependencies, guards and error handlers."""

from .dependencies import (
    AuthorizationDep,
    CurrentUser,
    OptionalAuthorizationDep,
    SessionDep,
    SettingsDep,
    get_authorization,
    get_optional_authorization,
    get_optional_identity,
    identity_load_options,
    load_identity,
    require_authenticated,
    require_csrf,
)
from .errors import register_auth_exception_handlers
from .guards import (
    admin_only,
    can_manage_products,
    can_manage_sales,
    can_manage_users,
    is_self_service_request,
    redirect_clients_to_portal,
    require_any_role,
    require_dashboard_access,
    require_management_role,
    require_permission,
    require_reports_access,
)

__all__ = [
    "AuthorizationDep",
    "CurrentUser",
    "OptionalAuthorizationDep",
    "SessionDep",
    "SettingsDep",
    "admin_only",
    "can_manage_products",
    "can_manage_sales",
    "can_manage_users",
    "get_authorization",
    "get_optional_authorization",
    "get_optional_identity",
    "identity_load_options",
    "is_self_service_request",
    "load_identity",
    "redirect_clients_to_portal",
    "register_auth_exception_handlers",
    "require_any_role",
    "require_authenticated",
    "require_csrf",
    "require_dashboard_access",
    "require_management_role",
    "require_permission",
    "require_reports_access",
]
