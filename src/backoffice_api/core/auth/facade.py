"""Authorization facade: yes/no questions about the current identity.

An :class:`Authorization` is built once per request from the loaded user and
answers every query from a snapshot taken at construction time. Queries never
raise and never touch the database; with no identity every answer is the
"no access" one.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from backoffice_api.core.rbac.registry import Permissions, Roles, administrative_roles, management_roles
from backoffice_api.models import User

_REPORT_ROLES = frozenset({Roles.SUPER_ADMIN.value, Roles.ADMIN.value, Roles.ORGANIZER.value})
_USER_PERMISSIONS = (
    Permissions.USERS_VIEW,
    Permissions.USERS_CREATE,
    Permissions.USERS_UPDATE,
    Permissions.USERS_DELETE,
    Permissions.USERS_MANAGE,
)


def _value(item: Any) -> str:
    return getattr(item, "value", item)


def _resource_permissions(resource: str) -> tuple[str, ...]:
    return (f"{resource}.view", f"{resource}.create", f"{resource}.update")


class Authorization:
    """Stateless query layer over an optional authenticated user."""

    def __init__(self, user: User | None) -> None:
        self._user = user
        roles: list[str] = []
        administrative: list[str] = []
        management: list[str] = []
        permissions: set[str] = set()
        has_customer = False

        if user is not None:
            system_admin = administrative_roles()
            system_management = management_roles()
            for assignment in user.role_assignments or ():
                role = assignment.role
                if role is None or role.slug in roles:
                    continue
                roles.append(role.slug)
                if role.is_administrative or role.slug in system_admin:
                    administrative.append(role.slug)
                if role.is_management or role.slug in system_management:
                    management.append(role.slug)
                for link in role.permissions or ():
                    if link.permission is not None:
                        permissions.add(link.permission.key)
            has_customer = user.customer is not None

        self._roles = tuple(roles)
        self._role_set = frozenset(roles)
        self._administrative = tuple(administrative)
        self._management = frozenset(management)
        self._permissions = frozenset(permissions)
        self._has_customer = has_customer

    @property
    def user(self) -> User | None:
        return self._user

    @property
    def user_id(self) -> int | None:
        return self._user.id if self._user is not None else None

    # Roles -------------------------------------------------------------

    def has_role(self, role: str | Roles) -> bool:
        return _value(role) in self._role_set

    def has_any_role(self, roles: Iterable[str | Roles]) -> bool:
        return any(self.has_role(role) for role in roles)

    def has_all_roles(self, roles: Iterable[str | Roles]) -> bool:
        """AND over ``roles``; an empty list holds for any authenticated identity."""

        if self._user is None:
            return False
        return all(self.has_role(role) for role in roles)

    def is_admin(self) -> bool:
        return bool(self._administrative)

    def is_super_admin(self) -> bool:
        return self.has_role(Roles.SUPER_ADMIN)

    def is_client(self) -> bool:
        return self.has_role(Roles.CLIENT)

    def is_employee(self) -> bool:
        return self.has_role(Roles.EMPLOYEE)

    def is_organizer(self) -> bool:
        return self.has_role(Roles.ORGANIZER)

    def is_management(self) -> bool:
        return bool(self._management)

    # Permissions -------------------------------------------------------

    def has_permission(self, permission: str | Permissions) -> bool:
        return _value(permission) in self._permissions

    def has_any_permission(self, permissions: Iterable[str | Permissions]) -> bool:
        return any(self.has_permission(permission) for permission in permissions)

    # Identity ----------------------------------------------------------

    def is_active_user(self) -> bool:
        return self._user is not None and bool(self._user.is_active)

    def user_type(self) -> str | None:
        if self._user is None:
            return None
        if self.is_client() or self._has_customer:
            return "client"
        if self.is_admin():
            return "administrative"
        return None

    def primary_role(self) -> str | None:
        """First administrative role held, else the first role assigned."""

        if self._administrative:
            return self._administrative[0]
        return self._roles[0] if self._roles else None

    def user_roles(self) -> list[str]:
        return list(self._roles)

    def user_permissions(self) -> list[str]:
        return sorted(self._permissions)

    def user_name(self) -> str | None:
        return self._user.name if self._user is not None else None

    # Capabilities ------------------------------------------------------

    def can_access_dashboard(self) -> bool:
        if not self.is_active_user():
            return False
        return self.is_admin() or self.is_management() or self.is_client()

    def can_view_reports(self) -> bool:
        return self.has_permission(Permissions.REPORTS_VIEW) or self.has_any_role(_REPORT_ROLES)

    def can_manage_users(self) -> bool:
        return self.has_any_permission(_USER_PERMISSIONS)

    def can_manage_products(self) -> bool:
        return self.has_any_permission(_resource_permissions("products"))

    def can_manage_sales(self) -> bool:
        return self.has_any_permission(_resource_permissions("sales"))

    def can_manage_promotions(self) -> bool:
        return self.has_any_permission(_resource_permissions("promotions"))

    def abilities(self) -> dict[str, Any]:
        """Snapshot of the capability queries for UI shaping."""

        return {
            "is_authenticated": self._user is not None,
            "is_active": self.is_active_user(),
            "is_admin": self.is_admin(),
            "is_super_admin": self.is_super_admin(),
            "is_client": self.is_client(),
            "is_employee": self.is_employee(),
            "is_organizer": self.is_organizer(),
            "is_management": self.is_management(),
            "can_access_dashboard": self.can_access_dashboard(),
            "can_view_reports": self.can_view_reports(),
            "can_manage_users": self.can_manage_users(),
            "can_manage_products": self.can_manage_products(),
            "can_manage_sales": self.can_manage_sales(),
            "can_manage_promotions": self.can_manage_promotions(),
            "user_type": self.user_type(),
            "primary_role": self.primary_role(),
            "roles": self.user_roles(),
            "permissions": self.user_permissions(),
        }


__all__ = ["Authorization"]
