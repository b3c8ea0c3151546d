"""Unit tests for the authorization facade."""

from __future__ import annotations

from types import SimpleNamespace

from backoffice_api.core.auth import Authorization
from backoffice_api.core.rbac.registry import SYSTEM_ROLE_BY_SLUG, Permissions, Roles


def _role(slug: str, *, permissions: tuple[str, ...] | None = None) -> SimpleNamespace:
    definition = SYSTEM_ROLE_BY_SLUG.get(slug)
    keys = permissions if permissions is not None else (definition.permissions if definition else ())
    return SimpleNamespace(
        slug=slug,
        is_administrative=bool(definition and definition.administrative),
        is_management=bool(definition and definition.management),
        permissions=[SimpleNamespace(permission=SimpleNamespace(key=key)) for key in keys],
    )


def _user(*roles: SimpleNamespace, is_active: bool = True, customer: object | None = None):
    return SimpleNamespace(
        id=7,
        name="Ana",
        email="ana@example.com",
        is_active=is_active,
        customer=customer,
        role_assignments=[SimpleNamespace(role=role) for role in roles],
    )


def test_anonymous_answers_no_to_everything() -> None:
    auth = Authorization(None)

    assert auth.user_id is None
    assert auth.is_admin() is False
    assert auth.has_any_role([Roles.ADMIN, Roles.CLIENT]) is False
    assert auth.can_access_dashboard() is False
    assert auth.primary_role() is None
    assert auth.user_type() is None
    assert auth.abilities()["is_authenticated"] is False


def test_user_without_roles_is_authenticated_but_powerless() -> None:
    auth = Authorization(_user())

    assert auth.user_roles() == []
    assert auth.user_permissions() == []
    assert auth.is_management() is False
    assert auth.can_access_dashboard() is False
    assert auth.can_manage_users() is False
    assert auth.primary_role() is None


def test_inactive_admin_keeps_role_queries_but_loses_dashboard() -> None:
    auth = Authorization(_user(_role(Roles.ADMIN.value), is_active=False))

    assert auth.is_admin() is True
    assert auth.has_permission(Permissions.DASHBOARD_ACCESS) is True
    assert auth.can_access_dashboard() is False


def test_has_any_role_and_has_all_roles() -> None:
    auth = Authorization(_user(_role(Roles.EMPLOYEE.value), _role(Roles.CLIENT.value)))

    assert auth.has_any_role([Roles.ADMIN, Roles.CLIENT]) is True
    assert auth.has_any_role(["admin", "super-admin"]) is False
    assert auth.has_all_roles(["employee", "client"]) is True
    assert auth.has_all_roles(["employee", "organizer"]) is False
    assert auth.has_all_roles([]) is True


def test_has_all_roles_without_identity_is_false() -> None:
    auth = Authorization(None)

    assert auth.has_all_roles([]) is False
    assert auth.has_all_roles(["client"]) is False


def test_primary_role_prefers_administrative_roles() -> None:
    auth = Authorization(_user(_role(Roles.CLIENT.value), _role(Roles.ADMIN.value)))

    assert auth.user_roles() == ["client", "admin"]
    assert auth.primary_role() == "admin"


def test_primary_role_falls_back_to_first_assignment() -> None:
    auth = Authorization(_user(_role(Roles.ORGANIZER.value), _role(Roles.CLIENT.value)))

    assert auth.primary_role() == "organizer"


def test_custom_role_permissions_are_honoured() -> None:
    custom = _role("warehouse-lead", permissions=("inventory.view", "products.update"))
    auth = Authorization(_user(custom))

    assert auth.has_permission("products.update") is True
    assert auth.can_manage_products() is True
    assert auth.can_manage_sales() is False
    assert auth.is_management() is False
    assert auth.user_type() is None


def test_client_capabilities() -> None:
    auth = Authorization(_user(_role(Roles.CLIENT.value), customer=SimpleNamespace(nit="AUTO-7")))

    assert auth.is_client() is True
    assert auth.user_type() == "client"
    assert auth.can_access_dashboard() is True
    assert auth.can_view_reports() is False
    assert auth.can_manage_users() is False


def test_organizer_views_reports_by_role() -> None:
    auth = Authorization(_user(_role(Roles.ORGANIZER.value, permissions=())))

    assert auth.has_permission(Permissions.REPORTS_VIEW) is False
    assert auth.can_view_reports() is True


def test_abilities_snapshot_shape() -> None:
    abilities = Authorization(_user(_role(Roles.SUPER_ADMIN.value))).abilities()

    assert abilities["is_super_admin"] is True
    assert abilities["is_admin"] is True
    assert abilities["user_type"] == "administrative"
    assert abilities["primary_role"] == "super-admin"
    assert "system.configure" in abilities["permissions"]
