from __future__ import annotations

from backoffice_api.core.rbac.registry import (
    PERMISSION_CATEGORIES,
    PERMISSION_REGISTRY,
    SYSTEM_ROLE_BY_SLUG,
    SYSTEM_ROLES,
    Permissions,
    Roles,
    administrative_roles,
    assignable_roles,
    management_roles,
    permissions_by_category,
    role_outranks,
)


def test_permission_keys_are_unique_and_resource_scoped() -> None:
    for key, definition in PERMISSION_REGISTRY.items():
        assert key == f"{definition.resource}.{definition.action}"
        assert definition.category in PERMISSION_CATEGORIES


def test_permissions_enum_mirrors_registry() -> None:
    assert Permissions.USERS_VIEW.value == "users.view"
    assert Permissions.DASHBOARD_ACCESS.value == "dashboard.access"
    assert {member.value for member in Permissions} == set(PERMISSION_REGISTRY)


def test_system_roles_reference_known_permissions() -> None:
    for role in SYSTEM_ROLES:
        unknown = set(role.permissions) - set(PERMISSION_REGISTRY)
        assert not unknown, f"{role.slug} references {sorted(unknown)}"


def test_super_admin_holds_everything_and_admin_all_but_configure() -> None:
    super_admin = SYSTEM_ROLE_BY_SLUG[Roles.SUPER_ADMIN.value]
    admin = SYSTEM_ROLE_BY_SLUG[Roles.ADMIN.value]

    assert set(super_admin.permissions) == set(PERMISSION_REGISTRY)
    assert set(PERMISSION_REGISTRY) - set(admin.permissions) == {"system.configure"}


def test_role_flags() -> None:
    assert administrative_roles() == {"super-admin", "admin"}
    assert management_roles() == {"super-admin", "admin", "employee", "organizer"}


def test_hierarchy_helpers() -> None:
    assert role_outranks("super-admin", "admin") is True
    assert role_outranks("admin", "admin") is False
    assert role_outranks("client", "employee") is False
    assert role_outranks("unknown", "client") is False
    assert "super-admin" not in assignable_roles("admin")
    assert "admin" in assignable_roles("super-admin")
    assert assignable_roles("client") == ()
    assert assignable_roles(None) == ()


def test_grouping_follows_category_order() -> None:
    categories = [category for category, _label, _items in permissions_by_category()]

    assert categories == [key for key in PERMISSION_CATEGORIES if key in categories]
    assert categories[0] == "users"
    assert categories[-1] == "system"
