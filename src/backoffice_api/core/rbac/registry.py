"""Canonical permission and system role registry.

The catalog is static data: permissions are generated from the resource/action
tables below and roles reference them by key. Both are seeded into the
database by :meth:`RbacService.sync_registry` at startup.
"""

from __future__ import annotations

from enum import Enum

from backoffice_api.core.rbac.types import PermissionDef, RoleDef

PERMISSION_CATEGORIES: dict[str, str] = {
    "users": "Users",
    "clients": "Clients",
    "staff": "Administrative staff",
    "products": "Products",
    "categories": "Categories",
    "suppliers": "Suppliers",
    "sales": "Sales",
    "purchases": "Purchases",
    "inventory": "Inventory",
    "promotions": "Promotions",
    "system": "System",
}

_ACTION_VERBS: dict[str, str] = {
    "view": "View",
    "create": "Create",
    "update": "Edit",
    "delete": "Delete",
    "manage": "Manage",
    "adjust": "Adjust",
}

_CRUD_MANAGE = ("view", "create", "update", "delete", "manage")

_RESOURCE_ACTIONS: tuple[tuple[str, str, tuple[str, ...]], ...] = (
    ("users", "users", _CRUD_MANAGE),
    ("clients", "clients", _CRUD_MANAGE),
    ("staff", "administrative staff", ("view", "create", "update", "delete")),
    ("products", "products", _CRUD_MANAGE),
    ("categories", "categories", _CRUD_MANAGE),
    ("suppliers", "suppliers", _CRUD_MANAGE),
    ("sales", "sales", _CRUD_MANAGE),
    ("purchases", "purchases", _CRUD_MANAGE),
    ("inventory", "inventory", ("view", "adjust", "manage")),
    ("promotions", "promotions", _CRUD_MANAGE),
)

_SYSTEM_PERMISSIONS: tuple[tuple[str, str, str], ...] = (
    ("dashboard.access", "Access dashboard", "Open the back-office dashboard and its metrics."),
    ("reports.view", "View reports", "Read sales and inventory reports."),
    ("reports.generate", "Generate reports", "Export and generate new reports."),
    ("roles.manage", "Manage roles", "Create, edit, or delete custom roles."),
    ("permissions.manage", "Manage permissions", "Inspect the permission catalog."),
    ("admin.access", "Administrative access", "Reach administrator-only sections."),
    ("system.configure", "Configure system", "Change system-wide configuration."),
)


def _permission(*, resource: str, noun: str, action: str) -> PermissionDef:
    verb = _ACTION_VERBS[action]
    return PermissionDef(
        key=f"{resource}.{action}",
        resource=resource,
        action=action,
        category=resource,
        label=f"{verb} {noun}",
        description=f"{verb} {noun} in the back office.",
    )


def _system_permission(key: str, label: str, description: str) -> PermissionDef:
    resource, _, action = key.partition(".")
    return PermissionDef(
        key=key,
        resource=resource,
        action=action,
        category="system",
        label=label,
        description=description,
    )


PERMISSIONS: tuple[PermissionDef, ...] = tuple(
    _permission(resource=resource, noun=noun, action=action)
    for resource, noun, actions in _RESOURCE_ACTIONS
    for action in actions
) + tuple(_system_permission(*entry) for entry in _SYSTEM_PERMISSIONS)

PERMISSION_REGISTRY: dict[str, PermissionDef] = {
    definition.key: definition for definition in PERMISSIONS
}

Permissions = Enum(  # type: ignore[misc]
    "Permissions",
    {key.replace(".", "_").upper(): key for key in PERMISSION_REGISTRY},
    type=str,
)
Permissions.__doc__ = "Enumeration of every permission key in the catalog."


class Roles(str, Enum):
    """Slugs of the system roles."""

    SUPER_ADMIN = "super-admin"
    ADMIN = "admin"
    EMPLOYEE = "employee"
    ORGANIZER = "organizer"
    CLIENT = "client"


_ALL_KEYS = tuple(PERMISSION_REGISTRY)

_EMPLOYEE_PERMISSIONS: tuple[str, ...] = tuple(
    key
    for key in _ALL_KEYS
    if PERMISSION_REGISTRY[key].resource
    in {"products", "sales", "purchases", "inventory", "promotions"}
) + ("clients.view", "categories.view", "suppliers.view", "dashboard.access")

SYSTEM_ROLES: tuple[RoleDef, ...] = (
    RoleDef(
        slug=Roles.SUPER_ADMIN.value,
        name="Super Administrator",
        description="Unrestricted access to every section, including system configuration.",
        administrative=True,
        management=True,
        level=100,
        color="red",
        permissions=_ALL_KEYS,
        assignable=(
            Roles.ADMIN.value,
            Roles.EMPLOYEE.value,
            Roles.ORGANIZER.value,
            Roles.CLIENT.value,
        ),
    ),
    RoleDef(
        slug=Roles.ADMIN.value,
        name="Administrator",
        description="Full back-office administration except system configuration.",
        administrative=True,
        management=True,
        level=90,
        color="orange",
        permissions=tuple(key for key in _ALL_KEYS if key != "system.configure"),
        assignable=(Roles.EMPLOYEE.value, Roles.ORGANIZER.value, Roles.CLIENT.value),
    ),
    RoleDef(
        slug=Roles.EMPLOYEE.value,
        name="Employee",
        description="Day-to-day operations on products, sales, purchases and inventory.",
        administrative=False,
        management=True,
        level=60,
        color="blue",
        permissions=_EMPLOYEE_PERMISSIONS,
    ),
    RoleDef(
        slug=Roles.ORGANIZER.value,
        name="Organizer",
        description="Runs promotions and sales campaigns.",
        administrative=False,
        management=True,
        level=60,
        color="purple",
        permissions=(
            "products.view",
            "sales.view",
            "sales.create",
            "promotions.view",
            "promotions.create",
            "promotions.update",
            "reports.view",
            "dashboard.access",
        ),
    ),
    RoleDef(
        slug=Roles.CLIENT.value,
        name="Client",
        description="Storefront customer with access to their own portal.",
        administrative=False,
        management=False,
        level=20,
        color="green",
        permissions=("products.view", "promotions.view"),
    ),
)

SYSTEM_ROLE_BY_SLUG: dict[str, RoleDef] = {
    definition.slug: definition for definition in SYSTEM_ROLES
}


def permissions_by_category() -> list[tuple[str, str, list[PermissionDef]]]:
    """Return ``(category, label, permissions)`` in catalog order."""

    grouped: dict[str, list[PermissionDef]] = {key: [] for key in PERMISSION_CATEGORIES}
    for definition in PERMISSIONS:
        grouped[definition.category].append(definition)
    return [
        (category, PERMISSION_CATEGORIES[category], items)
        for category, items in grouped.items()
        if items
    ]


def administrative_roles() -> frozenset[str]:
    return frozenset(role.slug for role in SYSTEM_ROLES if role.administrative)


def management_roles() -> frozenset[str]:
    return frozenset(role.slug for role in SYSTEM_ROLES if role.management)


def role_outranks(slug: str, other: str) -> bool:
    """Return True when ``slug`` sits strictly above ``other`` in the hierarchy."""

    left = SYSTEM_ROLE_BY_SLUG.get(slug)
    right = SYSTEM_ROLE_BY_SLUG.get(other)
    if left is None:
        return False
    if right is None:
        return True
    return left.level > right.level


def assignable_roles(slug: str | None) -> tuple[str, ...]:
    """Return the system role slugs that ``slug`` may grant to other users."""

    if slug is None:
        return ()
    definition = SYSTEM_ROLE_BY_SLUG.get(slug)
    return definition.assignable if definition is not None else ()


__all__ = [
    "PERMISSION_CATEGORIES",
    "PERMISSION_REGISTRY",
    "PERMISSIONS",
    "PermissionDef",
    "Permissions",
    "RoleDef",
    "Roles",
    "SYSTEM_ROLE_BY_SLUG",
    "SYSTEM_ROLES",
    "administrative_roles",
    "assignable_roles",
    "management_roles",
    "permissions_by_category",
    "role_outranks",
]
