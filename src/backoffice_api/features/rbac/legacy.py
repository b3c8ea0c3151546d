"""One-off import of the legacy role/permission tables into the RBAC store.

Older deployments kept authorization in three places: custom ``rol`` /
``permiso`` tables, underscore and hyphen permission names, and a
``user.role`` compatibility column. This module folds all of them into the
single store. It runs from the CLI (``backoffice-api rbac import-legacy``)
and never during login.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from pydantic import BaseModel, Field
from sqlalchemy import inspect, select, text
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice_api.common.logging import log_context
from backoffice_api.core.rbac.registry import PERMISSION_REGISTRY, SYSTEM_ROLE_BY_SLUG, Roles
from backoffice_api.models import Customer, User

from .service import RbacService, _slugify

logger = logging.getLogger(__name__)

_LEGACY_VERBS: dict[str, str] = {
    "ver": "view",
    "crear": "create",
    "editar": "update",
    "eliminar": "delete",
    "gestionar": "manage",
    "ajustar": "adjust",
    "generar": "generate",
    "configurar": "configure",
    "acceso": "access",
}

_LEGACY_RESOURCES: dict[str, str] = {
    "usuarios": "users",
    "clientes": "clients",
    "administrativos": "staff",
    "productos": "products",
    "categorias": "categories",
    "proveedores": "suppliers",
    "ventas": "sales",
    "compras": "purchases",
    "inventario": "inventory",
    "promociones": "promotions",
    "reportes": "reports",
    "roles": "roles",
    "permisos": "permissions",
    "dashboard": "dashboard",
    "sistema": "system",
}

# Names whose resource does not follow the verb-resource pattern.
_LEGACY_OVERRIDES: dict[str, str] = {
    "ver-ajustes-inventario": "inventory.view",
    "crear-ajustes-inventario": "inventory.adjust",
}

_LEGACY_ROLES: dict[str, str] = {
    "super-admin": Roles.SUPER_ADMIN.value,
    "superadmin": Roles.SUPER_ADMIN.value,
    "admin": Roles.ADMIN.value,
    "administrador": Roles.ADMIN.value,
    "administrativo": Roles.ADMIN.value,
    "cliente": Roles.CLIENT.value,
    "client": Roles.CLIENT.value,
    "empleado": Roles.EMPLOYEE.value,
    "employee": Roles.EMPLOYEE.value,
    "organizador": Roles.ORGANIZER.value,
    "organizer": Roles.ORGANIZER.value,
}


class LegacySnapshot(BaseModel):
    """Legacy authorization data, keyed by names and e-mail addresses."""

    roles: dict[str, list[str]] = Field(default_factory=dict)
    assignments: dict[str, list[str]] = Field(default_factory=dict)
    role_columns: dict[str, str] = Field(default_factory=dict)


@dataclass
class ImportReport:
    dry_run: bool = False
    roles_created: int = 0
    roles_updated: int = 0
    assignments_created: int = 0
    customers_created: int = 0
    unknown_permissions: set[str] = field(default_factory=set)
    unknown_roles: set[str] = field(default_factory=set)
    unknown_users: set[str] = field(default_factory=set)

    def as_dict(self) -> dict[str, object]:
        return {
            "dry_run": self.dry_run,
            "roles_created": self.roles_created,
            "roles_updated": self.roles_updated,
            "assignments_created": self.assignments_created,
            "customers_created": self.customers_created,
            "unknown_permissions": sorted(self.unknown_permissions),
            "unknown_roles": sorted(self.unknown_roles),
            "unknown_users": sorted(self.unknown_users),
        }


def normalize_legacy_permission(name: str) -> str | None:
    """Map a legacy permission name onto a catalog key, or ``None``.

    Both spellings are accepted: ``ver_usuarios`` and ``ver-usuarios`` map to
    ``users.view``; ``acceso-dashboard`` maps to ``dashboard.access``.
    """

    candidate = name.strip().lower()
    if candidate in PERMISSION_REGISTRY:
        return candidate
    candidate = candidate.replace("_", "-").replace(" ", "-")
    if candidate in _LEGACY_OVERRIDES:
        return _LEGACY_OVERRIDES[candidate]

    verb, _, resource = candidate.partition("-")
    action = _LEGACY_VERBS.get(verb)
    target = _LEGACY_RESOURCES.get(resource)
    if action is None or target is None:
        return None
    key = f"{target}.{action}"
    return key if key in PERMISSION_REGISTRY else None


def normalize_legacy_role(name: str) -> str | None:
    """Map a legacy role name onto a system role slug, or ``None``."""

    slug = _slugify(name)
    if slug in SYSTEM_ROLE_BY_SLUG:
        return slug
    return _LEGACY_ROLES.get(slug)


class LegacyRbacImporter:
    """Fold a :class:`LegacySnapshot` into the RBAC store.

    Safe to run repeatedly: existing roles, assignments and customer records
    are left alone. With ``dry_run`` the transaction is rolled back after the
    report is computed.
    """

    def __init__(self, session: AsyncSession) -> None:
        self._session = session
        self._rbac = RbacService(session=session)

    async def import_snapshot(self, snapshot: LegacySnapshot, *, dry_run: bool = False) -> ImportReport:
        report = ImportReport(dry_run=dry_run)
        logger.info(
            "rbac.legacy_import.start",
            extra=log_context(
                roles=len(snapshot.roles),
                users=len(set(snapshot.assignments) | set(snapshot.role_columns)),
                dry_run=dry_run,
            ),
        )

        await self._rbac.sync_registry()

        for legacy_name, legacy_permissions in snapshot.roles.items():
            keys = self._map_permissions(legacy_permissions, report)
            if normalize_legacy_role(legacy_name) is not None:
                continue
            await self._upsert_custom_role(legacy_name, keys, report)

        emails = list(dict.fromkeys([*snapshot.assignments, *snapshot.role_columns]))
        for email in emails:
            names = list(snapshot.assignments.get(email, []))
            column_value = snapshot.role_columns.get(email)
            if column_value:
                names.append(column_value)
            await self._import_user(email, names, report)

        if dry_run:
            await self._session.rollback()

        logger.info("rbac.legacy_import.success", extra=log_context(**report.as_dict()))
        return report

    def _map_permissions(self, names: list[str], report: ImportReport) -> list[str]:
        keys: list[str] = []
        for name in names:
            key = normalize_legacy_permission(name)
            if key is None:
                report.unknown_permissions.add(name)
            elif key not in keys:
                keys.append(key)
        return keys

    async def _upsert_custom_role(self, legacy_name: str, keys: list[str], report: ImportReport) -> None:
        slug = _slugify(legacy_name)
        existing = await self._rbac.get_role_by_slug(slug=slug)
        if existing is None:
            await self._rbac.create_role(
                name=legacy_name.strip().title(),
                slug=slug,
                description=f"Imported from legacy role '{legacy_name}'.",
                permissions=keys,
            )
            report.roles_created += 1
            return
        if existing.is_system:
            return
        merged = list(dict.fromkeys([*existing.permission_keys, *keys]))
        if set(merged) != set(existing.permission_keys):
            await self._rbac.update_role(
                role_id=existing.id,
                name=existing.name,
                description=existing.description,
                permissions=merged,
            )
            report.roles_updated += 1

    async def _import_user(self, email: str, names: list[str], report: ImportReport) -> None:
        result = await self._session.execute(
            select(User).where(User.email_canonical == email.strip().lower())
        )
        user = result.scalar_one_or_none()
        if user is None:
            report.unknown_users.add(email)
            return

        slugs: list[str] = []
        for name in names:
            slug = normalize_legacy_role(name) or _slugify(name)
            if slug and slug not in slugs:
                slugs.append(slug)

        for slug in slugs:
            role = await self._rbac.get_role_by_slug(slug=slug)
            if role is None:
                report.unknown_roles.add(slug)
                continue
            if await self._rbac.has_assignment(user_id=user.id, role_id=role.id):
                continue
            await self._rbac.assign_role_if_missing(user_id=user.id, role_id=role.id)
            report.assignments_created += 1

        if Roles.CLIENT.value in slugs:
            if await ensure_customer(self._session, user):
                report.customers_created += 1


async def ensure_customer(session: AsyncSession, user: User) -> bool:
    """Create the ``AUTO-{id}`` customer record if ``user`` has none."""

    existing = await session.execute(select(Customer.id).where(Customer.user_id == user.id))
    if existing.scalar_one_or_none() is not None:
        return False
    session.add(Customer(user_id=user.id, nit=f"AUTO-{user.id}"))
    await session.flush()
    return True


def _legacy_tables(sync_session) -> dict[str, set[str]]:
    inspector = inspect(sync_session.connection())
    tables: dict[str, set[str]] = {}
    for name in ("rol", "permiso", "rol_permiso", "user_rol", "users"):
        if inspector.has_table(name):
            tables[name] = {column["name"] for column in inspector.get_columns(name)}
    return tables


async def load_snapshot_from_tables(session: AsyncSession) -> LegacySnapshot:
    """Read the legacy tables, when present, from the connected database."""

    tables = await session.run_sync(_legacy_tables)
    snapshot = LegacySnapshot()

    if {"rol", "permiso", "rol_permiso"} <= tables.keys():
        rows = await session.execute(
            text(
                "SELECT r.nombre, p.nombre FROM rol r "
                "LEFT JOIN rol_permiso rp ON rp.rol_id = r.id "
                "LEFT JOIN permiso p ON p.id = rp.permiso_id "
                "ORDER BY r.id, p.id"
            )
        )
        for role_name, permission_name in rows.all():
            entries = snapshot.roles.setdefault(role_name, [])
            if permission_name:
                entries.append(permission_name)
    elif "rol" in tables:
        rows = await session.execute(text("SELECT nombre FROM rol ORDER BY id"))
        for (role_name,) in rows.all():
            snapshot.roles.setdefault(role_name, [])

    if {"user_rol", "rol", "users"} <= tables.keys():
        rows = await session.execute(
            text(
                'SELECT u.email, r.nombre FROM user_rol ur '
                'JOIN users u ON u.id = ur.user_id '
                "JOIN rol r ON r.id = ur.rol_id "
                "ORDER BY ur.user_id, r.id"
            )
        )
        for email, role_name in rows.all():
            snapshot.assignments.setdefault(email, []).append(role_name)

    if "role" in tables.get("users", set()):
        rows = await session.execute(
            text('SELECT email, role FROM users WHERE role IS NOT NULL AND role <> \'\'')
        )
        for email, role_name in rows.all():
            snapshot.role_columns[email] = role_name

    return snapshot


def load_snapshot_from_file(path: Path) -> LegacySnapshot:
    """Read a JSON export shaped like :class:`LegacySnapshot`."""

    return LegacySnapshot.model_validate_json(Path(path).read_text(encoding="utf-8"))


__all__ = [
    "ImportReport",
    "LegacyRbacImporter",
    "LegacySnapshot",
    "ensure_customer",
    "load_snapshot_from_file",
    "load_snapshot_from_tables",
    "normalize_legacy_permission",
    "normalize_legacy_role",
]
