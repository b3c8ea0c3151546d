from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from typing import Any

from sqlalchemy import Select, delete, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backoffice_api.common.pagination import paginate_sql
from backoffice_api.common.sorting import resolve_sort
from backoffice_api.core.rbac.registry import (
    PERMISSION_REGISTRY,
    PERMISSIONS,
    SYSTEM_ROLE_BY_SLUG,
    SYSTEM_ROLES,
)
from backoffice_api.models import Permission, Role, RolePermission, User, UserRoleAssignment

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class RoleError(ValueError):
    """Base class for role management errors."""


class RoleValidationError(RoleError):
    """Raised when a role payload is invalid."""


class UnknownPermissionError(RoleValidationError):
    """Raised when a payload names permissions missing from the catalog."""

    def __init__(self, keys: Iterable[str]) -> None:
        self.keys = tuple(sorted(keys))
        super().__init__(f"Unknown permissions: {', '.join(self.keys)}")


class RoleNotFoundError(RoleError):
    """Raised when a role cannot be located."""


class RoleImmutableError(RoleError):
    """Raised when attempting to mutate a system or non-editable role."""


class RoleConflictError(RoleError):
    """Raised when a role operation would violate uniqueness or usage rules."""


class PermissionNotFoundError(ValueError):
    """Raised when a permission cannot be located."""


_SLUG_PATTERN = re.compile(r"[^a-z0-9]+")

ROLE_SORT_FIELDS = {
    "name": (func.lower(Role.name).asc(), func.lower(Role.name).desc()),
    "slug": (Role.slug.asc(), Role.slug.desc()),
    "created_at": (Role.created_at.asc(), Role.created_at.desc()),
    "level": (Role.level.asc(), Role.level.desc()),
}
ROLE_DEFAULT_SORT = "name"
ROLE_ID_FIELD = (Role.id.asc(), Role.id.desc())

PERMISSION_SORT_FIELDS = {
    "key": (Permission.key.asc(), Permission.key.desc()),
    "category": (Permission.category.asc(), Permission.category.desc()),
    "label": (Permission.label.asc(), Permission.label.desc()),
}
PERMISSION_DEFAULT_SORT = "category,key"
PERMISSION_ID_FIELD = (Permission.id.asc(), Permission.id.desc())

# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _slugify(value: str) -> str:
    candidate = _SLUG_PATTERN.sub("-", value.lower()).strip("-")
    return re.sub(r"-{2,}", "-", candidate)


def _normalize_role_name(value: str) -> str:
    candidate = value.strip()
    if not candidate:
        raise RoleValidationError("Role name is required")
    return candidate


def _normalize_description(value: str | None) -> str | None:
    if value is None:
        return None
    candidate = value.strip()
    return candidate or None


def collect_permission_keys(keys: Iterable[str]) -> tuple[str, ...]:
    """Return normalized permission keys enforcing catalog membership."""

    normalized = tuple(dict.fromkeys(str(key).strip() for key in keys if str(key).strip()))
    unknown = [key for key in normalized if key not in PERMISSION_REGISTRY]
    if unknown:
        raise UnknownPermissionError(unknown)
    return normalized


def _like(value: str) -> str:
    return f"%{value.strip().lower()}%"


def _permissions_count():
    return (
        select(func.count(RolePermission.permission_id))
        .where(RolePermission.role_id == Role.id)
        .correlate(Role)
        .scalar_subquery()
    )


def _users_count():
    return (
        select(func.count(UserRoleAssignment.id))
        .where(UserRoleAssignment.role_id == Role.id)
        .correlate(Role)
        .scalar_subquery()
    )


# ---------------------------------------------------------------------------
# RBAC service
# ---------------------------------------------------------------------------


class RbacService:
    """RBAC operations: registry sync, role CRUD and user role assignments."""

    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session

    # ------------- registry sync -----------------

    async def _permission_id_map(self, keys: Iterable[str]) -> dict[str, int]:
        wanted = tuple(keys)
        if not wanted:
            return {}
        result = await self._session.execute(
            select(Permission.key, Permission.id).where(Permission.key.in_(wanted))
        )
        return {key: permission_id for key, permission_id in result.all()}

    async def sync_permission_registry(self) -> None:
        """Upsert the canonical permission catalog into the database."""

        logger.debug("rbac.permissions.sync.start")

        result = await self._session.execute(select(Permission))
        existing = {permission.key: permission for permission in result.scalars().all()}
        desired_keys = {definition.key for definition in PERMISSIONS}

        for definition in PERMISSIONS:
            current = existing.get(definition.key)
            if current is None:
                self._session.add(
                    Permission(
                        key=definition.key,
                        resource=definition.resource,
                        action=definition.action,
                        category=definition.category,
                        label=definition.label,
                        description=definition.description,
                    )
                )
                continue

            current.resource = definition.resource
            current.action = definition.action
            current.category = definition.category
            current.label = definition.label
            current.description = definition.description

        stale_keys = set(existing) - desired_keys
        if stale_keys:
            await self._session.execute(
                delete(Permission).where(Permission.key.in_(tuple(stale_keys)))
            )

        await self._session.flush()

        logger.debug(
            "rbac.permissions.sync.success",
            extra={"total": len(PERMISSIONS), "removed": len(stale_keys)},
        )

    async def sync_system_roles(self) -> None:
        """Ensure system roles exist with the canonical permission set."""

        logger.debug("rbac.system_roles.sync.start")

        await self.sync_permission_registry()
        permission_map = await self._permission_id_map(PERMISSION_REGISTRY)

        for definition in SYSTEM_ROLES:
            role = await self._role_by_slug(definition.slug)
            if role is None:
                role = Role(slug=definition.slug)
                self._session.add(role)

            role.name = definition.name
            role.description = definition.description
            role.is_system = definition.is_system
            role.is_editable = definition.is_editable
            role.is_administrative = definition.administrative
            role.is_management = definition.management
            role.level = definition.level
            role.color = definition.color
            await self._session.flush([role])

            await self._sync_role_permissions(
                role=role,
                permission_keys=definition.permissions,
                permission_map=permission_map,
            )

        logger.debug("rbac.system_roles.sync.success")

    async def sync_registry(self) -> None:
        """Sync both permissions and system roles."""

        await self.sync_system_roles()

    # ------------- permissions -------------------

    async def list_permissions(
        self,
        *,
        category: str | None,
        q: str | None,
        sort: str | None,
        page: int,
        page_size: int,
    ) -> tuple[list[Permission], int, bool]:
        stmt = select(Permission)
        if category:
            stmt = stmt.where(Permission.category == category)
        if q and q.strip():
            pattern = _like(q)
            stmt = stmt.where(
                or_(
                    func.lower(Permission.key).like(pattern),
                    func.lower(Permission.label).like(pattern),
                )
            )
        order_by = resolve_sort(
            sort,
            allowed=PERMISSION_SORT_FIELDS,
            default=PERMISSION_DEFAULT_SORT,
            id_field=PERMISSION_ID_FIELD,
        )
        return await paginate_sql(
            self._session,
            stmt,
            page=page,
            page_size=page_size,
            order_by=order_by,
        )

    async def all_permissions(self) -> list[Permission]:
        result = await self._session.execute(
            select(Permission).order_by(Permission.category, Permission.key)
        )
        return list(result.scalars().all())

    async def get_permission(self, permission_id: int) -> Permission:
        stmt = (
            select(Permission)
            .options(selectinload(Permission.role_permissions).selectinload(RolePermission.role))
            .where(Permission.id == permission_id)
        )
        permission = (await self._session.execute(stmt)).scalar_one_or_none()
        if permission is None:
            raise PermissionNotFoundError("Permission not found")
        return permission

    # ------------- role CRUD ---------------------

    async def list_roles(
        self,
        *,
        q: str | None,
        sort: str | None,
        page: int,
        page_size: int,
    ) -> tuple[list[tuple[Role, int, int]], int, bool]:
        """Return ``(role, permissions_count, users_count)`` rows."""

        base: Select[Any] = select(Role)
        if q and q.strip():
            pattern = _like(q)
            base = base.where(
                or_(
                    func.lower(Role.name).like(pattern),
                    func.lower(Role.slug).like(pattern),
                    func.lower(func.coalesce(Role.description, "")).like(pattern),
                )
            )
        order_by = resolve_sort(
            sort,
            allowed=ROLE_SORT_FIELDS,
            default=ROLE_DEFAULT_SORT,
            id_field=ROLE_ID_FIELD,
        )

        total = int(
            (
                await self._session.execute(
                    select(func.count()).select_from(base.subquery())
                )
            ).scalar_one()
        )
        offset = (page - 1) * page_size
        stmt = (
            base.add_columns(
                _permissions_count().label("permissions_count"),
                _users_count().label("users_count"),
            )
            .order_by(*order_by)
            .limit(page_size)
            .offset(offset)
        )
        rows = [
            (role, int(permissions_count or 0), int(users_count or 0))
            for role, permissions_count, users_count in (await self._session.execute(stmt)).all()
        ]
        return rows, total, page * page_size < total

    async def get_role(self, role_id: int) -> Role | None:
        stmt = (
            select(Role)
            .options(selectinload(Role.permissions).selectinload(RolePermission.permission))
            .where(Role.id == role_id)
            .execution_options(populate_existing=True)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def _role_by_slug(self, slug: str) -> Role | None:
        stmt = (
            select(Role)
            .options(selectinload(Role.permissions).selectinload(RolePermission.permission))
            .where(Role.slug == slug)
            .limit(1)
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_role_by_slug(self, *, slug: str) -> Role | None:
        return await self._role_by_slug(slug)

    async def require_role(self, role_id: int) -> Role:
        role = await self.get_role(role_id)
        if role is None:
            raise RoleNotFoundError("Role not found")
        return role

    async def create_role(
        self,
        *,
        name: str,
        slug: str | None,
        description: str | None,
        permissions: Sequence[str],
    ) -> Role:
        normalized_name = _normalize_role_name(name)
        slug_value = _slugify(slug or normalized_name)
        if not slug_value:
            raise RoleValidationError("Role slug is required")

        if slug_value in SYSTEM_ROLE_BY_SLUG:
            raise RoleConflictError("Slug conflicts with a system role")

        existing = await self._role_by_slug(slug_value)
        if existing is not None:
            raise RoleConflictError("Role slug already exists")

        permission_keys = collect_permission_keys(permissions)

        role = Role(
            slug=slug_value,
            name=normalized_name,
            description=_normalize_description(description),
            is_system=False,
            is_editable=True,
            is_administrative=False,
            is_management=False,
            level=0,
        )
        self._session.add(role)
        await self._session.flush([role])

        if permission_keys:
            await self._sync_role_permissions(
                role=role,
                permission_keys=permission_keys,
                permission_map=await self._permission_id_map(permission_keys),
            )

        return await self.require_role(role.id)

    async def update_role(
        self,
        *,
        role_id: int,
        name: str,
        description: str | None,
        permissions: Sequence[str],
    ) -> Role:
        role = await self.require_role(role_id)
        if role.is_system or not role.is_editable:
            raise RoleImmutableError("System roles cannot be modified.")

        role.name = _normalize_role_name(name)
        role.description = _normalize_description(description)

        permission_keys = collect_permission_keys(permissions)
        await self._sync_role_permissions(
            role=role,
            permission_keys=permission_keys,
            permission_map=await self._permission_id_map(permission_keys),
        )

        return await self.require_role(role.id)

    async def delete_role(self, *, role_id: int) -> None:
        role = await self.require_role(role_id)
        if role.is_system or not role.is_editable:
            raise RoleImmutableError("System roles cannot be deleted.")

        if await self.count_assignments_for_role(role_id=role_id):
            raise RoleConflictError("A role with assigned users cannot be deleted.")

        await self._session.execute(delete(Role).where(Role.id == role.id))

    async def _sync_role_permissions(
        self,
        *,
        role: Role,
        permission_keys: Sequence[str],
        permission_map: dict[str, int],
    ) -> None:
        result = await self._session.execute(
            select(RolePermission)
            .options(selectinload(RolePermission.permission))
            .where(RolePermission.role_id == role.id)
        )
        current = {rp.permission.key: rp for rp in result.scalars().all() if rp.permission}
        desired = set(permission_keys)

        additions = desired - set(current)
        removals = set(current) - desired

        if additions:
            missing = [key for key in additions if key not in permission_map]
            if missing:
                raise UnknownPermissionError(missing)
            self._session.add_all(
                [
                    RolePermission(role_id=role.id, permission_id=permission_map[key])
                    for key in sorted(additions)
                ]
            )

        if removals:
            await self._session.execute(
                delete(RolePermission).where(
                    RolePermission.role_id == role.id,
                    RolePermission.permission_id.in_(
                        [current[key].permission_id for key in removals]
                    ),
                )
            )

        await self._session.flush()

    # ------------- assignments -------------------

    async def count_assignments_for_role(self, *, role_id: int) -> int:
        result = await self._session.execute(
            select(func.count(UserRoleAssignment.id)).where(UserRoleAssignment.role_id == role_id)
        )
        return int(result.scalar_one() or 0)

    async def roles_by_ids(self, role_ids: Iterable[int]) -> list[Role]:
        wanted = list(dict.fromkeys(role_ids))
        if not wanted:
            return []
        result = await self._session.execute(select(Role).where(Role.id.in_(wanted)))
        found = {role.id: role for role in result.scalars().all()}
        missing = [role_id for role_id in wanted if role_id not in found]
        if missing:
            raise RoleNotFoundError(f"Roles not found: {', '.join(map(str, missing))}")
        return [found[role_id] for role_id in wanted]

    async def _assignment_for(self, *, user_id: int, role_id: int) -> UserRoleAssignment | None:
        stmt = (
            select(UserRoleAssignment)
            .where(
                UserRoleAssignment.user_id == user_id,
                UserRoleAssignment.role_id == role_id,
            )
            .limit(1)
        )
        return (await self._session.execute(stmt)).scalar_one_or_none()

    async def has_assignment(self, *, user_id: int, role_id: int) -> bool:
        return await self._assignment_for(user_id=user_id, role_id=role_id) is not None

    async def assign_role_if_missing(self, *, user_id: int, role_id: int) -> UserRoleAssignment:
        """Attach ``role_id`` to ``user_id`` unless the pair already exists."""

        existing = await self._assignment_for(user_id=user_id, role_id=role_id)
        if existing is not None:
            return existing

        assignment = UserRoleAssignment(user_id=user_id, role_id=role_id)
        self._session.add(assignment)
        try:
            await self._session.flush([assignment])
        except IntegrityError as exc:
            logger.debug(
                "rbac.assign.conflict",
                extra={"user_id": user_id, "role_id": role_id},
            )
            raise RoleConflictError("Assignment already exists") from exc
        return assignment

    async def assign_role_by_slug(self, *, user: User, slug: str) -> UserRoleAssignment:
        role = await self._role_by_slug(slug)
        if role is None:
            raise RoleNotFoundError(f"Role '{slug}' not found")
        return await self.assign_role_if_missing(user_id=user.id, role_id=role.id)

    async def replace_user_roles(self, *, user: User, roles: Sequence[Role]) -> None:
        """Make ``roles`` the exact role set of ``user``, keeping existing order."""

        desired = {role.id for role in roles}
        result = await self._session.execute(
            select(UserRoleAssignment).where(UserRoleAssignment.user_id == user.id)
        )
        current = {assignment.role_id: assignment for assignment in result.scalars().all()}

        removals = [role_id for role_id in current if role_id not in desired]
        if removals:
            await self._session.execute(
                delete(UserRoleAssignment).where(
                    UserRoleAssignment.user_id == user.id,
                    UserRoleAssignment.role_id.in_(removals),
                )
            )
        for role in roles:
            if role.id not in current:
                self._session.add(UserRoleAssignment(user_id=user.id, role_id=role.id))
        await self._session.flush()


__all__ = [
    "PermissionNotFoundError",
    "RbacService",
    "RoleConflictError",
    "RoleError",
    "RoleImmutableError",
    "RoleNotFoundError",
    "RoleValidationError",
    "UnknownPermissionError",
    "collect_permission_keys",
]
