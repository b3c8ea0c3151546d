"""Business logic for user administration."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice_api.common.logging import log_context
from backoffice_api.common.pagination import paginate_sql
from backoffice_api.core.auth import Authorization
from backoffice_api.core.http.dependencies import identity_load_options
from backoffice_api.core.rbac.registry import SYSTEM_ROLE_BY_SLUG, Roles, assignable_roles, role_outranks
from backoffice_api.core.security import hash_password
from backoffice_api.features.rbac import RbacService
from backoffice_api.features.rbac.legacy import ensure_customer
from backoffice_api.models import Role, User
from backoffice_api.settings import Settings

from .filters import UserFilters, apply_user_filters
from .schemas import UserCreate, UserOut, UserPage, UserRolesUpdate, UserUpdate

logger = logging.getLogger(__name__)

USER_NOT_FOUND = "User not found."
EMAIL_IN_USE = "Email already in use."
SELF_DELETE = "You cannot delete your own user."
SELF_DEACTIVATE = "You cannot deactivate your own user."


def _error(status_code: int, *, code: str, message: str) -> HTTPException:
    return HTTPException(status_code=status_code, detail={"error": code, "message": message})


class UsersService:
    """CRUD, activation and role assignment for user accounts."""

    def __init__(self, *, session: AsyncSession, settings: Settings) -> None:
        self._session = session
        self._settings = settings
        self._rbac = RbacService(session=session)

    # Reads -------------------------------------------------------------

    async def list_users(
        self,
        *,
        page: int,
        page_size: int,
        order_by: Sequence[Any],
        filters: UserFilters,
    ) -> UserPage:
        """Return paginated users according to the supplied parameters."""

        logger.debug(
            "users.list.start",
            extra=log_context(page=page, page_size=page_size, q=filters.q),
        )

        stmt = apply_user_filters(select(User).options(*identity_load_options()), filters)
        rows, total, has_next = await paginate_sql(
            self._session,
            stmt,
            page=page,
            page_size=page_size,
            order_by=order_by,
        )
        result = UserPage(
            items=[self._serialize(user) for user in rows],
            page=page,
            page_size=page_size,
            has_next=has_next,
            has_previous=page > 1,
            total=total,
        )
        logger.info(
            "users.list.success",
            extra=log_context(page=page, count=len(result.items), total=total),
        )
        return result

    async def get_user(self, *, user_id: int) -> UserOut:
        return self._serialize(await self._require_user(user_id))

    # Writes ------------------------------------------------------------

    async def create_user(self, *, payload: UserCreate, actor_id: int | None) -> UserOut:
        logger.debug(
            "users.create.start",
            extra=log_context(actor_id=actor_id, email=str(payload.email)),
        )
        self._check_password(payload.password)
        await self._ensure_email_available(str(payload.email))

        user = User(
            name=payload.name,
            email=str(payload.email),
            password_hash=hash_password(payload.password),
            phone=payload.phone,
            gender=payload.gender,
            is_active=payload.is_active,
            failed_login_count=0,
        )
        self._session.add(user)
        try:
            await self._session.flush()
        except IntegrityError as exc:
            logger.info(
                "users.create.conflict",
                extra=log_context(actor_id=actor_id, email=str(payload.email)),
            )
            raise _error(status.HTTP_409_CONFLICT, code="email_in_use", message=EMAIL_IN_USE) from exc

        logger.info(
            "users.create.success",
            extra=log_context(actor_id=actor_id, user_id=user.id),
        )
        return self._serialize(await self._require_user(user.id))

    async def update_user(self, *, user_id: int, payload: UserUpdate, actor_id: int | None) -> UserOut:
        """Update mutable user fields."""

        logger.debug(
            "users.update.start",
            extra=log_context(actor_id=actor_id, user_id=user_id),
        )
        user = await self._require_user(user_id)
        updates = payload.model_dump(exclude_unset=True, exclude_none=False)
        if not updates:
            raise _error(
                status.HTTP_422_UNPROCESSABLE_ENTITY,
                code="empty_update",
                message="Provide at least one field to update.",
            )
        for field_name in ("name", "email", "is_active"):
            if field_name in updates and updates[field_name] is None:
                raise _error(
                    status.HTTP_422_UNPROCESSABLE_ENTITY,
                    code="invalid_update",
                    message=f"{field_name} cannot be null.",
                )

        if "email" in updates and str(updates["email"]).lower() != user.email_canonical:
            await self._ensure_email_available(str(updates["email"]))
            user.email = str(updates["email"])
        if "name" in updates:
            user.name = updates["name"]
        if updates.get("password"):
            self._check_password(updates["password"])
            user.password_hash = hash_password(updates["password"])
        for field_name in ("phone", "gender"):
            if field_name in updates:
                setattr(user, field_name, updates[field_name])
        if "is_active" in updates:
            if user.id == actor_id and not updates["is_active"]:
                raise _error(status.HTTP_409_CONFLICT, code="self_deactivate", message=SELF_DEACTIVATE)
            user.is_active = updates["is_active"]
        await self._session.flush()

        logger.info(
            "users.update.success",
            extra=log_context(actor_id=actor_id, user_id=user.id, is_active=user.is_active),
        )
        return self._serialize(user)

    async def toggle_status(self, *, user_id: int, actor_id: int | None) -> UserOut:
        user = await self._require_user(user_id)
        if user.id == actor_id:
            raise _error(status.HTTP_409_CONFLICT, code="self_deactivate", message=SELF_DEACTIVATE)
        user.is_active = not user.is_active
        await self._session.flush()
        logger.info(
            "users.toggle_status.success",
            extra=log_context(actor_id=actor_id, user_id=user.id, is_active=user.is_active),
        )
        return self._serialize(user)

    async def delete_user(self, *, user_id: int, actor_id: int | None) -> None:
        if user_id == actor_id:
            raise _error(status.HTTP_409_CONFLICT, code="self_delete", message=SELF_DELETE)
        user = await self._require_user(user_id)
        await self._session.execute(delete(User).where(User.id == user.id))
        logger.info(
            "users.delete.success",
            extra=log_context(actor_id=actor_id, user_id=user_id),
        )

    async def update_roles(
        self,
        *,
        user_id: int,
        payload: UserRolesUpdate,
        actor: Authorization,
    ) -> UserOut:
        """Replace the user's roles, honouring the actor's assignment hierarchy.

        System roles can only be granted or revoked when they appear in the
        actor's primary role's assignable list. Custom roles are open to any
        administrator.
        """

        logger.debug(
            "users.roles.update.start",
            extra=log_context(actor_id=actor.user_id, user_id=user_id, roles=payload.roles),
        )
        user = await self._require_user(user_id)
        actor_role = actor.primary_role()
        target_role = Authorization(user).primary_role()
        if (
            user.id != actor.user_id
            and actor_role is not None
            and target_role is not None
            and role_outranks(target_role, actor_role)
        ):
            raise _error(
                status.HTTP_403_FORBIDDEN,
                code="forbidden",
                message="You cannot change the roles of a user above your own level.",
            )

        roles = await self._resolve_roles(payload.roles)
        allowed = set(assignable_roles(actor_role))
        current = {assignment.role.slug for assignment in user.role_assignments if assignment.role}
        desired = {role.slug for role in roles}
        for slug in sorted(current ^ desired):
            if slug in SYSTEM_ROLE_BY_SLUG and slug not in allowed:
                raise _error(
                    status.HTTP_403_FORBIDDEN,
                    code="forbidden",
                    message=f"You cannot assign or revoke the role '{slug}'.",
                )
            if slug not in SYSTEM_ROLE_BY_SLUG and not actor.is_admin():
                raise _error(
                    status.HTTP_403_FORBIDDEN,
                    code="forbidden",
                    message="Only administrators can assign custom roles.",
                )

        await self._rbac.replace_user_roles(user=user, roles=roles)
        if Roles.CLIENT.value in desired:
            await ensure_customer(self._session, user)

        refreshed = await self._require_user(user.id)
        logger.info(
            "users.roles.update.success",
            extra=log_context(
                actor_id=actor.user_id,
                user_id=user.id,
                roles=[role.slug for role in roles],
            ),
        )
        return self._serialize(refreshed)

    # Helpers -----------------------------------------------------------

    async def _require_user(self, user_id: int) -> User:
        stmt = (
            select(User)
            .where(User.id == user_id)
            .options(*identity_load_options())
            .execution_options(populate_existing=True)
        )
        user = (await self._session.execute(stmt)).scalar_one_or_none()
        if user is None:
            raise _error(status.HTTP_404_NOT_FOUND, code="user_not_found", message=USER_NOT_FOUND)
        return user

    async def _ensure_email_available(self, email: str) -> None:
        stmt = select(User.id).where(User.email_canonical == email.strip().lower())
        if (await self._session.execute(stmt)).scalar_one_or_none() is not None:
            raise _error(status.HTTP_409_CONFLICT, code="email_in_use", message=EMAIL_IN_USE)

    def _check_password(self, password: str) -> None:
        minimum = self._settings.password_min_length
        if len(password) < minimum:
            raise _error(
                status.HTTP_422_UNPROCESSABLE_ENTITY,
                code="password_too_short",
                message=f"The password must be at least {minimum} characters.",
            )

    async def _resolve_roles(self, slugs: Sequence[str]) -> list[Role]:
        roles: list[Role] = []
        for slug in slugs:
            role = await self._rbac.get_role_by_slug(slug=slug)
            if role is None:
                raise _error(
                    status.HTTP_422_UNPROCESSABLE_ENTITY,
                    code="unknown_role",
                    message=f"Unknown role '{slug}'.",
                )
            roles.append(role)
        return roles

    def _serialize(self, user: User) -> UserOut:
        auth = Authorization(user)
        return UserOut(
            id=user.id,
            name=user.name,
            email=user.email,
            phone=user.phone,
            gender=user.gender,
            is_active=user.is_active,
            last_login_at=user.last_login_at,
            created_at=user.created_at,
            updated_at=user.updated_at,
            roles=auth.user_roles(),
            primary_role=auth.primary_role(),
            customer_nit=user.customer.nit if user.customer is not None else None,
        )


__all__ = ["UsersService"]
