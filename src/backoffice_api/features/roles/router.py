"""Routes for role administration, guarded by ``roles.manage``."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Response, Security, status

from backoffice_api.api.deps import get_rbac_service
from backoffice_api.common.logging import log_context
from backoffice_api.common.pagination import PageParams
from backoffice_api.core.http import AuthorizationDep, require_authenticated, require_csrf, require_permission
from backoffice_api.core.rbac.registry import Permissions
from backoffice_api.features.permissions.schemas import PermissionOut
from backoffice_api.features.rbac import (
    RbacService,
    RoleConflictError,
    RoleImmutableError,
    RoleNotFoundError,
    RoleValidationError,
    UnknownPermissionError,
)
from backoffice_api.models import Role

from .schemas import RoleCreate, RoleOut, RolePage, RoleSummary, RoleUpdate

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/roles",
    tags=["roles"],
    dependencies=[
        Security(require_authenticated),
        Depends(require_csrf),
        Depends(require_permission(Permissions.ROLES_MANAGE)),
    ],
)

RbacServiceDep = Annotated[RbacService, Depends(get_rbac_service)]
ROLE_ID_PARAM = Annotated[int, Path(description="Role identifier.", ge=1)]


def _role_error(exc: Exception) -> HTTPException:
    if isinstance(exc, RoleNotFoundError):
        return HTTPException(
            status.HTTP_404_NOT_FOUND,
            detail={"error": "role_not_found", "message": "Role not found."},
        )
    if isinstance(exc, RoleImmutableError):
        return HTTPException(
            status.HTTP_409_CONFLICT,
            detail={"error": "role_immutable", "message": str(exc)},
        )
    if isinstance(exc, RoleConflictError):
        return HTTPException(
            status.HTTP_409_CONFLICT,
            detail={"error": "role_conflict", "message": str(exc)},
        )
    if isinstance(exc, UnknownPermissionError):
        return HTTPException(
            status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={
                "error": "unknown_permissions",
                "message": str(exc),
                "permissions": list(exc.keys),
            },
        )
    return HTTPException(
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail={"error": "invalid_role", "message": str(exc)},
    )


def _serialize(role: Role) -> RoleOut:
    links = sorted(
        (link.permission for link in role.permissions if link.permission is not None),
        key=lambda permission: (permission.category, permission.key),
    )
    return RoleOut(
        id=role.id,
        slug=role.slug,
        name=role.name,
        description=role.description,
        is_system=role.is_system,
        is_editable=role.is_editable,
        is_administrative=role.is_administrative,
        is_management=role.is_management,
        level=role.level,
        color=role.color,
        permissions=[PermissionOut.model_validate(permission) for permission in links],
        created_at=role.created_at,
        updated_at=role.updated_at,
    )


@router.get("", name="roles.index", response_model=RolePage, summary="List roles")
async def list_roles(
    page: Annotated[PageParams, Depends()],
    service: RbacServiceDep,
    q: Annotated[str | None, Query(max_length=100, description="Search name, slug or description.")] = None,
    sort: Annotated[str | None, Query(description="name, slug, created_at or level; '-' for DESC.")] = None,
) -> RolePage:
    rows, total, has_next = await service.list_roles(
        q=q,
        sort=sort,
        page=page.page,
        page_size=page.page_size,
    )
    items = [
        RoleSummary(
            id=role.id,
            slug=role.slug,
            name=role.name,
            description=role.description,
            is_system=role.is_system,
            is_editable=role.is_editable,
            level=role.level,
            color=role.color,
            permissions_count=permissions_count,
            users_count=users_count,
            created_at=role.created_at,
        )
        for role, permissions_count, users_count in rows
    ]
    return RolePage(
        items=items,
        page=page.page,
        page_size=page.page_size,
        has_next=has_next,
        has_previous=page.page > 1,
        total=total,
    )


@router.post(
    "",
    name="roles.store",
    response_model=RoleOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a custom role",
)
async def create_role(payload: RoleCreate, auth: AuthorizationDep, service: RbacServiceDep) -> RoleOut:
    try:
        role = await service.create_role(
            name=payload.name,
            slug=payload.slug,
            description=payload.description,
            permissions=payload.permissions,
        )
    except (RoleValidationError, RoleConflictError) as exc:
        raise _role_error(exc) from exc
    logger.info("roles.create.success", extra=log_context(actor_id=auth.user_id, role=role.slug))
    return _serialize(role)


@router.get("/{role_id}", name="roles.show", response_model=RoleOut, summary="Show a role")
async def show_role(role_id: ROLE_ID_PARAM, service: RbacServiceDep) -> RoleOut:
    try:
        role = await service.require_role(role_id)
    except RoleNotFoundError as exc:
        raise _role_error(exc) from exc
    return _serialize(role)


@router.put("/{role_id}", name="roles.update", response_model=RoleOut, summary="Update a custom role")
async def update_role(
    role_id: ROLE_ID_PARAM,
    payload: RoleUpdate,
    auth: AuthorizationDep,
    service: RbacServiceDep,
) -> RoleOut:
    try:
        role = await service.update_role(
            role_id=role_id,
            name=payload.name,
            description=payload.description,
            permissions=payload.permissions,
        )
    except (RoleNotFoundError, RoleImmutableError, RoleValidationError) as exc:
        raise _role_error(exc) from exc
    logger.info("roles.update.success", extra=log_context(actor_id=auth.user_id, role=role.slug))
    return _serialize(role)


@router.delete(
    "/{role_id}",
    name="roles.destroy",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
    summary="Delete a custom role",
)
async def delete_role(role_id: ROLE_ID_PARAM, auth: AuthorizationDep, service: RbacServiceDep) -> Response:
    try:
        await service.delete_role(role_id=role_id)
    except (RoleNotFoundError, RoleImmutableError, RoleConflictError) as exc:
        raise _role_error(exc) from exc
    logger.info("roles.delete.success", extra=log_context(actor_id=auth.user_id, role_id=role_id))
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
