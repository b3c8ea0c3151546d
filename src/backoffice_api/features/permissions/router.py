"""Read-only HTTP surface over the permission catalog.

The catalog is defined in code and synced at startup, so there are no
mutating routes here.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Path, Query, Security, status

from backoffice_api.api.deps import get_rbac_service
from backoffice_api.common.pagination import PageParams
from backoffice_api.core.http import require_authenticated, require_permission
from backoffice_api.core.rbac.registry import PERMISSION_CATEGORIES, Permissions
from backoffice_api.features.rbac import PermissionNotFoundError, RbacService

from .schemas import (
    PermissionDetail,
    PermissionGroup,
    PermissionOut,
    PermissionPage,
    PermissionRoleRef,
)

router = APIRouter(
    prefix="/permissions",
    tags=["permissions"],
    dependencies=[
        Security(require_authenticated),
        Depends(require_permission(Permissions.PERMISSIONS_MANAGE)),
    ],
)

RbacServiceDep = Annotated[RbacService, Depends(get_rbac_service)]


@router.get(
    "",
    name="permissions.index",
    response_model=PermissionPage,
    summary="List catalog permissions",
)
async def list_permissions(
    page: Annotated[PageParams, Depends()],
    service: RbacServiceDep,
    category: Annotated[str | None, Query(description="Filter by category.")] = None,
    q: Annotated[str | None, Query(max_length=100, description="Search key or label.")] = None,
    sort: Annotated[str | None, Query(description="key, category or label.")] = None,
) -> PermissionPage:
    rows, total, has_next = await service.list_permissions(
        category=category,
        q=q,
        sort=sort,
        page=page.page,
        page_size=page.page_size,
    )
    return PermissionPage(
        items=[PermissionOut.model_validate(row) for row in rows],
        page=page.page,
        page_size=page.page_size,
        has_next=has_next,
        has_previous=page.page > 1,
        total=total,
    )


@router.get(
    "/grouped",
    name="permissions.grouped",
    response_model=list[PermissionGroup],
    summary="Catalog permissions grouped by category",
)
async def list_grouped_permissions(service: RbacServiceDep) -> list[PermissionGroup]:
    groups: dict[str, PermissionGroup] = {}
    for permission in await service.all_permissions():
        group = groups.get(permission.category)
        if group is None:
            group = PermissionGroup(
                category=permission.category,
                label=PERMISSION_CATEGORIES.get(permission.category, permission.category),
            )
            groups[permission.category] = group
        group.permissions.append(PermissionOut.model_validate(permission))
    order = list(PERMISSION_CATEGORIES)
    return sorted(
        groups.values(),
        key=lambda group: order.index(group.category) if group.category in order else len(order),
    )


@router.get(
    "/{permission_id}",
    name="permissions.show",
    response_model=PermissionDetail,
    summary="Show a permission and the roles granting it",
)
async def show_permission(
    permission_id: Annotated[int, Path(ge=1)],
    service: RbacServiceDep,
) -> PermissionDetail:
    try:
        permission = await service.get_permission(permission_id)
    except PermissionNotFoundError as exc:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail={"error": "permission_not_found", "message": "Permission not found."},
        ) from exc

    roles = sorted(
        (link.role for link in permission.role_permissions if link.role is not None),
        key=lambda role: role.name.lower(),
    )
    return PermissionDetail(
        **PermissionOut.model_validate(permission).model_dump(),
        roles=[PermissionRoleRef.model_validate(role) for role in roles],
    )


__all__ = ["router"]
