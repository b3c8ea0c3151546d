"""Routes for user administration.

Every route passes ``require_authenticated``, ``require_csrf`` and
``can_manage_users`` first. ``users.show`` is the only route without its own
permission guard so that a user can always read their own record.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Path, Query, Response, Security, status

from backoffice_api.api.deps import get_users_service
from backoffice_api.common.pagination import PageParams
from backoffice_api.common.sorting import resolve_sort
from backoffice_api.core.http import (
    AuthorizationDep,
    admin_only,
    can_manage_users,
    require_authenticated,
    require_csrf,
    require_permission,
)
from backoffice_api.core.rbac.registry import Permissions

from .filters import UserFilters
from .schemas import UserCreate, UserOut, UserPage, UserRolesUpdate, UserUpdate
from .service import UsersService
from .sorting import DEFAULT_SORT, ID_FIELD, SORT_FIELDS

router = APIRouter(
    tags=["users"],
    dependencies=[
        Security(require_authenticated),
        Depends(require_csrf),
        Depends(can_manage_users),
    ],
)

UsersServiceDep = Annotated[UsersService, Depends(get_users_service)]
USER_ID_PARAM = Annotated[int, Path(description="User identifier.", ge=1)]
USER_UPDATE_BODY = Body(..., description="Fields to update on the user record.")


def get_sort_order(
    sort: Annotated[
        str | None,
        Query(description="Comma separated fields; prefix with '-' for descending."),
    ] = None,
) -> list[Any]:
    return resolve_sort(sort, allowed=SORT_FIELDS, default=DEFAULT_SORT, id_field=ID_FIELD)


@router.get(
    "/users",
    name="users.index",
    response_model=UserPage,
    status_code=status.HTTP_200_OK,
    summary="List users",
    dependencies=[Depends(require_permission(Permissions.USERS_VIEW))],
)
async def list_users(
    page: Annotated[PageParams, Depends()],
    filters: Annotated[UserFilters, Depends()],
    order_by: Annotated[list[Any], Depends(get_sort_order)],
    service: UsersServiceDep,
) -> UserPage:
    return await service.list_users(
        page=page.page,
        page_size=page.page_size,
        order_by=order_by,
        filters=filters,
    )


@router.post(
    "/users",
    name="users.store",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    summary="Create a user",
    dependencies=[Depends(require_permission(Permissions.USERS_CREATE))],
)
async def create_user(
    payload: UserCreate,
    auth: AuthorizationDep,
    service: UsersServiceDep,
) -> UserOut:
    return await service.create_user(payload=payload, actor_id=auth.user_id)


@router.get(
    "/users/{user_id}",
    name="users.show",
    response_model=UserOut,
    status_code=status.HTTP_200_OK,
    summary="Retrieve a user",
    responses={
        status.HTTP_403_FORBIDDEN: {
            "description": "User management permission required unless reading your own record.",
        },
        status.HTTP_404_NOT_FOUND: {"description": "User not found."},
    },
)
async def show_user(user_id: USER_ID_PARAM, service: UsersServiceDep) -> UserOut:
    return await service.get_user(user_id=user_id)


@router.api_route(
    "/users/{user_id}",
    methods=["PUT", "PATCH"],
    name="users.update",
    response_model=UserOut,
    status_code=status.HTTP_200_OK,
    summary="Update a user",
    dependencies=[Depends(require_permission(Permissions.USERS_UPDATE))],
)
async def update_user(
    user_id: USER_ID_PARAM,
    auth: AuthorizationDep,
    service: UsersServiceDep,
    payload: UserUpdate = USER_UPDATE_BODY,
) -> UserOut:
    return await service.update_user(user_id=user_id, payload=payload, actor_id=auth.user_id)


@router.delete(
    "/users/{user_id}",
    name="users.destroy",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a user",
    response_class=Response,
    dependencies=[Depends(require_permission(Permissions.USERS_DELETE))],
)
async def delete_user(
    user_id: USER_ID_PARAM,
    auth: AuthorizationDep,
    service: UsersServiceDep,
) -> Response:
    await service.delete_user(user_id=user_id, actor_id=auth.user_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch(
    "/users/{user_id}/toggle-status",
    name="users.toggle-status",
    response_model=UserOut,
    status_code=status.HTTP_200_OK,
    summary="Flip a user's active flag",
    dependencies=[Depends(require_permission(Permissions.USERS_UPDATE))],
)
async def toggle_user_status(
    user_id: USER_ID_PARAM,
    auth: AuthorizationDep,
    service: UsersServiceDep,
) -> UserOut:
    return await service.toggle_status(user_id=user_id, actor_id=auth.user_id)


@router.put(
    "/users/{user_id}/roles",
    name="users.roles.update",
    response_model=UserOut,
    status_code=status.HTTP_200_OK,
    summary="Replace a user's roles (administrators only)",
    dependencies=[Depends(admin_only)],
)
async def update_user_roles(
    user_id: USER_ID_PARAM,
    payload: UserRolesUpdate,
    auth: AuthorizationDep,
    service: UsersServiceDep,
) -> UserOut:
    return await service.update_roles(user_id=user_id, payload=payload, actor=auth)


__all__ = ["router"]
