"""Read models for the permission catalog."""

from __future__ import annotations

from pydantic import Field

from backoffice_api.common.pagination import Page
from backoffice_api.common.schema import BaseSchema


class PermissionOut(BaseSchema):
    id: int
    key: str
    resource: str
    action: str
    category: str
    label: str
    description: str


class PermissionPage(Page[PermissionOut]):
    """Paginated slice of the catalog."""


class PermissionGroup(BaseSchema):
    category: str
    label: str
    permissions: list[PermissionOut] = Field(default_factory=list)


class PermissionRoleRef(BaseSchema):
    id: int
    slug: str
    name: str
    is_system: bool


class PermissionDetail(PermissionOut):
    """A permission together with the roles that grant it."""

    roles: list[PermissionRoleRef] = Field(default_factory=list)


__all__ = [
    "PermissionDetail",
    "PermissionGroup",
    "PermissionOut",
    "PermissionPage",
    "PermissionRoleRef",
]
