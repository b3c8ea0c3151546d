"""Payloads for custom role administration."""

from __future__ import annotations

from datetime import datetime

from pydantic import Field

from backoffice_api.common.pagination import Page
from backoffice_api.common.schema import BaseSchema
from backoffice_api.features.permissions.schemas import PermissionOut


class RoleSummary(BaseSchema):
    id: int
    slug: str
    name: str
    description: str | None = None
    is_system: bool
    is_editable: bool
    level: int
    color: str | None = None
    permissions_count: int = 0
    users_count: int = 0
    created_at: datetime


class RolePage(Page[RoleSummary]):
    """Paginated roles with usage counts."""


class RoleOut(BaseSchema):
    id: int
    slug: str
    name: str
    description: str | None = None
    is_system: bool
    is_editable: bool
    is_administrative: bool
    is_management: bool
    level: int
    color: str | None = None
    permissions: list[PermissionOut] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime


class RoleCreate(BaseSchema):
    name: str = Field(..., min_length=1, max_length=150)
    slug: str | None = Field(default=None, max_length=100)
    description: str | None = Field(default=None, max_length=2000)
    permissions: list[str] = Field(default_factory=list, description="Permission keys.")


class RoleUpdate(BaseSchema):
    name: str = Field(..., min_length=1, max_length=150)
    description: str | None = Field(default=None, max_length=2000)
    permissions: list[str] = Field(default_factory=list, description="Permission keys.")


__all__ = ["RoleCreate", "RoleOut", "RolePage", "RoleSummary", "RoleUpdate"]
