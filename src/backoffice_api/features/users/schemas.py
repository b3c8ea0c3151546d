"""Pydantic schemas for user administration payloads."""

from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import EmailStr, Field, field_validator

from backoffice_api.common.pagination import Page
from backoffice_api.common.schema import BaseSchema

Gender = Literal["male", "female", "other"]


class UserOut(BaseSchema):
    """Administrative view of a user account."""

    id: int
    name: str
    email: str
    phone: str | None = None
    gender: Gender | None = None
    is_active: bool
    last_login_at: datetime | None = None
    created_at: datetime
    updated_at: datetime
    roles: list[str] = Field(default_factory=list)
    primary_role: str | None = None
    customer_nit: str | None = None


class UserPage(Page[UserOut]):
    """Paginated collection of users."""


class UserCreate(BaseSchema):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr = Field(..., max_length=320)
    password: str = Field(..., min_length=1, max_length=128)
    phone: str | None = Field(default=None, max_length=20)
    gender: Gender | None = None
    is_active: bool = True

    @field_validator("name")
    @classmethod
    def _strip_name(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Name must not be blank.")
        return cleaned


class UserUpdate(BaseSchema):
    """Fields an administrator may change; omitted fields are left alone."""

    name: str | None = Field(default=None, min_length=1, max_length=255)
    email: EmailStr | None = Field(default=None, max_length=320)
    password: str | None = Field(default=None, min_length=1, max_length=128)
    phone: str | None = Field(default=None, max_length=20)
    gender: Gender | None = None
    is_active: bool | None = None


class UserRolesUpdate(BaseSchema):
    """Exact set of role slugs the user should hold afterwards."""

    roles: list[str] = Field(default_factory=list)

    @field_validator("roles")
    @classmethod
    def _dedupe(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(slug.strip().lower() for slug in value if slug.strip()))


__all__ = ["Gender", "UserCreate", "UserOut", "UserPage", "UserRolesUpdate", "UserUpdate"]
