from __future__ import annotations

from pydantic import Field, field_validator
from sqlalchemy import func, or_
from sqlalchemy.sql import Select

from backoffice_api.common.schema import BaseSchema
from backoffice_api.models import User


class UserFilters(BaseSchema):
    """Query parameters supported by the user listing endpoint."""

    q: str | None = Field(
        None,
        max_length=100,
        description="Free text search across name and email.",
    )
    is_active: bool | None = Field(
        None,
        description="Filter by active/inactive status.",
    )

    @field_validator("q")
    @classmethod
    def _trim_query(cls, value: str | None) -> str | None:
        if value is None:
            return None
        candidate = value.strip()
        return candidate or None


def apply_user_filters(stmt: Select, filters: UserFilters) -> Select:
    """Apply ``filters`` to a user query."""

    if filters.q:
        pattern = f"%{filters.q.lower()}%"
        stmt = stmt.where(
            or_(
                User.email_canonical.like(pattern),
                func.lower(User.name).like(pattern),
            )
        )
    if filters.is_active is not None:
        stmt = stmt.where(User.is_active == filters.is_active)
    return stmt


__all__ = ["UserFilters", "apply_user_filters"]
