from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from pydantic import Field, conint
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql import Select
from sqlalchemy.sql.elements import ColumnElement

from backoffice_api.common.schema import BaseSchema
from backoffice_api.settings import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE

T = TypeVar("T")


class PageParams(BaseSchema):
    """Standard query parameters for paginated list endpoints."""

    page: conint(ge=1) = Field(1, description="1-based page number")
    page_size: conint(ge=1, le=MAX_PAGE_SIZE) = Field(
        DEFAULT_PAGE_SIZE,
        description=f"Items per page (max {MAX_PAGE_SIZE})",
    )


class Page(BaseSchema, Generic[T]):
    """Uniform response envelope for list endpoints."""

    items: Sequence[T]
    page: int
    page_size: int
    has_next: bool
    has_previous: bool
    total: int


async def paginate_sql(
    session: AsyncSession,
    stmt: Select,
    *,
    page: int,
    page_size: int,
    order_by: Sequence[ColumnElement[Any]],
) -> tuple[list[Any], int, bool]:
    """Execute ``stmt`` with limit/offset pagination.

    Returns ``(rows, total, has_next)`` so callers can map ORM rows to schemas.
    """

    offset = (page - 1) * page_size
    ordered_stmt = stmt.order_by(*order_by)

    count_stmt = select(func.count()).select_from(ordered_stmt.order_by(None).subquery())
    total = int((await session.execute(count_stmt)).scalar_one() or 0)

    result = await session.execute(ordered_stmt.limit(page_size).offset(offset))
    rows = list(result.scalars().unique().all())
    has_next = (page * page_size) < total
    return rows, total, has_next


__all__ = ["Page", "PageParams", "paginate_sql"]
