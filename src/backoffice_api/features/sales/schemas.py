from __future__ import annotations

import datetime as dt

from pydantic import Field

from backoffice_api.common.pagination import Page
from backoffice_api.common.schema import BaseSchema
from backoffice_api.features.dashboard.schemas import SaleLine
from backoffice_api.models import SaleStatus


class SaleOut(BaseSchema):
    id: int
    date: dt.date
    total: float
    status: SaleStatus
    customer_id: int | None = None
    customer_nit: str | None = None
    items_count: int = 0


class SalePage(Page[SaleOut]):
    """Paginated sale notes."""


class SaleDetailOut(SaleOut):
    notes: str | None = None
    details: list[SaleLine] = Field(default_factory=list)


__all__ = ["SaleDetailOut", "SaleOut", "SalePage"]
