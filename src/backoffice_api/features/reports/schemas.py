from __future__ import annotations

import datetime as dt

from pydantic import Field

from backoffice_api.common.schema import BaseSchema


class MonthlySalesReport(BaseSchema):
    year: int
    month: int
    completed_total: float = 0.0
    completed_count: int = 0
    other_total: float = 0.0
    other_count: int = 0


class SalesReport(BaseSchema):
    """Sales per month split into completed and every other status."""

    start: dt.date | None = None
    end: dt.date | None = None
    completed_total: float = 0.0
    other_total: float = 0.0
    months: list[MonthlySalesReport] = Field(default_factory=list)


__all__ = ["MonthlySalesReport", "SalesReport"]
