"""Response models for the back-office and client dashboards."""

from __future__ import annotations

import datetime as dt
from typing import Any

from pydantic import Field

from backoffice_api.common.schema import BaseSchema
from backoffice_api.models import ComplaintStatus, ComplaintType, SaleStatus


class MonthlySales(BaseSchema):
    year: int
    month: int
    total: float
    count: int


class TopProduct(BaseSchema):
    id: int
    name: str
    sale_price: float
    units_sold: int
    revenue: float


class SaleLine(BaseSchema):
    product_id: int
    product_name: str | None = None
    quantity: int
    unit_price: float
    total: float


class RecentSale(BaseSchema):
    id: int
    date: dt.date
    total: float
    status: SaleStatus
    customer_id: int | None = None
    details: list[SaleLine] = Field(default_factory=list)


class RecentComplaint(BaseSchema):
    id: int
    name: str
    type: ComplaintType
    subject: str
    status: ComplaintStatus
    created_at: dt.datetime


class CriticalStock(BaseSchema):
    product: str
    code: str
    warehouse: str
    stock: int


class DashboardMetrics(BaseSchema):
    """Aggregate view served to management users."""

    total_sales: float
    total_clients: int
    total_products: int
    total_suppliers: int
    sales_this_month: float
    clients_this_month: int
    pending_complaints: int
    abandoned_carts: int
    low_stock_products: int
    sales_by_month: list[MonthlySales] = Field(default_factory=list)
    top_products: list[TopProduct] = Field(default_factory=list)
    recent_sales: list[RecentSale] = Field(default_factory=list)
    recent_complaints: list[RecentComplaint] = Field(default_factory=list)
    critical_stock: list[CriticalStock] = Field(default_factory=list)
    abilities: dict[str, Any] = Field(default_factory=dict)


__all__ = [
    "CriticalStock",
    "DashboardMetrics",
    "MonthlySales",
    "RecentComplaint",
    "RecentSale",
    "SaleLine",
    "TopProduct",
]
