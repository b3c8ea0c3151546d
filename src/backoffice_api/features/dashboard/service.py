"""Aggregate read queries behind the back-office dashboard."""

from __future__ import annotations

import calendar
import datetime as dt
import logging
from collections import defaultdict
from decimal import Decimal
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backoffice_api.common.logging import log_context
from backoffice_api.models import (
    Cart,
    CartStatus,
    Complaint,
    ComplaintStatus,
    Customer,
    Product,
    ProductInventory,
    SaleDetail,
    SaleNote,
    SaleStatus,
    Supplier,
    Warehouse,
)
from backoffice_api.settings import Settings

from .schemas import (
    CriticalStock,
    DashboardMetrics,
    MonthlySales,
    RecentComplaint,
    RecentSale,
    SaleLine,
    TopProduct,
)

logger = logging.getLogger(__name__)

SALES_HISTORY_MONTHS = 6
TOP_PRODUCTS_LIMIT = 10
RECENT_SALES_LIMIT = 10
RECENT_COMPLAINTS_LIMIT = 5
CRITICAL_STOCK_LIMIT = 20


def months_ago(day: dt.date, months: int) -> dt.date:
    """Same day ``months`` earlier, clamped to the end of shorter months."""

    index = day.year * 12 + (day.month - 1) - months
    year, month = divmod(index, 12)
    month += 1
    last_day = calendar.monthrange(year, month)[1]
    return dt.date(year, month, min(day.day, last_day))


def month_bounds(day: dt.date) -> tuple[dt.date, dt.date]:
    """First day of ``day``'s month and first day of the next month."""

    start = day.replace(day=1)
    end = dt.date(start.year + 1, 1, 1) if start.month == 12 else start.replace(month=start.month + 1)
    return start, end


def _money(value: Decimal | float | int | None) -> float:
    return float(value or 0)


def group_sales_by_month(rows: list[tuple[dt.date, Decimal]]) -> list[MonthlySales]:
    """Bucket ``(date, total)`` pairs by year/month, newest first."""

    buckets: dict[tuple[int, int], list[Decimal]] = defaultdict(list)
    for day, total in rows:
        buckets[(day.year, day.month)].append(total or Decimal("0"))
    return [
        MonthlySales(year=year, month=month, total=_money(sum(totals)), count=len(totals))
        for (year, month), totals in sorted(buckets.items(), reverse=True)
    ]


class DashboardService:
    """Compute every dashboard metric with plain aggregate queries."""

    def __init__(self, *, session: AsyncSession, settings: Settings) -> None:
        self._session = session
        self._settings = settings

    async def _scalar(self, stmt: Any) -> Any:
        return (await self._session.execute(stmt)).scalar_one()

    async def metrics(self, *, abilities: dict[str, Any], today: dt.date | None = None) -> DashboardMetrics:
        today = today or dt.datetime.now(tz=dt.UTC).date()
        month_start, next_month = month_bounds(today)
        completed = SaleNote.status == SaleStatus.COMPLETED
        threshold = self._settings.low_stock_threshold

        total_sales = await self._scalar(select(func.coalesce(func.sum(SaleNote.total), 0)).where(completed))
        total_clients = await self._scalar(select(func.count(Customer.id)))
        total_products = await self._scalar(select(func.count(Product.id)))
        total_suppliers = await self._scalar(select(func.count(Supplier.id)))
        sales_this_month = await self._scalar(
            select(func.coalesce(func.sum(SaleNote.total), 0)).where(
                completed,
                SaleNote.date >= month_start,
                SaleNote.date < next_month,
            )
        )
        clients_this_month = await self._scalar(
            select(func.count(Customer.id)).where(
                Customer.created_at >= dt.datetime.combine(month_start, dt.time.min, tzinfo=dt.UTC),
                Customer.created_at < dt.datetime.combine(next_month, dt.time.min, tzinfo=dt.UTC),
            )
        )
        pending_complaints = await self._scalar(
            select(func.count(Complaint.id)).where(Complaint.status == ComplaintStatus.PENDING)
        )
        cutoff = dt.datetime.now(tz=dt.UTC) - self._settings.abandoned_cart_after
        abandoned_carts = await self._scalar(
            select(func.count(Cart.id)).where(
                Cart.status == CartStatus.ACTIVE,
                Cart.updated_at < cutoff,
            )
        )
        low_stock_subquery = (
            select(ProductInventory.product_id)
            .group_by(ProductInventory.product_id)
            .having(func.sum(ProductInventory.stock) < threshold)
            .subquery()
        )
        low_stock_products = await self._scalar(select(func.count()).select_from(low_stock_subquery))

        metrics = DashboardMetrics(
            total_sales=_money(total_sales),
            total_clients=int(total_clients),
            total_products=int(total_products),
            total_suppliers=int(total_suppliers),
            sales_this_month=_money(sales_this_month),
            clients_this_month=int(clients_this_month),
            pending_complaints=int(pending_complaints),
            abandoned_carts=int(abandoned_carts),
            low_stock_products=int(low_stock_products),
            sales_by_month=await self._sales_by_month(today),
            top_products=await self._top_products(),
            recent_sales=await self._recent_sales(),
            recent_complaints=await self._recent_complaints(),
            critical_stock=await self._critical_stock(threshold),
            abilities=abilities,
        )
        logger.debug(
            "dashboard.metrics.success",
            extra=log_context(total_sales=metrics.total_sales, low_stock=metrics.low_stock_products),
        )
        return metrics

    async def _sales_by_month(self, today: dt.date) -> list[MonthlySales]:
        since = months_ago(today, SALES_HISTORY_MONTHS)
        result = await self._session.execute(
            select(SaleNote.date, SaleNote.total).where(
                SaleNote.status == SaleStatus.COMPLETED,
                SaleNote.date >= since,
            )
        )
        return group_sales_by_month([(day, total) for day, total in result.all()])

    async def _top_products(self) -> list[TopProduct]:
        units = func.sum(SaleDetail.quantity).label("units_sold")
        revenue = func.sum(SaleDetail.total).label("revenue")
        stmt = (
            select(Product.id, Product.name, Product.sale_price, units, revenue)
            .join(SaleDetail, SaleDetail.product_id == Product.id)
            .join(SaleNote, SaleNote.id == SaleDetail.sale_id)
            .where(SaleNote.status == SaleStatus.COMPLETED)
            .group_by(Product.id, Product.name, Product.sale_price)
            .order_by(units.desc(), Product.id.asc())
            .limit(TOP_PRODUCTS_LIMIT)
        )
        return [
            TopProduct(
                id=product_id,
                name=name,
                sale_price=_money(sale_price),
                units_sold=int(units_sold or 0),
                revenue=_money(total_revenue),
            )
            for product_id, name, sale_price, units_sold, total_revenue in (
                await self._session.execute(stmt)
            ).all()
        ]

    async def _recent_sales(self) -> list[RecentSale]:
        stmt = (
            select(SaleNote)
            .options(selectinload(SaleNote.details).selectinload(SaleDetail.product))
            .where(SaleNote.status == SaleStatus.COMPLETED)
            .order_by(SaleNote.date.desc(), SaleNote.id.desc())
            .limit(RECENT_SALES_LIMIT)
        )
        sales = (await self._session.execute(stmt)).scalars().all()
        return [
            RecentSale(
                id=sale.id,
                date=sale.date,
                total=_money(sale.total),
                status=sale.status,
                customer_id=sale.customer_id,
                details=[
                    SaleLine(
                        product_id=detail.product_id,
                        product_name=detail.product.name if detail.product is not None else None,
                        quantity=detail.quantity,
                        unit_price=_money(detail.unit_price),
                        total=_money(detail.total),
                    )
                    for detail in sale.details
                ],
            )
            for sale in sales
        ]

    async def _recent_complaints(self) -> list[RecentComplaint]:
        stmt = (
            select(Complaint)
            .order_by(Complaint.created_at.desc(), Complaint.id.desc())
            .limit(RECENT_COMPLAINTS_LIMIT)
        )
        return [
            RecentComplaint.model_validate(complaint)
            for complaint in (await self._session.execute(stmt)).scalars().all()
        ]

    async def _critical_stock(self, threshold: int) -> list[CriticalStock]:
        stmt = (
            select(Product.name, Product.code, Warehouse.name, ProductInventory.stock)
            .join(Product, Product.id == ProductInventory.product_id)
            .join(Warehouse, Warehouse.id == ProductInventory.warehouse_id)
            .where(ProductInventory.stock <= threshold)
            .order_by(ProductInventory.stock.asc(), ProductInventory.id.asc())
            .limit(CRITICAL_STOCK_LIMIT)
        )
        return [
            CriticalStock(product=product, code=code, warehouse=warehouse, stock=int(stock))
            for product, code, warehouse, stock in (await self._session.execute(stmt)).all()
        ]


__all__ = ["DashboardService", "group_sales_by_month", "month_bounds", "months_ago"]
