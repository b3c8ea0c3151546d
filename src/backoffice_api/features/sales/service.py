"""Sale note listing for management users."""

from __future__ import annotations

import datetime as dt

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from backoffice_api.common.pagination import paginate_sql
from backoffice_api.common.sorting import resolve_sort
from backoffice_api.features.dashboard.schemas import SaleLine
from backoffice_api.models import SaleDetail, SaleNote, SaleStatus

from .schemas import SaleDetailOut, SaleOut, SalePage

SORT_FIELDS = {
    "date": (SaleNote.date.asc(), SaleNote.date.desc()),
    "total": (SaleNote.total.asc(), SaleNote.total.desc()),
    "status": (SaleNote.status.asc(), SaleNote.status.desc()),
}
DEFAULT_SORT = "-date"
ID_FIELD = (SaleNote.id.asc(), SaleNote.id.desc())


class SalesService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session

    async def list_sales(
        self,
        *,
        status_filter: SaleStatus | None,
        start: dt.date | None,
        end: dt.date | None,
        sort: str | None,
        page: int,
        page_size: int,
    ) -> SalePage:
        stmt = select(SaleNote).options(
            selectinload(SaleNote.customer),
            selectinload(SaleNote.details),
        )
        if status_filter is not None:
            stmt = stmt.where(SaleNote.status == status_filter)
        if start is not None:
            stmt = stmt.where(SaleNote.date >= start)
        if end is not None:
            stmt = stmt.where(SaleNote.date <= end)

        rows, total, has_next = await paginate_sql(
            self._session,
            stmt,
            page=page,
            page_size=page_size,
            order_by=resolve_sort(sort, allowed=SORT_FIELDS, default=DEFAULT_SORT, id_field=ID_FIELD),
        )
        return SalePage(
            items=[self._summary(sale) for sale in rows],
            page=page,
            page_size=page_size,
            has_next=has_next,
            has_previous=page > 1,
            total=total,
        )

    async def get_sale(self, *, sale_id: int) -> SaleDetailOut:
        stmt = (
            select(SaleNote)
            .options(
                selectinload(SaleNote.customer),
                selectinload(SaleNote.details).selectinload(SaleDetail.product),
            )
            .where(SaleNote.id == sale_id)
        )
        sale = (await self._session.execute(stmt)).scalar_one_or_none()
        if sale is None:
            raise HTTPException(
                status.HTTP_404_NOT_FOUND,
                detail={"error": "sale_not_found", "message": "Sale not found."},
            )
        return SaleDetailOut(
            **self._summary(sale).model_dump(),
            notes=sale.notes,
            details=[
                SaleLine(
                    product_id=detail.product_id,
                    product_name=detail.product.name if detail.product is not None else None,
                    quantity=detail.quantity,
                    unit_price=float(detail.unit_price),
                    total=float(detail.total),
                )
                for detail in sale.details
            ],
        )

    @staticmethod
    def _summary(sale: SaleNote) -> SaleOut:
        return SaleOut(
            id=sale.id,
            date=sale.date,
            total=float(sale.total or 0),
            status=sale.status,
            customer_id=sale.customer_id,
            customer_nit=sale.customer.nit if sale.customer is not None else None,
            items_count=len(sale.details),
        )


__all__ = ["SalesService"]
