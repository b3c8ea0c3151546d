"""Sale note routes for management users."""

from __future__ import annotations

import datetime as dt
from typing import Annotated

from fastapi import APIRouter, Depends, Path, Query, Security

from backoffice_api.api.deps import get_sales_service
from backoffice_api.common.pagination import PageParams
from backoffice_api.core.http import can_manage_sales, require_authenticated
from backoffice_api.models import SaleStatus

from .schemas import SaleDetailOut, SalePage
from .service import SalesService

router = APIRouter(
    prefix="/sales",
    tags=["sales"],
    dependencies=[Security(require_authenticated), Depends(can_manage_sales)],
)

SalesServiceDep = Annotated[SalesService, Depends(get_sales_service)]


@router.get("", name="sales.index", response_model=SalePage, summary="List sale notes")
async def list_sales(
    page: Annotated[PageParams, Depends()],
    service: SalesServiceDep,
    status: Annotated[SaleStatus | None, Query()] = None,
    start: Annotated[dt.date | None, Query(description="Earliest sale date (inclusive).")] = None,
    end: Annotated[dt.date | None, Query(description="Latest sale date (inclusive).")] = None,
    sort: Annotated[str | None, Query(description="date, total or status; '-' for DESC.")] = None,
) -> SalePage:
    return await service.list_sales(
        status_filter=status,
        start=start,
        end=end,
        sort=sort,
        page=page.page,
        page_size=page.page_size,
    )


@router.get("/{sale_id}", name="sales.show", response_model=SaleDetailOut, summary="Show a sale note")
async def show_sale(
    sale_id: Annotated[int, Path(ge=1)],
    service: SalesServiceDep,
) -> SaleDetailOut:
    return await service.get_sale(sale_id=sale_id)


__all__ = ["router"]
