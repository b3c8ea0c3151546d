"""Report routes for management roles."""

from __future__ import annotations

import datetime as dt
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Security

from backoffice_api.api.deps import get_reports_service
from backoffice_api.core.http import require_authenticated, require_management_role, require_reports_access

from .schemas import SalesReport
from .service import ReportsService

router = APIRouter(
    prefix="/reports",
    tags=["reports"],
    dependencies=[
        Security(require_authenticated),
        Depends(require_management_role),
        Depends(require_reports_access),
    ],
)


@router.get("/sales", name="reports.sales", response_model=SalesReport, summary="Monthly sales report")
async def sales_report(
    service: Annotated[ReportsService, Depends(get_reports_service)],
    start: Annotated[dt.date | None, Query()] = None,
    end: Annotated[dt.date | None, Query()] = None,
) -> SalesReport:
    return await service.sales_report(start=start, end=end)


__all__ = ["router"]
