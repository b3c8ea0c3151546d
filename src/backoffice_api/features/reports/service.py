"""Sales reporting for management roles."""

from __future__ import annotations

import datetime as dt
import logging

from fastapi import HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice_api.common.logging import log_context
from backoffice_api.models import SaleNote, SaleStatus

from .schemas import MonthlySalesReport, SalesReport

logger = logging.getLogger(__name__)


class ReportsService:
    def __init__(self, *, session: AsyncSession) -> None:
        self._session = session

    async def sales_report(self, *, start: dt.date | None, end: dt.date | None) -> SalesReport:
        if start is not None and end is not None and start > end:
            raise HTTPException(
                status.HTTP_422_UNPROCESSABLE_ENTITY,
                detail={"error": "invalid_range", "message": "start must be on or before end."},
            )

        stmt = select(SaleNote.date, SaleNote.total, SaleNote.status)
        if start is not None:
            stmt = stmt.where(SaleNote.date >= start)
        if end is not None:
            stmt = stmt.where(SaleNote.date <= end)

        months: dict[tuple[int, int], MonthlySalesReport] = {}
        report = SalesReport(start=start, end=end)
        for day, total, sale_status in (await self._session.execute(stmt)).all():
            bucket = months.setdefault(
                (day.year, day.month),
                MonthlySalesReport(year=day.year, month=day.month),
            )
            amount = float(total or 0)
            if sale_status == SaleStatus.COMPLETED:
                bucket.completed_total += amount
                bucket.completed_count += 1
                report.completed_total += amount
            else:
                bucket.other_total += amount
                bucket.other_count += 1
                report.other_total += amount

        report.months = [months[key] for key in sorted(months, reverse=True)]
        logger.info(
            "reports.sales.success",
            extra=log_context(months=len(report.months), completed_total=report.completed_total),
        )
        return report


__all__ = ["ReportsService"]
