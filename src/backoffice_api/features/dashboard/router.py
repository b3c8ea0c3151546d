"""Back-office dashboard route."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Security, status

from backoffice_api.api.deps import get_dashboard_service
from backoffice_api.core.http import (
    AuthorizationDep,
    redirect_clients_to_portal,
    require_authenticated,
    require_dashboard_access,
    require_permission,
)
from backoffice_api.core.rbac.registry import Permissions

from .schemas import DashboardMetrics
from .service import DashboardService

router = APIRouter(tags=["dashboard"])


@router.get(
    "/dashboard",
    name="dashboard",
    response_model=DashboardMetrics,
    status_code=status.HTTP_200_OK,
    summary="Aggregate metrics for management users",
    responses={
        status.HTTP_303_SEE_OTHER: {"description": "Clients are sent to the client portal."},
        status.HTTP_403_FORBIDDEN: {"description": "Dashboard access required."},
    },
    dependencies=[
        Security(require_authenticated),
        Depends(redirect_clients_to_portal),
        Depends(require_dashboard_access),
        Depends(require_permission(Permissions.DASHBOARD_ACCESS)),
    ],
)
async def read_dashboard(
    auth: AuthorizationDep,
    service: Annotated[DashboardService, Depends(get_dashboard_service)],
) -> DashboardMetrics:
    return await service.metrics(abilities=auth.abilities())


__all__ = ["router"]
