"""Client portal routes."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status

from backoffice_api.api.deps import get_client_portal_service
from backoffice_api.core.http import CurrentUser, require_any_role, require_dashboard_access
from backoffice_api.core.rbac.registry import Roles

from .schemas import ClientDashboard
from .service import ClientPortalService

router = APIRouter(prefix="/client", tags=["client"])


@router.get(
    "/dashboard",
    name="client.dashboard",
    response_model=ClientDashboard,
    status_code=status.HTTP_200_OK,
    summary="Purchase and cart summary for the signed-in client",
    dependencies=[
        Depends(require_any_role(Roles.CLIENT)),
        Depends(require_dashboard_access),
    ],
)
async def read_client_dashboard(
    user: CurrentUser,
    service: Annotated[ClientPortalService, Depends(get_client_portal_service)],
) -> ClientDashboard:
    return await service.summary(user=user)


__all__ = ["router"]
