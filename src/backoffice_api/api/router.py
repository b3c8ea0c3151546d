"""API router composition for the back-office FastAPI application."""

from __future__ import annotations

from fastapi import APIRouter

from backoffice_api.features.auth.router import router as auth_router
from backoffice_api.features.clients.router import router as clients_router
from backoffice_api.features.dashboard.router import router as dashboard_router
from backoffice_api.features.permissions.router import router as permissions_router
from backoffice_api.features.products.router import router as products_router
from backoffice_api.features.reports.router import router as reports_router
from backoffice_api.features.roles.router import router as roles_router
from backoffice_api.features.sales.router import router as sales_router
from backoffice_api.features.users.router import router as users_router

api_router = APIRouter()
api_router.include_router(auth_router, prefix="/auth")
api_router.include_router(dashboard_router)
api_router.include_router(clients_router)
api_router.include_router(users_router)
api_router.include_router(roles_router)
api_router.include_router(permissions_router)
api_router.include_router(products_router)
api_router.include_router(sales_router)
api_router.include_router(reports_router)

__all__ = ["api_router"]
