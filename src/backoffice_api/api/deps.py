"""Service factories used by API routers.

Routers import their per-request service constructors from here. Imports are
deferred so feature modules stay free of router-level import cycles.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from backoffice_api.db import get_session
from backoffice_api.settings import Settings, get_settings

SessionDep = Annotated[AsyncSession, Depends(get_session)]
SettingsDep = Annotated[Settings, Depends(get_settings)]


def get_auth_service(session: SessionDep, settings: SettingsDep):
    from backoffice_api.features.auth.service import AuthService

    return AuthService(session=session, settings=settings)


def get_users_service(session: SessionDep, settings: SettingsDep):
    from backoffice_api.features.users.service import UsersService

    return UsersService(session=session, settings=settings)


def get_rbac_service(session: SessionDep):
    from backoffice_api.features.rbac.service import RbacService

    return RbacService(session=session)


def get_dashboard_service(session: SessionDep, settings: SettingsDep):
    from backoffice_api.features.dashboard.service import DashboardService

    return DashboardService(session=session, settings=settings)


def get_client_portal_service(session: SessionDep):
    from backoffice_api.features.clients.service import ClientPortalService

    return ClientPortalService(session=session)


def get_products_service(session: SessionDep):
    from backoffice_api.features.products.service import ProductsService

    return ProductsService(session=session)


def get_sales_service(session: SessionDep):
    from backoffice_api.features.sales.service import SalesService

    return SalesService(session=session)


def get_reports_service(session: SessionDep):
    from backoffice_api.features.reports.service import ReportsService

    return ReportsService(session=session)


__all__ = [
    "SessionDep",
    "SettingsDep",
    "get_auth_service",
    "get_client_portal_service",
    "get_dashboard_service",
    "get_products_service",
    "get_rbac_service",
    "get_reports_service",
    "get_sales_service",
    "get_users_service",
]
