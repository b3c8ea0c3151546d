from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy import update

from backoffice_api.core.http.guards import DASHBOARD_MESSAGE
from backoffice_api.db import session_scope
from backoffice_api.models import User
from backoffice_api.settings import Settings
from tests.utils import error_code, login, seed_catalog

pytestmark = pytest.mark.asyncio


async def test_client_summary(async_client: AsyncClient, make_user) -> None:
    client = await make_user("client", name="Carla Client")
    await seed_catalog(customer_user_id=client.id)
    await login(async_client, email=client.email, password=client.password)

    response = await async_client.get("/api/client/dashboard")

    assert response.status_code == 200, response.text
    assert response.json() == {
        "name": "Carla Client",
        "nit": f"AUTO-{client.id}",
        "purchases_count": 1,
        "purchases_total": 100.0,
        "cart_items": 2,
    }


async def test_new_client_has_empty_summary(async_client: AsyncClient, make_user) -> None:
    client = await make_user("client")
    await login(async_client, email=client.email, password=client.password)

    response = await async_client.get("/api/client/dashboard")

    assert response.status_code == 200
    assert response.json()["purchases_count"] == 0
    assert response.json()["cart_items"] == 0


async def test_staff_cannot_open_client_portal(async_client: AsyncClient, make_user) -> None:
    admin = await make_user("admin")
    await login(async_client, email=admin.email, password=admin.password)

    response = await async_client.get("/api/client/dashboard")

    assert response.status_code == 403
    assert error_code(response) == "forbidden"


async def test_deactivated_client_loses_portal_and_dashboard(
    async_client: AsyncClient,
    make_user,
    settings: Settings,
) -> None:
    client = await make_user("client")
    await login(async_client, email=client.email, password=client.password)
    async with session_scope(settings) as session:
        await session.execute(update(User).where(User.id == client.id).values(is_active=False))

    portal = await async_client.get("/api/client/dashboard")
    dashboard = await async_client.get("/api/dashboard")

    assert portal.status_code == 403
    assert portal.json()["detail"]["message"] == DASHBOARD_MESSAGE
    assert dashboard.status_code == 403
    assert dashboard.json()["detail"]["message"] == DASHBOARD_MESSAGE
