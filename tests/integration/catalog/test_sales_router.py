from __future__ import annotations

import pytest
from httpx import AsyncClient

from backoffice_api.core.http.guards import MANAGE_SALES_MESSAGE
from tests.utils import error_code, login, seed_catalog

pytestmark = pytest.mark.asyncio


async def test_sales_filter_by_status(async_client: AsyncClient, make_user) -> None:
    organizer = await make_user("organizer")
    client = await make_user("client")
    seeded = await seed_catalog(customer_user_id=client.id)
    await login(async_client, email=organizer.email, password=organizer.password)

    everything = await async_client.get("/api/sales", params={"sort": "-total"})
    assert everything.status_code == 200, everything.text
    assert [item["id"] for item in everything.json()["items"]] == [
        seeded.completed_sale_id,
        seeded.pending_sale_id,
    ]

    pending = await async_client.get("/api/sales", params={"status": "pending"})
    assert [item["id"] for item in pending.json()["items"]] == [seeded.pending_sale_id]
    assert pending.json()["items"][0]["customer_nit"] == f"AUTO-{client.id}"


async def test_sale_detail_includes_lines(async_client: AsyncClient, make_user) -> None:
    admin = await make_user("admin")
    client = await make_user("client")
    seeded = await seed_catalog(customer_user_id=client.id)
    await login(async_client, email=admin.email, password=admin.password)

    response = await async_client.get(f"/api/sales/{seeded.completed_sale_id}")

    assert response.status_code == 200
    sale = response.json()
    assert sale["items_count"] == 1
    assert sale["details"][0]["product_name"] == "Lamp"
    assert sale["details"][0]["quantity"] == 2

    missing = await async_client.get("/api/sales/99999")
    assert missing.status_code == 404
    assert error_code(missing) == "sale_not_found"


async def test_clients_cannot_browse_sales(async_client: AsyncClient, make_user) -> None:
    client = await make_user("client")
    await login(async_client, email=client.email, password=client.password)

    response = await async_client.get("/api/sales")

    assert response.status_code == 403
    assert response.json()["detail"]["message"] == MANAGE_SALES_MESSAGE
