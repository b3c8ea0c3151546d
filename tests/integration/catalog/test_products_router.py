from __future__ import annotations

import pytest
from httpx import AsyncClient

from backoffice_api.core.http.guards import MANAGE_PRODUCTS_MESSAGE
from tests.utils import error_code, login, seed_catalog

pytestmark = pytest.mark.asyncio


async def test_products_list_with_stock_totals(async_client: AsyncClient, make_user) -> None:
    employee = await make_user("employee")
    client = await make_user("client")
    await seed_catalog(customer_user_id=client.id)
    await login(async_client, email=employee.email, password=employee.password)

    response = await async_client.get("/api/products", params={"sort": "-stock"})

    assert response.status_code == 200, response.text
    payload = response.json()
    assert payload["total"] == 2
    assert [(item["code"], item["total_stock"]) for item in payload["items"]] == [
        ("P-OK", 40),
        ("P-LOW", 3),
    ]


async def test_products_search_by_code(async_client: AsyncClient, make_user) -> None:
    admin = await make_user("admin")
    client = await make_user("client")
    await seed_catalog(customer_user_id=client.id)
    await login(async_client, email=admin.email, password=admin.password)

    response = await async_client.get("/api/products", params={"q": "p-low"})

    assert [item["name"] for item in response.json()["items"]] == ["Lamp"]


async def test_product_detail_lists_warehouses(async_client: AsyncClient, make_user) -> None:
    admin = await make_user("admin")
    client = await make_user("client")
    seeded = await seed_catalog(customer_user_id=client.id)
    await login(async_client, email=admin.email, password=admin.password)

    response = await async_client.get(f"/api/products/{seeded.low_product_id}")

    assert response.status_code == 200
    detail = response.json()
    assert detail["total_stock"] == 3
    assert detail["stock"] == [
        {"warehouse_id": detail["stock"][0]["warehouse_id"], "warehouse": "Central", "stock": 3}
    ]

    missing = await async_client.get("/api/products/99999")
    assert missing.status_code == 404
    assert error_code(missing) == "product_not_found"


async def test_products_require_a_product_permission(async_client: AsyncClient, make_user) -> None:
    user = await make_user()
    await login(async_client, email=user.email, password=user.password)

    response = await async_client.get("/api/products")

    assert response.status_code == 403
    assert response.json()["detail"]["message"] == MANAGE_PRODUCTS_MESSAGE
