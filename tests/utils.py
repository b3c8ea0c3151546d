"""Helper functions shared across tests."""

from __future__ import annotations

import datetime as dt
from dataclasses import dataclass
from decimal import Decimal

from httpx import AsyncClient, Response
from sqlalchemy import select

from backoffice_api.db import session_scope
from backoffice_api.models import (
    Cart,
    CartItem,
    CartStatus,
    Complaint,
    ComplaintType,
    Customer,
    Product,
    ProductInventory,
    SaleDetail,
    SaleNote,
    SaleStatus,
    Supplier,
    Warehouse,
)
from backoffice_api.settings import get_settings


async def login(client: AsyncClient, *, email: str, password: str) -> str:
    """Sign in through the login form and return the CSRF token.

    The session cookie stays in the client's cookie jar.
    """

    response = await client.post(
        "/api/auth/login",
        data={"email": email, "password": password},
    )
    assert response.status_code == 303, response.text
    settings = get_settings()
    assert client.cookies.get(settings.session_cookie_name), "Session cookie missing"
    token = client.cookies.get(settings.session_csrf_cookie_name)
    assert token, "CSRF cookie missing"
    return token


def csrf_headers(token: str) -> dict[str, str]:
    return {"X-CSRF-Token": token}


def error_code(response: Response) -> str | None:
    detail = response.json().get("detail")
    return detail.get("error") if isinstance(detail, dict) else None


@dataclass(slots=True)
class SeededCatalog:
    low_product_id: int
    stocked_product_id: int
    completed_sale_id: int
    pending_sale_id: int


async def seed_catalog(*, customer_user_id: int, today: dt.date | None = None) -> SeededCatalog:
    """Persist a small store: two products, two sales, a cart and a complaint.

    The completed sale (total 100) sells two units of the low-stock product to
    the customer owned by ``customer_user_id``; the pending sale totals 50.
    """

    today = today or dt.datetime.now(tz=dt.UTC).date()
    async with session_scope(get_settings()) as session:
        customer = (
            await session.execute(select(Customer).where(Customer.user_id == customer_user_id))
        ).scalar_one()
        warehouse = Warehouse(name="Central", location="Main street")
        low = Product(code="P-LOW", name="Lamp", sale_price=Decimal("50.00"), purchase_price=Decimal("20"))
        stocked = Product(code="P-OK", name="Table", sale_price=Decimal("120.00"), purchase_price=Decimal("70"))
        session.add_all([warehouse, low, stocked, Supplier(name="Acme Supplies")])
        await session.flush()

        session.add_all(
            [
                ProductInventory(product_id=low.id, warehouse_id=warehouse.id, stock=3),
                ProductInventory(product_id=stocked.id, warehouse_id=warehouse.id, stock=40),
            ]
        )
        completed = SaleNote(
            customer_id=customer.id,
            date=today,
            total=Decimal("100.00"),
            status=SaleStatus.COMPLETED,
        )
        pending = SaleNote(
            customer_id=customer.id,
            date=today,
            total=Decimal("50.00"),
            status=SaleStatus.PENDING,
        )
        session.add_all([completed, pending])
        await session.flush()
        session.add(
            SaleDetail(
                sale_id=completed.id,
                product_id=low.id,
                quantity=2,
                unit_price=Decimal("50.00"),
                total=Decimal("100.00"),
            )
        )

        stale = dt.datetime.now(tz=dt.UTC) - dt.timedelta(days=30)
        cart = Cart(
            customer_id=customer.id,
            total=Decimal("240.00"),
            status=CartStatus.ACTIVE,
            created_at=stale,
            updated_at=stale,
        )
        session.add(cart)
        await session.flush()
        session.add(CartItem(cart_id=cart.id, product_id=stocked.id, quantity=2))
        session.add(
            Complaint(
                name="Pedro",
                email="pedro@example.com",
                type=ComplaintType.COMPLAINT,
                subject="Late delivery",
            )
        )
        await session.flush()
        return SeededCatalog(
            low_product_id=low.id,
            stocked_product_id=stocked.id,
            completed_sale_id=completed.id,
            pending_sale_id=pending.id,
        )


__all__ = ["SeededCatalog", "csrf_headers", "error_code", "login", "seed_catalog"]
