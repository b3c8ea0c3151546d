"""Client self-registration."""

from __future__ import annotations

import pytest
from httpx import AsyncClient
from sqlalchemy import select

from backoffice_api.db import session_scope
from backoffice_api.features.auth.service import EMAIL_TAKEN_MESSAGE, REGISTERED_MESSAGE, AuthService
from backoffice_api.models import Customer, User, UserRoleAssignment
from backoffice_api.settings import Settings

pytestmark = pytest.mark.asyncio


def _form(**overrides: str) -> dict[str, str]:
    payload = {
        "name": "Lucia Rojas",
        "email": "lucia@example.com",
        "password": "lucia-password",
        "password_confirmation": "lucia-password",
        "terms": "on",
    }
    payload.update(overrides)
    return payload


async def test_registration_creates_client_with_customer(
    async_client: AsyncClient,
    settings: Settings,
) -> None:
    response = await async_client.post("/api/auth/register", data=_form())

    assert response.status_code == 303
    assert response.headers["location"] == settings.dashboard_path
    assert async_client.cookies.get(settings.session_cookie_name)

    async with session_scope(settings) as session:
        user = (
            await session.execute(select(User).where(User.email_canonical == "lucia@example.com"))
        ).scalar_one()
        assignments = (
            await session.execute(
                select(UserRoleAssignment).where(UserRoleAssignment.user_id == user.id)
            )
        ).scalars().all()
        customers = (
            await session.execute(select(Customer).where(Customer.user_id == user.id))
        ).scalars().all()
        role_ids = [assignment.role_id for assignment in assignments]
        user_id = user.id
        is_active = user.is_active

    assert is_active is True
    assert len(role_ids) == 1
    assert [customer.nit for customer in customers] == [f"AUTO-{user_id}"]

    snapshot = (await async_client.get("/api/auth/session")).json()
    assert snapshot["abilities"]["roles"] == ["client"]
    assert snapshot["abilities"]["user_type"] == "client"
    assert snapshot["flash"]["success"] == REGISTERED_MESSAGE


async def test_registration_rejects_taken_email(
    async_client: AsyncClient,
    make_user,
    settings: Settings,
) -> None:
    existing = await make_user("employee", email="taken@example.com")

    response = await async_client.post(
        "/api/auth/register",
        data=_form(email=existing.email.upper()),
    )

    assert response.status_code == 303
    assert response.headers["location"] == settings.register_path
    assert async_client.cookies.get(settings.session_cookie_name) is None
    snapshot = (await async_client.get("/api/auth/session")).json()
    assert snapshot["flash"]["errors"]["email"] == "The email has already been taken."
    assert snapshot["flash"]["old"]["name"] == "Lucia Rojas"


async def test_registration_requires_matching_passwords(
    async_client: AsyncClient,
    settings: Settings,
) -> None:
    response = await async_client.post(
        "/api/auth/register",
        data=_form(password_confirmation="different-password"),
    )

    assert response.headers["location"] == settings.register_path
    snapshot = (await async_client.get("/api/auth/session")).json()
    assert snapshot["flash"]["errors"]["password"] == "The password confirmation does not match."


async def test_registration_requires_terms(async_client: AsyncClient, settings: Settings) -> None:
    payload = _form()
    payload.pop("terms")

    response = await async_client.post("/api/auth/register", data=payload)

    assert response.headers["location"] == settings.register_path
    snapshot = (await async_client.get("/api/auth/session")).json()
    assert "terms" in snapshot["flash"]["errors"]


async def test_registration_enforces_password_length(
    async_client: AsyncClient,
    settings: Settings,
) -> None:
    response = await async_client.post(
        "/api/auth/register",
        data=_form(password="short", password_confirmation="short"),
    )

    assert response.headers["location"] == settings.register_path
    snapshot = (await async_client.get("/api/auth/session")).json()
    assert "password" in snapshot["flash"]["errors"]


async def test_registration_conflict_after_lookup_is_a_field_error(
    async_client: AsyncClient,
    make_user,
    settings: Settings,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    await make_user("employee", email="lucia@example.com")

    async def _missed_lookup(self, email: str) -> None:
        return None

    monkeypatch.setattr(AuthService, "_user_by_email", _missed_lookup)

    response = await async_client.post("/api/auth/register", data=_form())

    assert response.status_code == 303
    assert response.headers["location"] == settings.register_path
    assert async_client.cookies.get(settings.session_cookie_name) is None
    snapshot = (await async_client.get("/api/auth/session")).json()
    assert snapshot["flash"]["errors"]["email"] == EMAIL_TAKEN_MESSAGE
    async with session_scope(settings) as session:
        count = len(
            (
                await session.execute(select(User).where(User.email_canonical == "lucia@example.com"))
            ).scalars().all()
        )
    assert count == 1
