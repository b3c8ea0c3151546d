"""Shared pytest fixtures for backend tests."""

from __future__ import annotations

import os
from collections.abc import AsyncIterator, Awaitable, Callable, Iterator
from dataclasses import dataclass
from uuid import uuid4

os.environ["BACKOFFICE_TEST_FAST_HASH"] = "1"
os.environ.setdefault("BACKOFFICE_SECRET_KEY", "test-secret-key-for-backoffice-tests-please-change")
os.environ.setdefault("BACKOFFICE_DATABASE_DSN", "sqlite+aiosqlite:///:memory:")

import pytest
import pytest_asyncio
from asgi_lifespan import LifespanManager
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from backoffice_api.core.security.hashing import hash_password
from backoffice_api.db import reset_database_state, session_scope
from backoffice_api.features.rbac import RbacService
from backoffice_api.features.rbac.legacy import ensure_customer
from backoffice_api.main import create_app
from backoffice_api.models import User
from backoffice_api.settings import Settings, get_settings, reload_settings

DEFAULT_PASSWORD = "correct-horse-battery"


@dataclass(slots=True)
class SeededUser:
    id: int
    email: str
    password: str
    name: str


@pytest.fixture()
def settings(tmp_path, monkeypatch: pytest.MonkeyPatch) -> Iterator[Settings]:
    """Point the application at a fresh file-backed SQLite database."""

    db_path = tmp_path / "db" / "backoffice.sqlite"
    monkeypatch.setenv("BACKOFFICE_DATABASE_DSN", f"sqlite+aiosqlite:///{db_path}")
    monkeypatch.setenv("BACKOFFICE_LOGGING_LEVEL", "WARNING")
    reset_database_state()
    resolved = reload_settings()
    assert resolved.database_dsn.endswith("backoffice.sqlite")

    yield resolved

    reset_database_state()
    monkeypatch.undo()
    reload_settings()


@pytest.fixture()
def app(settings: Settings) -> FastAPI:
    """Return an application instance bound to the per-test database."""

    return create_app(settings)


@pytest_asyncio.fixture()
async def async_client(app: FastAPI) -> AsyncIterator[AsyncClient]:
    """Provide an HTTPX async client bound to the FastAPI app."""

    async with LifespanManager(app):
        transport = ASGITransport(app=app)
        async with AsyncClient(transport=transport, base_url="http://testserver") as client:
            yield client


UserFactory = Callable[..., Awaitable[SeededUser]]


@pytest_asyncio.fixture()
async def make_user(async_client: AsyncClient) -> UserFactory:
    """Return a coroutine that persists a user with the given role slugs.

    Depends on ``async_client`` so migrations and the role catalog exist.
    """

    async def _make(
        *roles: str,
        email: str | None = None,
        password: str = DEFAULT_PASSWORD,
        name: str | None = None,
        is_active: bool = True,
        customer: bool | None = None,
    ) -> SeededUser:
        address = email or f"user-{uuid4().hex[:10]}@example.com"
        display = name or address.split("@", 1)[0]
        async with session_scope(get_settings()) as session:
            user = User(
                email=address,
                name=display,
                password_hash=hash_password(password),
                is_active=is_active,
                failed_login_count=0,
            )
            session.add(user)
            await session.flush()
            rbac = RbacService(session=session)
            for slug in roles:
                await rbac.assign_role_by_slug(user=user, slug=slug)
            wants_customer = "client" in roles if customer is None else customer
            if wants_customer:
                await ensure_customer(session, user)
            seeded = SeededUser(id=user.id, email=address, password=password, name=display)
        return seeded

    return _make
