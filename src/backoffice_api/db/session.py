"""Session factory and the per-request FastAPI session dependency."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from backoffice_api.settings import Settings, get_settings

from .engine import get_engine

_SESSION_FACTORY: async_sessionmaker[AsyncSession] | None = None
_SESSION_ENGINE_ID: int | None = None


def get_sessionmaker(settings: Settings | None = None) -> async_sessionmaker[AsyncSession]:
    """Return an ``async_sessionmaker`` bound to the active engine."""

    global _SESSION_FACTORY, _SESSION_ENGINE_ID
    engine = get_engine(settings or get_settings())
    if _SESSION_FACTORY is None or _SESSION_ENGINE_ID != id(engine):
        _SESSION_FACTORY = async_sessionmaker(
            bind=engine,
            expire_on_commit=False,
            autoflush=False,
        )
        _SESSION_ENGINE_ID = id(engine)
    return _SESSION_FACTORY


def reset_session_state() -> None:
    global _SESSION_FACTORY, _SESSION_ENGINE_ID
    _SESSION_FACTORY = None
    _SESSION_ENGINE_ID = None


@asynccontextmanager
async def session_scope(settings: Settings | None = None) -> AsyncIterator[AsyncSession]:
    """Yield a session that commits on success and rolls back on error."""

    session = get_sessionmaker(settings)()
    try:
        yield session
        await session.commit()
    except Exception:
        await session.rollback()
        raise
    finally:
        await session.close()


async def get_session() -> AsyncIterator[AsyncSession]:
    """FastAPI dependency: one AsyncSession per request."""

    async with session_scope() as session:
        yield session


__all__ = ["get_session", "get_sessionmaker", "reset_session_state", "session_scope"]
