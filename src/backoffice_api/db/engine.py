"""Async engine management and migration bootstrap."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Any

from alembic import command
from alembic.config import Config
from sqlalchemy import event, text
from sqlalchemy.engine import URL, Connection, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

from backoffice_api.settings import Settings, get_settings

_ENGINE: AsyncEngine | None = None
_ENGINE_KEY: tuple[Any, ...] | None = None
_BOOTSTRAP_LOCK = asyncio.Lock()
_BOOTSTRAPPED_URLS: set[str] = set()

logger = logging.getLogger(__name__)


def _cache_key(settings: Settings) -> tuple[Any, ...]:
    return (
        settings.database_dsn,
        settings.database_echo,
        settings.database_pool_size,
        settings.database_max_overflow,
        settings.database_pool_timeout,
    )


def is_sqlite_memory_url(url: URL) -> bool:
    database = (url.database or "").strip()
    if not database or database == ":memory:":
        return True
    if database.startswith("file:"):
        query = dict(url.query or {})
        if query.get("mode") == "memory":
            return True
    return False


def ensure_sqlite_database_directory(url: URL) -> None:
    """Ensure a filesystem-backed SQLite database can be created."""

    database = (url.database or "").strip()
    if not database or database == ":memory:" or database.startswith("file:"):
        return
    path = Path(database)
    if not path.is_absolute():
        path = Path.cwd() / path
    path.parent.mkdir(parents=True, exist_ok=True)


def render_sync_url(settings: Settings) -> str:
    """Return the synchronous driver URL used by Alembic."""

    url = make_url(settings.database_dsn)
    if url.get_backend_name() == "sqlite":
        url = url.set(drivername="sqlite")
    elif url.drivername == "postgresql+asyncpg":
        url = url.set(drivername="postgresql+psycopg")
    return url.render_as_string(hide_password=False)


def _create_engine(settings: Settings) -> AsyncEngine:
    url = make_url(settings.database_dsn)
    engine_kwargs: dict[str, Any] = {
        "echo": settings.database_echo,
        "pool_pre_ping": True,
    }

    if url.get_backend_name() == "sqlite":
        engine_kwargs["connect_args"] = {
            "check_same_thread": False,
            "timeout": settings.database_pool_timeout,
        }
        if is_sqlite_memory_url(url):
            engine_kwargs["poolclass"] = StaticPool
        else:
            ensure_sqlite_database_directory(url)
    else:
        engine_kwargs["pool_size"] = settings.database_pool_size
        engine_kwargs["max_overflow"] = settings.database_max_overflow
        engine_kwargs["pool_timeout"] = settings.database_pool_timeout

    engine = create_async_engine(url.render_as_string(hide_password=False), **engine_kwargs)

    if url.get_backend_name() == "sqlite":

        @event.listens_for(engine.sync_engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, _connection_record) -> None:
            cursor = dbapi_connection.cursor()
            try:
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.execute("PRAGMA busy_timeout=30000")
            finally:
                cursor.close()

    return engine


def get_engine(settings: Settings | None = None) -> AsyncEngine:
    """Return a cached async engine matching the active settings."""

    global _ENGINE, _ENGINE_KEY
    settings = settings or get_settings()
    key = _cache_key(settings)
    if _ENGINE is None or _ENGINE_KEY != key:
        if _ENGINE is not None:
            _ENGINE.sync_engine.dispose()
        _ENGINE = _create_engine(settings)
        _ENGINE_KEY = key
    return _ENGINE


async def dispose_engine() -> None:
    """Dispose the cached engine (called on application shutdown)."""

    global _ENGINE, _ENGINE_KEY
    if _ENGINE is not None:
        await _ENGINE.dispose()
    _ENGINE = None
    _ENGINE_KEY = None

    from . import session as session_module

    session_module.reset_session_state()


def reset_database_state() -> None:
    """Dispose cached engine, session factories and bootstrap markers."""

    global _ENGINE, _ENGINE_KEY
    if _ENGINE is not None:
        _ENGINE.sync_engine.dispose()
    _ENGINE = None
    _ENGINE_KEY = None

    from . import session as session_module

    session_module.reset_session_state()
    _BOOTSTRAPPED_URLS.clear()


def build_alembic_config(settings: Settings) -> Config:
    config = Config()
    # Preserve the API's logging configuration when migrations run in-process.
    config.attributes["configure_logger"] = False
    config.set_main_option("script_location", str(settings.alembic_migrations_dir))
    config.set_main_option("sqlalchemy.url", render_sync_url(settings))
    return config


def _upgrade_database(settings: Settings, connection: Connection | None = None) -> None:
    config = build_alembic_config(settings)
    if connection is not None:
        config.attributes["connection"] = connection
    command.upgrade(config, "head")


def _apply_migrations(settings: Settings) -> None:
    url = make_url(settings.database_dsn)
    if url.get_backend_name() == "sqlite":
        ensure_sqlite_database_directory(url)
    _upgrade_database(settings)


async def ensure_database_ready(settings: Settings | None = None) -> None:
    """Create the database and apply migrations if needed."""

    resolved = settings or get_settings()
    url = make_url(resolved.database_dsn)
    bootstrap_key = render_sync_url(resolved)

    async with _BOOTSTRAP_LOCK:
        if bootstrap_key in _BOOTSTRAPPED_URLS:
            return

        if url.get_backend_name() == "sqlite" and is_sqlite_memory_url(url):
            engine = get_engine(resolved)
            async with engine.begin() as connection:
                await connection.run_sync(
                    lambda sync_connection: _upgrade_database(resolved, connection=sync_connection)
                )
        else:
            await asyncio.to_thread(_apply_migrations, resolved)
        _BOOTSTRAPPED_URLS.add(bootstrap_key)
        logger.info("database.ready", extra={"backend": url.get_backend_name()})


async def check_database_ready(settings: Settings | None = None) -> None:
    """Verify database connectivity without running migrations."""

    engine = get_engine(settings or get_settings())
    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
    except SQLAlchemyError as exc:
        logger.warning("database.readiness.failed", exc_info=exc)
        raise


__all__ = [
    "build_alembic_config",
    "check_database_ready",
    "dispose_engine",
    "ensure_database_ready",
    "get_engine",
    "render_sync_url",
    "reset_database_state",
]
