"""FastAPI lifespan helpers for the back-office application."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.routing import Lifespan
from sqlalchemy.engine import make_url

from backoffice_api.db import dispose_engine, ensure_database_ready, session_scope
from backoffice_api.features.rbac import RbacService
from backoffice_api.settings import Settings

logger = logging.getLogger(__name__)


async def sync_rbac_registry(settings: Settings) -> None:
    """Seed the permission and system role catalogs."""

    async with session_scope(settings) as session:
        await RbacService(session=session).sync_registry()
    logger.info("rbac.registry.sync.complete")


def create_application_lifespan(
    *,
    settings: Settings,
) -> Lifespan[FastAPI]:
    """Return the FastAPI lifespan handler used by the app factory."""

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app.state.settings = settings
        safe_url = make_url(settings.database_dsn).render_as_string(hide_password=True)
        if settings.secret_key_generated:
            logger.warning(
                "security.secret_key.generated",
                extra={"detail": "BACKOFFICE_SECRET_KEY is unset; sessions end on restart."},
            )

        logger.info("db.init.start", extra={"database_url": safe_url})
        try:
            await ensure_database_ready(settings)
            await sync_rbac_registry(settings)
            logger.info("db.init.complete", extra={"database_url": safe_url})
            yield
        finally:
            await dispose_engine()

    return lifespan


__all__ = ["create_application_lifespan", "sync_rbac_registry"]
