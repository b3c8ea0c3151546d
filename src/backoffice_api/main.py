"""Back-office FastAPI application entry point."""

from __future__ import annotations

import logging

from fastapi import FastAPI

from .api.router import api_router
from .app.lifecycles import create_application_lifespan
from .common.exceptions import register_exception_handlers
from .common.logging import setup_logging
from .common.middleware import register_middleware
from .core.http import register_auth_exception_handlers
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)
API_PREFIX = "/api"


def create_app(settings: Settings | None = None) -> FastAPI:
    """Return a configured FastAPI application."""

    settings = settings or get_settings()
    setup_logging(settings)

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        docs_url="/docs" if settings.api_docs_enabled else None,
        redoc_url="/redoc" if settings.api_docs_enabled else None,
        openapi_url="/openapi.json" if settings.api_docs_enabled else None,
        lifespan=create_application_lifespan(settings=settings),
    )
    app.state.settings = settings

    register_middleware(app, settings)
    register_exception_handlers(app)
    register_auth_exception_handlers(app)
    app.include_router(api_router, prefix=API_PREFIX)
    return app


__all__ = [
    "API_PREFIX",
    "create_app",
]

app = create_app()
