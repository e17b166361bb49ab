"""Splunk Event Reader API: FastAPI application factory."""
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from prometheus_client import make_asgi_app

from ... import __version__
from ...config import Settings, get_settings
from ...services import EventReaderService, create_reader_service
from ..middleware import LoggingMiddleware, MetricsMiddleware, RequestIdMiddleware
from .errors import register_exception_handlers
from .routes import health, transactions

logger = structlog.get_logger("splunk_event_reader.api")

APP_DESCRIPTION = "Reads Splunk events via the Splunk REST API"


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    owned = app.state.reader is None
    if owned:
        app.state.reader = create_reader_service(app.state.settings)
    logger.info(
        "service_started",
        system_code=app.state.settings.app_system_code,
        environment=app.state.settings.environment,
        api_mode=app.state.settings.splunk_api_mode,
    )
    yield
    if owned:
        await app.state.reader.close()
    logger.info("service_stopped")


def create_app(settings: Settings | None = None, reader: EventReaderService | None = None) -> FastAPI:
    """Build the application.

    ``reader`` is created from ``settings`` on startup unless one is given;
    an injected reader is not closed on shutdown.
    """
    settings = settings or get_settings()
    app = FastAPI(
        title=settings.app_name,
        description=APP_DESCRIPTION,
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.reader = reader

    app.add_middleware(MetricsMiddleware)
    app.add_middleware(LoggingMiddleware)
    app.add_middleware(RequestIdMiddleware)

    register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(transactions.router)
    app.mount("/metrics", make_asgi_app())

    return app
