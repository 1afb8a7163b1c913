"""FastAPI application entry point with lifespan management.

Startup: load settings, configure logging, build the relay registry, start
the background health check loop.
Shutdown: cancel the health loop.
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from corsrelay.config.relays import build_registry, load_relays
from corsrelay.config.settings import RelaySettings
from corsrelay.logging_config import configure_logging
from corsrelay.middleware.auth import ServiceKeyAuthMiddleware
from corsrelay.middleware.error_handler import register_error_handlers
from corsrelay.middleware.request_id import RequestIdMiddleware
from corsrelay.proxy.probe import HealthProbe
from corsrelay.proxy.selector import ProxySelector
from corsrelay.routers.health import create_health_router
from corsrelay.routers.relays import create_relays_router

logger = logging.getLogger(__name__)

# Shared state for the application, populated during lifespan startup
_state: dict = {}


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: RelaySettings = app.state.settings

    configure_logging(settings.log_level)
    logger.info("Starting relay service on port %d", settings.port)

    registry = build_registry(load_relays(settings.relays_path), settings.upstream())
    selector = ProxySelector(
        registry,
        HealthProbe(timeout_seconds=settings.probe_timeout_seconds),
        health_check_interval_seconds=settings.health_check_interval_seconds,
    )

    health_check_task = asyncio.create_task(selector.health_check_loop())

    app.include_router(create_health_router(registry=registry))
    app.include_router(create_relays_router(selector=selector))

    _state.update({
        "settings": settings,
        "registry": registry,
        "selector": selector,
    })

    logger.info("Relay service started with %d relays", len(registry))

    yield

    logger.info("Shutting down relay service…")

    health_check_task.cancel()
    try:
        await health_check_task
    except asyncio.CancelledError:
        pass

    _state.clear()
    logger.info("Relay service shut down")


def create_app(settings: RelaySettings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or RelaySettings()

    app = FastAPI(
        title="CORS Relay Service",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    register_error_handlers(app)

    # Starlette applies middleware in reverse order of add_middleware calls
    if settings.service_key:
        app.add_middleware(ServiceKeyAuthMiddleware, service_key=settings.service_key)
    app.add_middleware(RequestIdMiddleware)

    return app


app = create_app()
