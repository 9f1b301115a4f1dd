"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic. Used by main.py; no business
logic here, only wiring of infrastructure (cache, telemetry, DB engine
dispose). Everything created here lives on app.state for the app's lifetime.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI

from taskflow.core.config import get_settings
from taskflow.infrastructure.persistence import database

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: Redis cache (if enabled), telemetry (if enabled).
    Shutdown order: cache disconnect, telemetry shutdown, SQL engine dispose.
    """
    settings = get_settings()

    # ---- Startup ----
    if settings.redis_enabled:
        from taskflow.infrastructure.cache.redis_cache import CacheService

        cache = CacheService(settings=settings)
        await cache.connect()
        app.state.cache = cache
    else:
        app.state.cache = None

    app.state.telemetry = None
    if settings.telemetry_enabled:
        from taskflow.shared.telemetry.telemetry import TelemetryConfig

        telemetry = TelemetryConfig.from_settings(settings)
        telemetry.start(app, database.get_engine())
        app.state.telemetry = telemetry

    yield

    # ---- Shutdown ----
    if app.state.cache is not None:
        await app.state.cache.disconnect()
        logger.info("Cache disconnected")

    if app.state.telemetry is not None:
        app.state.telemetry.shutdown()
        logger.info("Telemetry shutdown complete")

    if database.engine is not None:
        await database.dispose_engine()
        logger.info("Database engine disposed")
