"""Application lifespan: startup and shutdown.

Single place for all startup/shutdown logic (SRP). Used by main.py;
no business logic here, only wiring of infrastructure (HTTP client,
database engine, service container, periodic random pool refresh).
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import httpx
from fastapi import FastAPI

from imgbed.core.config import get_settings
from imgbed.core.container import ServiceContainer
from imgbed.shared import background

logger = logging.getLogger(__name__)


@asynccontextmanager
async def create_lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Run startup then yield; on exit run shutdown.

    Startup order: shared HTTP client, schema (if enabled), container
    wiring and warm-up, periodic random pool refresh. Shutdown order:
    refresh task cancel, background drain, HTTP client close, engine dispose.
    """
    settings = get_settings()

    # ---- Startup ----
    from imgbed.infrastructure.persistence import database

    # Shared HTTP client for third-party host calls and health probes (connection reuse).
    app.state.http_client = httpx.AsyncClient(timeout=settings.upload_api_timeout_seconds)

    if settings.auto_create_schema:
        await database.create_schema()

    container = ServiceContainer.from_session_factory(
        settings, database.get_session_factory(), app.state.http_client
    )
    await container.warm_up()
    app.state.container = container

    app.state.random_cache_task = asyncio.create_task(
        container.random_cache.run_periodic(settings.random_cache_refresh_seconds),
        name="random-image-cache-periodic",
    )
    logger.info("%s %s started", settings.app_name, settings.app_version)

    yield

    # ---- Shutdown ----
    refresh_task = getattr(app.state, "random_cache_task", None)
    if refresh_task is not None:
        refresh_task.cancel()
        try:
            await refresh_task
        except asyncio.CancelledError:
            pass
        logger.info("Random image cache refresh task stopped")

    if background.pending_count():
        logger.info("Waiting for %d background task(s)", background.pending_count())
        await background.drain(timeout=10.0)

    if getattr(app.state, "http_client", None) is not None:
        await app.state.http_client.aclose()
        app.state.http_client = None
        logger.info("HTTP client closed")

    await database.dispose_engine()
    logger.info("Database engine disposed")
