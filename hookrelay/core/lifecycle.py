"""
Application lifecycle management using the FastAPI lifespan pattern.

Startup fails hard when the database never answers; a process that cannot
persist captures must not accept traffic.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from hookrelay.config.settings import Settings, get_settings
from hookrelay.database.async_db import create_tables, dispose_engine, wait_for_database
from hookrelay.services.webhook.forwarder import WebhookForwarder

logger = logging.getLogger(__name__)


class LifecycleManager:
    """
    Manages application startup and shutdown.

    Owns the webhook forwarder: it is created on startup, published on
    `app.state.forwarder`, and shut down (in-flight forwards cancelled,
    HTTP client closed) on exit.
    """

    def __init__(self, app: FastAPI, settings: Settings | None = None) -> None:
        self._app = app
        self._settings = settings or get_settings()
        self._forwarder: WebhookForwarder | None = None
        self._initialized = False

    async def startup(self) -> None:
        if self._initialized:
            logger.warning("Lifecycle already initialized, skipping startup")
            return

        logger.info("Starting application lifecycle...")

        self._verify_configurations()

        await wait_for_database(
            attempts=self._settings.DB_CONNECT_RETRIES,
            delay=self._settings.DB_CONNECT_RETRY_DELAY,
        )

        if self._settings.DB_CREATE_TABLES:
            await create_tables()

        self._forwarder = WebhookForwarder(timeout=self._settings.FORWARD_TIMEOUT_SECONDS)
        self._app.state.forwarder = self._forwarder

        self._initialized = True
        logger.info(f"Application lifecycle startup completed, public base URL: {self._settings.public_base_url}")

    async def shutdown(self) -> None:
        if not self._initialized:
            logger.warning("Lifecycle not initialized, skipping shutdown")
            return

        logger.info("Stopping application lifecycle...")

        if self._forwarder is not None:
            await self._forwarder.shutdown()
            self._forwarder = None

        await dispose_engine()

        self._initialized = False
        logger.info("Application lifecycle shutdown completed")

    def _verify_configurations(self) -> None:
        """Log configuration that is legal but probably unintended."""
        if not self._settings.BASE_URL:
            logger.warning(f"BASE_URL not configured - webhook URLs will use {self._settings.public_base_url}")

        if self._settings.AUTH_LOGIN_ENABLED:
            logger.warning("AUTH_LOGIN_ENABLED=True - /auth/login registers users without identity proofing")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Usage:
        app = FastAPI(lifespan=lifespan)
    """
    settings = getattr(app.state, "settings", None)
    lifecycle = LifecycleManager(app, settings)

    await lifecycle.startup()

    yield

    await lifecycle.shutdown()
