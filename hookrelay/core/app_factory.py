"""
Application factory for FastAPI.

Builds the app, wires middleware, exception handlers and routes, and
attaches the lifespan that owns the database and the forwarder.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from hookrelay.api.exception_handlers import register_exception_handlers
from hookrelay.api.middleware.auth import AuthenticationMiddleware
from hookrelay.api.middleware.logging_middleware import RequestLoggingMiddleware
from hookrelay.api.router import api_router
from hookrelay.config.settings import Settings, get_settings
from hookrelay.core.lifecycle import lifespan
from hookrelay.services.token_service import TokenService

logger = logging.getLogger(__name__)


class AppFactory:
    """
    Factory for creating and configuring FastAPI applications.

    Each configuration step is handled by a dedicated method.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """
        Initialize app factory.

        Args:
            settings: Application settings (uses default if not provided)
        """
        self._settings = settings or get_settings()

    def create_app(self) -> FastAPI:
        """
        Create and configure the FastAPI application.

        Returns:
            Configured FastAPI application instance.
        """
        app = self._create_base_app()
        app.state.settings = self._settings

        self._configure_middleware(app)
        self._configure_exception_handlers(app)
        self._configure_routes(app)
        self._configure_health_endpoint(app)

        logger.info(f"Application created: {self._settings.PROJECT_NAME}")
        return app

    def _create_base_app(self) -> FastAPI:
        """Create the base FastAPI application with lifespan."""
        return FastAPI(
            title=self._settings.PROJECT_NAME,
            description=self._settings.PROJECT_DESCRIPTION,
            version=self._settings.VERSION,
            docs_url="/docs" if self._settings.is_development else None,
            redoc_url="/redoc" if self._settings.is_development else None,
            lifespan=lifespan,
        )

    def _configure_middleware(self, app: FastAPI) -> None:
        """
        Configure application middleware.

        The last middleware added is the outermost one:
        1. CORS (outermost, so 401 responses carry CORS headers too)
        2. Request logging
        3. Authentication (innermost before handlers)
        """
        app.add_middleware(AuthenticationMiddleware, token_service=TokenService(self._settings))

        app.add_middleware(RequestLoggingMiddleware)

        origins = self._settings.cors_origin_list
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            # Credentials cannot be combined with a wildcard origin
            allow_credentials="*" not in origins,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        logger.info("Middleware configured")

    def _configure_exception_handlers(self, app: FastAPI) -> None:
        """Register exception handlers."""
        register_exception_handlers(app)

    def _configure_routes(self, app: FastAPI) -> None:
        """Configure API routes."""
        app.include_router(api_router)

        logger.info("Routes configured")

    def _configure_health_endpoint(self, app: FastAPI) -> None:
        """Add health check endpoint."""

        @app.get("/health", tags=["health"])
        async def health_check() -> dict[str, str]:
            """
            Verify application health status.

            Returns basic status and environment information.
            """
            return {
                "status": "ok",
                "environment": self._settings.ENVIRONMENT,
            }


def create_app(settings: Settings | None = None) -> FastAPI:
    """
    Create FastAPI application using the factory.

    Args:
        settings: Optional settings override

    Returns:
        Configured FastAPI application
    """
    factory = AppFactory(settings)
    return factory.create_app()
