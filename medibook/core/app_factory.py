"""
Application factory for FastAPI.

This module follows SRP by handling only FastAPI application creation and configuration.
"""

import logging
from typing import Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.exceptions import RedisError
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from medibook.api.exception_handlers import register_exception_handlers
from medibook.api.middleware import RequestLoggingMiddleware
from medibook.api.router import api_router
from medibook.config.settings import Settings, get_settings
from medibook.core.container import SchedulingContainer
from medibook.core.lifecycle import lifespan

logger = logging.getLogger(__name__)


class AppFactory:
    """
    Factory for creating and configuring FastAPI applications.

    Each configuration step is handled by a dedicated method. The container
    is stored on app.state so routes and the lifespan share one instance.
    """

    def __init__(self, settings: Settings | None = None, container: SchedulingContainer | None = None) -> None:
        """
        Initialize app factory.

        Args:
            settings: Application settings (uses default if not provided)
            container: Prebuilt container, e.g. with a fake payment gateway
        """
        self._settings = settings or get_settings()
        self._container = container

    def create_app(self) -> FastAPI:
        """
        Create and configure the FastAPI application.

        Returns:
            Configured FastAPI application instance.
        """
        app = self._create_base_app()
        app.state.container = self._container or SchedulingContainer(self._settings)

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
            docs_url=f"{self._settings.API_V1_STR}/docs" if self._settings.DEBUG else None,
            redoc_url=f"{self._settings.API_V1_STR}/redoc" if self._settings.DEBUG else None,
            lifespan=lifespan,
        )

    def _configure_middleware(self, app: FastAPI) -> None:
        """
        Configure application middleware.

        Middleware order matters:
        1. CORS (outermost)
        2. Request logging
        """
        app.add_middleware(RequestLoggingMiddleware)
        app.add_middleware(
            CORSMiddleware,
            allow_origins=self._get_cors_origins(),
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )

        logger.info("Middleware configured")

    def _configure_exception_handlers(self, app: FastAPI) -> None:
        """Register exception handlers."""
        register_exception_handlers(app)

    def _configure_routes(self, app: FastAPI) -> None:
        """Configure API routes."""
        app.include_router(api_router, prefix=self._settings.API_V1_STR)
        logger.info("Routes configured")

    def _configure_health_endpoint(self, app: FastAPI) -> None:
        """Add health check endpoint."""

        @app.get("/health", tags=["health"])
        async def health_check() -> JSONResponse:
            """
            Verify application health status.

            The database is required; Redis is reported but optional.
            """
            container: SchedulingContainer = app.state.container
            checks: dict[str, Any] = {"database": "ok", "redis": "disabled"}

            try:
                async with container.engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))
            except (SQLAlchemyError, OSError) as e:
                logger.error(f"Health check: database unreachable: {e}")
                checks["database"] = "error"

            if container.redis is not None:
                try:
                    await container.redis.ping()
                    checks["redis"] = "ok"
                except (RedisError, OSError) as e:
                    logger.warning(f"Health check: redis unreachable: {e}")
                    checks["redis"] = "error"

            healthy = checks["database"] == "ok"
            return JSONResponse(
                status_code=200 if healthy else 503,
                content={
                    "status": "ok" if healthy else "degraded",
                    "environment": self._settings.ENVIRONMENT,
                    "checks": checks,
                },
            )

    def _get_cors_origins(self) -> list[str]:
        """Get allowed CORS origins based on environment."""
        if self._settings.is_development:
            return ["*"]
        return self._settings.CORS_ORIGINS


def create_app(settings: Settings | None = None, container: SchedulingContainer | None = None) -> FastAPI:
    """
    Create FastAPI application using the factory.

    Args:
        settings: Optional settings override
        container: Optional prebuilt container

    Returns:
        Configured FastAPI application
    """
    factory = AppFactory(settings or (container.settings if container else None), container)
    return factory.create_app()
