"""
Application lifecycle management using modern FastAPI lifespan pattern.

This module follows SRP by handling only application startup/shutdown logic.
"""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from redis.exceptions import RedisError

from medibook.core.container import SchedulingContainer

logger = logging.getLogger(__name__)


class LifecycleManager:
    """
    Manages application lifecycle events.

    Starts the payout scheduler on startup, and stops it and releases the
    container's connections on shutdown.
    """

    def __init__(self, container: SchedulingContainer) -> None:
        self._container = container
        self._initialized = False

    async def startup(self) -> None:
        """
        Execute startup tasks.

        Called when the application starts.
        """
        if self._initialized:
            logger.warning("Lifecycle already initialized, skipping startup")
            return

        logger.info("Starting application lifecycle...")

        self._verify_configurations()
        await self._verify_redis()
        await self._container.payout_scheduler.start()

        self._initialized = True
        logger.info("Application lifecycle startup completed")

    async def shutdown(self) -> None:
        """
        Execute shutdown tasks.

        Called when the application stops.
        """
        if not self._initialized:
            logger.warning("Lifecycle not initialized, skipping shutdown")
            return

        logger.info("Stopping application lifecycle...")

        await self._container.payout_scheduler.stop()
        await self._container.close()

        self._initialized = False
        logger.info("Application lifecycle shutdown completed")

    def _verify_configurations(self) -> None:
        """Verify critical application configurations."""
        settings = self._container.settings
        if not settings.PAYMENT_API_KEY:
            logger.warning("PAYMENT_API_KEY not configured - transfers and refunds will fail")

        if not settings.WEBHOOK_SECRET:
            logger.warning("WEBHOOK_SECRET not configured - payment events are not signature checked")

        if not settings.PAYOUT_SWEEP_ENABLED:
            logger.info("Payout sweep is disabled via PAYOUT_SWEEP_ENABLED=False")

    async def _verify_redis(self) -> None:
        """Redis is optional; the cache degrades to pass-through when it is down."""
        redis = self._container.redis
        if redis is None:
            return
        try:
            await redis.ping()
            logger.info("Redis connectivity verified")
        except (RedisError, OSError) as e:
            logger.warning(f"Redis not reachable, cache reads will fall through: {e}")


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    FastAPI lifespan context manager.

    Usage:
        app = FastAPI(lifespan=lifespan)
        app.state.container = SchedulingContainer(settings)
    """
    lifecycle = LifecycleManager(app.state.container)

    # Startup
    await lifecycle.startup()

    yield  # Application runs here

    # Shutdown
    await lifecycle.shutdown()
