"""Payout Scheduler.

APScheduler-based async scheduler that runs the payout sweep every
PAYOUT_SWEEP_INTERVAL_MINUTES.
"""

import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler  # type: ignore[import-not-found]
from apscheduler.triggers.interval import IntervalTrigger  # type: ignore[import-not-found]
from pytz import timezone

from medibook.domains.scheduling.application.use_cases import RunPayoutSweepUseCase

logger = logging.getLogger(__name__)


class PayoutScheduler:
    """Periodic payout sweep.

    A single job with max_instances=1, so a slow sweep is never overlapped
    by the next tick of the same process.
    """

    def __init__(
        self,
        sweep: RunPayoutSweepUseCase,
        interval_minutes: int = 15,
        timezone_name: str = "America/Argentina/Buenos_Aires",
        enabled: bool = True,
    ):
        """Initialize scheduler.

        Args:
            sweep: Use case run on every tick.
            interval_minutes: Minutes between sweeps.
            timezone_name: Timezone for the scheduler clock.
            enabled: Whether scheduler is enabled.
        """
        self.sweep = sweep
        self.interval_minutes = interval_minutes
        self.tz = timezone(timezone_name)
        self.enabled = enabled

        self._scheduler: AsyncIOScheduler | None = None
        self._is_running = False

    @property
    def is_running(self) -> bool:
        return self._is_running

    async def start(self) -> None:
        """Start the scheduler."""
        if not self.enabled:
            logger.info("PayoutScheduler is disabled, skipping start")
            return

        if self._is_running:
            logger.warning("PayoutScheduler already running")
            return

        scheduler = AsyncIOScheduler(timezone=self.tz)
        self._scheduler = scheduler

        scheduler.add_job(
            self._run_sweep,
            IntervalTrigger(minutes=self.interval_minutes, timezone=self.tz),
            id="payout_sweep",
            replace_existing=True,
            name="Provider Payout Sweep",
            max_instances=1,
            coalesce=True,
        )

        scheduler.start()
        self._is_running = True
        logger.info(f"PayoutScheduler started, sweeping every {self.interval_minutes} minutes")

    async def stop(self) -> None:
        """Stop the scheduler gracefully."""
        if self._scheduler and self._is_running:
            self._scheduler.shutdown(wait=False)
            self._is_running = False
            logger.info("PayoutScheduler stopped")

    async def _run_sweep(self) -> None:
        logger.info("Starting payout sweep job")
        try:
            result = await self.sweep.execute()
            if result.errors:
                logger.warning(f"Payout sweep reported {len(result.errors)} errors")
        except Exception as e:
            logger.error(f"Error running payout sweep: {e}", exc_info=True)
