"""
Get Available Slots Use Case

Free slot start times for a provider on a day. External reads go through the
stale-while-revalidate cache; the booking pre-check calls compute() directly.
"""

import logging
from datetime import date

from medibook.core.cache import CacheKeys, CacheTTL, ReadPathCache
from medibook.domains.scheduling.application.booking_support import AvailabilityDefaults, load_schedule
from medibook.domains.scheduling.application.ports import IUnitOfWorkFactory
from medibook.domains.scheduling.application.queries import AppointmentQuery
from medibook.domains.scheduling.domain.services import AvailabilityCalculator

logger = logging.getLogger(__name__)


class GetAvailableSlotsUseCase:
    """
    Use case for listing bookable slots.

    Example:
        ```python
        slots = await use_case.execute("doc-1", date(2025, 1, 10), duration_minutes=30)
        # ["09:00", "09:30", ...]
        ```
    """

    def __init__(
        self,
        uow_factory: IUnitOfWorkFactory,
        cache: ReadPathCache,
        keys: CacheKeys,
        defaults: AvailabilityDefaults | None = None,
        calculator: AvailabilityCalculator | None = None,
    ):
        self.uow_factory = uow_factory
        self.cache = cache
        self.keys = keys
        self.defaults = defaults or AvailabilityDefaults()
        self.calculator = calculator or AvailabilityCalculator()

    async def execute(
        self,
        provider_id: str,
        target_date: date,
        duration_minutes: int | None = None,
    ) -> list[str]:
        """Cached slot lookup (SWR, 60s fresh / 300s stale)."""
        key = self.keys.provider_slots(provider_id, target_date.isoformat(), duration_minutes)
        return await self.cache.get_or_set_swr(
            key,
            lambda: self.compute(provider_id, target_date, duration_minutes),
            fresh_ttl=CacheTTL.SHORT,
            stale_ttl=CacheTTL.MEDIUM,
        )

    async def compute(
        self,
        provider_id: str,
        target_date: date,
        duration_minutes: int | None = None,
        exclude_appointment_id: int | None = None,
    ) -> list[str]:
        """
        Compute slots straight from the database in a short session of its own.

        Args:
            provider_id: Provider to look up
            target_date: Day to compute
            duration_minutes: Required length, defaults to the provider slot duration
            exclude_appointment_id: Appointment whose own time should not count as taken
        """
        async with self.uow_factory() as uow:
            availability, working_hours = await load_schedule(uow.providers, provider_id, target_date, self.defaults)
            bookings = await uow.appointments.find(
                AppointmentQuery.blocking(provider_id, target_date, exclude_id=exclude_appointment_id)
            )

        slots = self.calculator.available_slots(availability, working_hours, bookings, duration_minutes)
        logger.debug(f"Computed {len(slots)} free slots for provider {provider_id} on {target_date}")
        return slots
