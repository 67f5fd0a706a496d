"""
Configure Provider Use Case

Upserts the configuration a provider needs before it can be booked: slot
rules, weekly working hours, appointment types and the payout account.
Every write drops the provider's cached schedule and slot lists.
"""

import logging
from typing import Any

from medibook.core.cache import CacheKeys, CacheTTL, ReadPathCache
from medibook.domains.scheduling.application.booking_support import AvailabilityDefaults
from medibook.domains.scheduling.application.ports import IUnitOfWorkFactory
from medibook.domains.scheduling.domain.entities import (
    AppointmentType,
    ProviderAvailability,
    ProviderPaymentAccount,
    WorkingHours,
)

logger = logging.getLogger(__name__)


class ConfigureProviderUseCase:
    def __init__(
        self,
        uow_factory: IUnitOfWorkFactory,
        cache: ReadPathCache,
        keys: CacheKeys,
        defaults: AvailabilityDefaults | None = None,
    ):
        self.uow_factory = uow_factory
        self.cache = cache
        self.keys = keys
        self.defaults = defaults or AvailabilityDefaults()

    async def set_availability(self, availability: ProviderAvailability) -> ProviderAvailability:
        async with self.uow_factory() as uow:
            saved = await uow.providers.save_availability(availability)
            await uow.commit()
        await self._invalidate(availability.provider_id)
        logger.info(f"Availability updated for provider {availability.provider_id}")
        return saved

    async def set_working_hours(self, provider_id: str, hours: list[WorkingHours]) -> list[WorkingHours]:
        """Replace the weekly schedule. Days missing from hours are non-working."""
        async with self.uow_factory() as uow:
            saved = await uow.providers.replace_working_hours(provider_id, hours)
            await uow.commit()
        await self._invalidate(provider_id)
        logger.info(f"Working hours updated for provider {provider_id}: {len(saved)} days")
        return saved

    async def add_appointment_type(self, appointment_type: AppointmentType) -> AppointmentType:
        async with self.uow_factory() as uow:
            saved = await uow.providers.add_appointment_type(appointment_type)
            await uow.commit()
        await self.cache.invalidate(self.keys.provider(appointment_type.provider_id))
        return saved

    async def set_payment_account(self, account: ProviderPaymentAccount) -> ProviderPaymentAccount:
        async with self.uow_factory() as uow:
            saved = await uow.providers.save_payment_account(account)
            await uow.commit()
        await self.cache.invalidate(self.keys.provider(account.provider_id))
        logger.info(f"Payout account for provider {account.provider_id} is {account.status.value}")
        return saved

    async def get_schedule(self, provider_id: str) -> dict[str, Any]:
        """Provider configuration as a plain dict, cached for five minutes."""
        return await self.cache.get_or_set(
            self.keys.provider(provider_id),
            lambda: self._load_schedule(provider_id),
            ttl=CacheTTL.MEDIUM,
        )

    async def _load_schedule(self, provider_id: str) -> dict[str, Any]:
        async with self.uow_factory() as uow:
            availability = await uow.providers.get_availability(provider_id)
            hours = await uow.providers.list_working_hours(provider_id)
            types = await uow.providers.list_appointment_types(provider_id)
            account = await uow.providers.get_payment_account(provider_id)

        availability = availability or self.defaults.for_provider(provider_id)
        return {
            "provider_id": provider_id,
            "availability": {
                "allowed_time_slots": availability.allowed_time_slots,
                "slot_duration_minutes": availability.slot_duration_minutes,
                "booking_advance_days_max": availability.booking_advance_days_max,
                "min_booking_hours_ahead": availability.min_booking_hours_ahead,
            },
            "working_hours": [
                {
                    "day_of_week": h.day_of_week,
                    "start_time": h.start_time,
                    "end_time": h.end_time,
                    "is_working": h.is_working,
                }
                for h in hours
            ],
            "appointment_types": [
                {
                    "id": t.id,
                    "name": t.name,
                    "duration_minutes": t.duration_minutes,
                    "price": str(t.price),
                    "requires_payment": t.requires_payment,
                    "is_active": t.is_active,
                }
                for t in types
            ],
            "payout_account_status": account.status.value if account else None,
        }

    async def _invalidate(self, provider_id: str) -> None:
        await self.cache.invalidate(self.keys.provider(provider_id))
        await self.cache.invalidate_pattern(self.keys.provider_slots_pattern(provider_id))
