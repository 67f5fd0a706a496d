"""
Commission Settings Use Cases
"""

import logging
from decimal import Decimal, InvalidOperation

from medibook.core.cache import CacheKeys, CacheTTL, ReadPathCache
from medibook.core.domain import Percentage, ValidationException
from medibook.domains.scheduling.application.ports import IUnitOfWorkFactory

logger = logging.getLogger(__name__)


class GetCommissionPercentageUseCase:
    """Current platform commission, creating the settings row on first use."""

    def __init__(
        self,
        uow_factory: IUnitOfWorkFactory,
        cache: ReadPathCache,
        keys: CacheKeys,
        default_commission: Decimal = Decimal("5.00"),
    ):
        self.uow_factory = uow_factory
        self.cache = cache
        self.keys = keys
        self.default_commission = default_commission

    async def execute(self) -> Decimal:
        value = await self.cache.get_or_set(self.keys.commission(), self._load, ttl=CacheTTL.HOUR)
        return Decimal(str(value))

    async def _load(self) -> str:
        async with self.uow_factory() as uow:
            platform = await uow.platform_settings.get_or_create(self.default_commission)
            await uow.commit()
        return str(platform.commission_percentage)


class UpdateCommissionPercentageUseCase:
    """
    Change the platform commission for future bookings.

    Settlements already created keep the percentage stored on them.
    """

    def __init__(
        self,
        uow_factory: IUnitOfWorkFactory,
        cache: ReadPathCache,
        keys: CacheKeys,
        default_commission: Decimal = Decimal("5.00"),
    ):
        self.uow_factory = uow_factory
        self.cache = cache
        self.keys = keys
        self.default_commission = default_commission

    async def execute(self, value: Decimal | str | float) -> Decimal:
        try:
            percentage = Percentage(Decimal(str(value)))
        except (ValueError, InvalidOperation) as e:
            raise ValidationException(
                f"Commission percentage must be greater than 0 and at most 100, got {value}",
                code="INVALID_COMMISSION_PERCENTAGE",
                field="commission_percentage",
            ) from e

        async with self.uow_factory() as uow:
            platform = await uow.platform_settings.get_or_create(self.default_commission)
            previous = platform.commission_percentage
            platform.commission_percentage = percentage.value
            platform.touch()
            await uow.platform_settings.save(platform)
            await uow.commit()

        await self.cache.invalidate(self.keys.commission())
        logger.info(f"Commission percentage changed from {previous}% to {percentage.value}%")
        return percentage.value
