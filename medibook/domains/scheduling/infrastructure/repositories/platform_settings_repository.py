"""
Platform Settings Repository Implementation
"""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from medibook.domains.scheduling.application.ports.repositories import IPlatformSettingsRepository
from medibook.domains.scheduling.domain.entities import PlatformSettings
from medibook.domains.scheduling.infrastructure.persistence.sqlalchemy.models import PlatformSettingsModel

logger = logging.getLogger(__name__)


class SQLAlchemyPlatformSettingsRepository(IPlatformSettingsRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _first(self) -> PlatformSettingsModel | None:
        result = await self.session.execute(select(PlatformSettingsModel).order_by(PlatformSettingsModel.id).limit(1))
        return result.scalar_one_or_none()

    async def get_or_create(self, default_commission: Decimal) -> PlatformSettings:
        model = await self._first()
        if model is None:
            logger.info(f"Initializing platform settings with default commission {default_commission}%")
            model = PlatformSettingsModel(commission_percentage=default_commission)
            self.session.add(model)
            await self.session.flush()
        return PlatformSettings(
            id=model.id,
            commission_percentage=Decimal(str(model.commission_percentage)),
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def save(self, settings: PlatformSettings) -> PlatformSettings:
        model = await self._first()
        if model is None:
            model = PlatformSettingsModel()
            self.session.add(model)
        model.commission_percentage = settings.commission_percentage
        await self.session.flush()
        settings.id = model.id
        return settings
