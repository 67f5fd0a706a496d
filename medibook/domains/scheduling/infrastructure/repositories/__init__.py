"""
Scheduling Repository Implementations
"""

from .appointment_repository import SQLAlchemyAppointmentRepository
from .platform_settings_repository import SQLAlchemyPlatformSettingsRepository
from .provider_repository import SQLAlchemyProviderRepository
from .settlement_repository import SQLAlchemySettlementRepository

__all__ = [
    "SQLAlchemyAppointmentRepository",
    "SQLAlchemyPlatformSettingsRepository",
    "SQLAlchemyProviderRepository",
    "SQLAlchemySettlementRepository",
]
