"""
Repository Ports

Interfaces for scheduling data access following Clean Architecture.
Methods taking for_update lock the loaded row until the transaction ends.
"""

from decimal import Decimal
from typing import Protocol, runtime_checkable

from medibook.domains.scheduling.application.queries import AppointmentQuery, SettlementQuery
from medibook.domains.scheduling.domain.entities import (
    Appointment,
    AppointmentType,
    PlatformSettings,
    ProviderAvailability,
    ProviderPaymentAccount,
    RefundRecord,
    Settlement,
    WorkingHours,
)


@runtime_checkable
class IAppointmentRepository(Protocol):
    """
    Appointment repository interface.

    Example:
        ```python
        bookings = await repo.find(AppointmentQuery.blocking("doc-1", date(2025, 1, 10)))
        ```
    """

    async def get(self, appointment_id: int, for_update: bool = False) -> Appointment | None:
        """
        Find appointment by ID.

        Returns:
            Appointment if found, None otherwise
        """
        ...

    async def find(self, query: AppointmentQuery) -> list[Appointment]:
        """Appointments matching the query, ordered by date and time."""
        ...

    async def add(self, appointment: Appointment) -> Appointment:
        """Insert and return the appointment with its id assigned."""
        ...

    async def update(self, appointment: Appointment) -> Appointment:
        """Persist changes to an existing appointment."""
        ...


@runtime_checkable
class ISettlementRepository(Protocol):
    """Settlement and refund record persistence."""

    async def get(self, settlement_id: int, for_update: bool = False) -> Settlement | None: ...

    async def get_by_appointment(self, appointment_id: int, for_update: bool = False) -> Settlement | None: ...

    async def get_by_payment_ref(self, payment_ref: str, for_update: bool = False) -> Settlement | None: ...

    async def get_by_transfer_ref(self, transfer_ref: str, for_update: bool = False) -> Settlement | None: ...

    async def find(self, query: SettlementQuery) -> list[Settlement]: ...

    async def add(self, settlement: Settlement) -> Settlement: ...

    async def update(self, settlement: Settlement) -> Settlement: ...

    async def add_refund_record(self, record: RefundRecord) -> RefundRecord: ...

    async def list_refund_records(self, settlement_id: int) -> list[RefundRecord]: ...


@runtime_checkable
class IProviderRepository(Protocol):
    """Provider configuration persistence."""

    async def get_availability(self, provider_id: str, for_update: bool = False) -> ProviderAvailability | None:
        """
        Provider availability rules.

        Returns:
            Stored availability, or None when the provider uses defaults
        """
        ...

    async def save_availability(self, availability: ProviderAvailability) -> ProviderAvailability: ...

    async def get_working_hours(self, provider_id: str, day_of_week: int) -> WorkingHours | None: ...

    async def list_working_hours(self, provider_id: str) -> list[WorkingHours]: ...

    async def replace_working_hours(self, provider_id: str, hours: list[WorkingHours]) -> list[WorkingHours]: ...

    async def get_appointment_type(self, appointment_type_id: int) -> AppointmentType | None: ...

    async def list_appointment_types(self, provider_id: str) -> list[AppointmentType]: ...

    async def add_appointment_type(self, appointment_type: AppointmentType) -> AppointmentType: ...

    async def get_payment_account(self, provider_id: str) -> ProviderPaymentAccount | None: ...

    async def save_payment_account(self, account: ProviderPaymentAccount) -> ProviderPaymentAccount: ...


@runtime_checkable
class IPlatformSettingsRepository(Protocol):
    """Singleton platform settings row."""

    async def get_or_create(self, default_commission: Decimal) -> PlatformSettings:
        """Return the settings row, creating it with the default when absent."""
        ...

    async def save(self, settings: PlatformSettings) -> PlatformSettings: ...
