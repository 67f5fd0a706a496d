"""
Unit of Work Port

One transaction spanning every scheduling repository. Nothing is persisted
unless commit() is awaited; leaving the context without committing rolls back.
"""

from typing import Any, Protocol, runtime_checkable

from .repositories import (
    IAppointmentRepository,
    IPlatformSettingsRepository,
    IProviderRepository,
    ISettlementRepository,
)


@runtime_checkable
class IUnitOfWork(Protocol):
    appointments: IAppointmentRepository
    settlements: ISettlementRepository
    providers: IProviderRepository
    platform_settings: IPlatformSettingsRepository

    async def __aenter__(self) -> "IUnitOfWork": ...

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None: ...

    async def commit(self) -> None:
        """
        Commit the transaction, then publish events recorded by tracked aggregates.

        Raises:
            SlotConflictException: the database aborted the transaction with a
                serialization failure
        """
        ...

    async def rollback(self) -> None: ...

    def track(self, *aggregates: Any) -> None:
        """Register aggregates whose domain events are published on commit."""
        ...


@runtime_checkable
class IUnitOfWorkFactory(Protocol):
    def __call__(self, serializable: bool = False) -> IUnitOfWork: ...
