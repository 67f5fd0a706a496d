"""
SQLAlchemy Unit of Work

Opens one AsyncSession per context and exposes every scheduling repository
on it. Repositories only flush; commit() is the single point where work
becomes durable, after which the domain events recorded by tracked
aggregates are published.
"""

import logging
from typing import Any

from sqlalchemy.exc import DBAPIError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from medibook.core.domain import AggregateRoot, DomainEventPublisher, SlotConflictException
from medibook.database import is_serialization_failure
from medibook.domains.scheduling.application.ports import IUnitOfWork

from ..repositories import (
    SQLAlchemyAppointmentRepository,
    SQLAlchemyPlatformSettingsRepository,
    SQLAlchemyProviderRepository,
    SQLAlchemySettlementRepository,
)

logger = logging.getLogger(__name__)


class SQLAlchemyUnitOfWork(IUnitOfWork):
    """
    Transaction boundary for the scheduling domain.

    Usage:
        ```python
        async with uow_factory(serializable=True) as uow:
            appointment = await uow.appointments.get(1, for_update=True)
            appointment.confirm()
            await uow.appointments.update(appointment)
            uow.track(appointment)
            await uow.commit()
        ```
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        publisher: DomainEventPublisher | None = None,
        serializable: bool = False,
    ):
        self._session_factory = session_factory
        self._publisher = publisher
        self._serializable = serializable
        self._session: AsyncSession | None = None
        self._tracked: list[AggregateRoot] = []
        self._committed = False

    @property
    def session(self) -> AsyncSession:
        if self._session is None:
            raise RuntimeError("Unit of work is not active")
        return self._session

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        self._session = self._session_factory()
        self._tracked = []
        self._committed = False

        if self._serializable:
            # Must be the first statement of the transaction
            await self._session.connection(execution_options={"isolation_level": "SERIALIZABLE"})

        self.appointments = SQLAlchemyAppointmentRepository(self._session)
        self.settlements = SQLAlchemySettlementRepository(self._session)
        self.providers = SQLAlchemyProviderRepository(self._session)
        self.platform_settings = SQLAlchemyPlatformSettingsRepository(self._session)
        return self

    async def __aexit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        try:
            if not self._committed:
                await self.rollback()
        finally:
            await self.session.close()
            self._session = None

        if isinstance(exc, DBAPIError) and is_serialization_failure(exc):
            logger.info(f"Transaction aborted by serialization failure: {exc.orig}")
            raise SlotConflictException() from exc

    def track(self, *aggregates: Any) -> None:
        for aggregate in aggregates:
            if aggregate is not None and all(t is not aggregate for t in self._tracked):
                self._tracked.append(aggregate)

    async def commit(self) -> None:
        try:
            await self.session.commit()
        except DBAPIError as e:
            await self.session.rollback()
            if is_serialization_failure(e):
                logger.info(f"Commit aborted by serialization failure: {e.orig}")
                raise SlotConflictException() from e
            raise
        self._committed = True

        events = []
        for aggregate in self._tracked:
            events.extend(aggregate.get_domain_events())
            aggregate.clear_domain_events()
        if events and self._publisher is not None:
            await self._publisher.publish_all(events)

    async def rollback(self) -> None:
        await self.session.rollback()
        for aggregate in self._tracked:
            aggregate.clear_domain_events()


class SQLAlchemyUnitOfWorkFactory:
    """Creates a fresh unit of work per operation."""

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        publisher: DomainEventPublisher | None = None,
    ):
        self._session_factory = session_factory
        self._publisher = publisher

    def __call__(self, serializable: bool = False) -> SQLAlchemyUnitOfWork:
        return SQLAlchemyUnitOfWork(self._session_factory, self._publisher, serializable=serializable)
