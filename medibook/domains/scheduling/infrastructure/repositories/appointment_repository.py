"""
Appointment Repository Implementation

SQLAlchemy implementation of IAppointmentRepository. Runs inside the session
of a unit of work and never commits by itself.
"""

import logging

from sqlalchemy import and_, select
from sqlalchemy.ext.asyncio import AsyncSession

from medibook.core.domain import EntityNotFoundException
from medibook.domains.scheduling.application.ports.repositories import IAppointmentRepository
from medibook.domains.scheduling.application.queries import AppointmentQuery
from medibook.domains.scheduling.domain.entities import Appointment
from medibook.domains.scheduling.infrastructure.persistence.sqlalchemy.models import AppointmentModel

logger = logging.getLogger(__name__)


class SQLAlchemyAppointmentRepository(IAppointmentRepository):
    """
    SQLAlchemy implementation of appointment repository.
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize repository.

        Args:
            session: SQLAlchemy async session
        """
        self.session = session

    async def get(self, appointment_id: int, for_update: bool = False) -> Appointment | None:
        """Find appointment by ID."""
        stmt = select(AppointmentModel).where(AppointmentModel.id == appointment_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def find(self, query: AppointmentQuery) -> list[Appointment]:
        """Find appointments matching a query."""
        conditions = []
        if query.provider_id is not None:
            conditions.append(AppointmentModel.provider_id == query.provider_id)
        if query.requester_id is not None:
            conditions.append(AppointmentModel.requester_id == query.requester_id)
        if query.appointment_date is not None:
            conditions.append(AppointmentModel.appointment_date == query.appointment_date)
        if query.statuses is not None:
            conditions.append(AppointmentModel.status.in_(list(query.statuses)))
        if query.exclude_ids:
            conditions.append(AppointmentModel.id.notin_(list(query.exclude_ids)))

        stmt = select(AppointmentModel)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        stmt = stmt.order_by(AppointmentModel.appointment_date, AppointmentModel.start_time)
        if query.limit:
            stmt = stmt.limit(query.limit)

        result = await self.session.execute(stmt)
        return [self._to_entity(m) for m in result.scalars().all()]

    async def add(self, appointment: Appointment) -> Appointment:
        """Insert a new appointment and assign its id."""
        model = self._to_model(appointment)
        self.session.add(model)
        await self.session.flush()

        appointment.id = model.id
        appointment.created_at = model.created_at
        appointment.updated_at = model.updated_at
        logger.debug(f"Inserted appointment {model.id} for provider {model.provider_id}")
        return appointment

    async def update(self, appointment: Appointment) -> Appointment:
        """Write entity state back to its row."""
        model = await self.session.get(AppointmentModel, appointment.id)
        if model is None:
            raise EntityNotFoundException("Appointment", appointment.id)
        self._update_model(model, appointment)
        await self.session.flush()
        return appointment

    def _to_entity(self, model: AppointmentModel) -> Appointment:
        """Convert model to entity."""
        return Appointment(
            id=model.id,
            provider_id=model.provider_id,
            requester_id=model.requester_id,
            appointment_date=model.appointment_date,
            start_time=model.start_time,
            duration_minutes=model.duration_minutes,
            appointment_type_id=model.appointment_type_id,
            requires_payment=model.requires_payment,
            status=model.status,
            reason=model.reason,
            notes=model.notes,
            cancellation_reason=model.cancellation_reason,
            cancelled_at=model.cancelled_at,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _to_model(self, entity: Appointment) -> AppointmentModel:
        """Convert entity to model."""
        return AppointmentModel(
            provider_id=entity.provider_id,
            requester_id=entity.requester_id,
            appointment_date=entity.appointment_date,
            start_time=entity.start_time,
            duration_minutes=entity.duration_minutes,
            appointment_type_id=entity.appointment_type_id,
            requires_payment=entity.requires_payment,
            status=entity.status,
            reason=entity.reason,
            notes=entity.notes,
            cancellation_reason=entity.cancellation_reason,
            cancelled_at=entity.cancelled_at,
        )

    def _update_model(self, model: AppointmentModel, entity: Appointment) -> None:
        """Update model from entity."""
        model.appointment_date = entity.appointment_date
        model.start_time = entity.start_time
        model.duration_minutes = entity.duration_minutes
        model.status = entity.status
        model.reason = entity.reason
        model.notes = entity.notes
        model.cancellation_reason = entity.cancellation_reason
        model.cancelled_at = entity.cancelled_at
