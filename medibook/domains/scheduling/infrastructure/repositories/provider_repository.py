"""
Provider Repository Implementation

Availability rules, working hours, appointment types and payout accounts.
"""

import logging

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from medibook.core.domain import to_money
from medibook.domains.scheduling.application.ports.repositories import IProviderRepository
from medibook.domains.scheduling.domain.entities import (
    AppointmentType,
    ProviderAvailability,
    ProviderPaymentAccount,
    WorkingHours,
)
from medibook.domains.scheduling.infrastructure.persistence.sqlalchemy.models import (
    AppointmentTypeModel,
    ProviderAvailabilityModel,
    ProviderPaymentAccountModel,
    ProviderWorkingHoursModel,
)

logger = logging.getLogger(__name__)


class SQLAlchemyProviderRepository(IProviderRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    # Availability

    async def _availability_model(self, provider_id: str, for_update: bool = False) -> ProviderAvailabilityModel | None:
        stmt = select(ProviderAvailabilityModel).where(ProviderAvailabilityModel.provider_id == provider_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_availability(self, provider_id: str, for_update: bool = False) -> ProviderAvailability | None:
        model = await self._availability_model(provider_id, for_update)
        if model is None:
            return None
        return ProviderAvailability(
            id=model.id,
            provider_id=model.provider_id,
            allowed_time_slots=list(model.allowed_time_slots or []),
            slot_duration_minutes=model.slot_duration_minutes,
            booking_advance_days_max=model.booking_advance_days_max,
            min_booking_hours_ahead=model.min_booking_hours_ahead,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def save_availability(self, availability: ProviderAvailability) -> ProviderAvailability:
        model = await self._availability_model(availability.provider_id)
        if model is None:
            model = ProviderAvailabilityModel(provider_id=availability.provider_id)
            self.session.add(model)
        model.allowed_time_slots = list(availability.allowed_time_slots)
        model.slot_duration_minutes = availability.slot_duration_minutes
        model.booking_advance_days_max = availability.booking_advance_days_max
        model.min_booking_hours_ahead = availability.min_booking_hours_ahead
        await self.session.flush()
        availability.id = model.id
        return availability

    # Working hours

    def _hours_to_entity(self, model: ProviderWorkingHoursModel) -> WorkingHours:
        return WorkingHours(
            id=model.id,
            provider_id=model.provider_id,
            day_of_week=model.day_of_week,
            start_time=model.start_time,
            end_time=model.end_time,
            is_working=model.is_working,
        )

    async def get_working_hours(self, provider_id: str, day_of_week: int) -> WorkingHours | None:
        result = await self.session.execute(
            select(ProviderWorkingHoursModel).where(
                ProviderWorkingHoursModel.provider_id == provider_id,
                ProviderWorkingHoursModel.day_of_week == day_of_week,
            )
        )
        model = result.scalar_one_or_none()
        return self._hours_to_entity(model) if model else None

    async def list_working_hours(self, provider_id: str) -> list[WorkingHours]:
        result = await self.session.execute(
            select(ProviderWorkingHoursModel)
            .where(ProviderWorkingHoursModel.provider_id == provider_id)
            .order_by(ProviderWorkingHoursModel.day_of_week)
        )
        return [self._hours_to_entity(m) for m in result.scalars().all()]

    async def replace_working_hours(self, provider_id: str, hours: list[WorkingHours]) -> list[WorkingHours]:
        """Replace the whole weekly schedule of a provider."""
        await self.session.execute(
            delete(ProviderWorkingHoursModel).where(ProviderWorkingHoursModel.provider_id == provider_id)
        )
        models = [
            ProviderWorkingHoursModel(
                provider_id=provider_id,
                day_of_week=h.day_of_week,
                start_time=h.start_time,
                end_time=h.end_time,
                is_working=h.is_working,
            )
            for h in hours
        ]
        self.session.add_all(models)
        await self.session.flush()
        return [self._hours_to_entity(m) for m in models]

    # Appointment types

    def _type_to_entity(self, model: AppointmentTypeModel) -> AppointmentType:
        return AppointmentType(
            id=model.id,
            provider_id=model.provider_id,
            name=model.name,
            duration_minutes=model.duration_minutes,
            price=to_money(model.price),
            requires_payment=model.requires_payment,
            is_active=model.is_active,
        )

    async def get_appointment_type(self, appointment_type_id: int) -> AppointmentType | None:
        model = await self.session.get(AppointmentTypeModel, appointment_type_id)
        return self._type_to_entity(model) if model else None

    async def list_appointment_types(self, provider_id: str) -> list[AppointmentType]:
        result = await self.session.execute(
            select(AppointmentTypeModel)
            .where(AppointmentTypeModel.provider_id == provider_id)
            .order_by(AppointmentTypeModel.id)
        )
        return [self._type_to_entity(m) for m in result.scalars().all()]

    async def add_appointment_type(self, appointment_type: AppointmentType) -> AppointmentType:
        model = AppointmentTypeModel(
            provider_id=appointment_type.provider_id,
            name=appointment_type.name,
            duration_minutes=appointment_type.duration_minutes,
            price=appointment_type.price,
            requires_payment=appointment_type.requires_payment,
            is_active=appointment_type.is_active,
        )
        self.session.add(model)
        await self.session.flush()
        appointment_type.id = model.id
        return appointment_type

    # Payment accounts

    async def get_payment_account(self, provider_id: str) -> ProviderPaymentAccount | None:
        result = await self.session.execute(
            select(ProviderPaymentAccountModel).where(ProviderPaymentAccountModel.provider_id == provider_id)
        )
        model = result.scalar_one_or_none()
        if model is None:
            return None
        return ProviderPaymentAccount(
            id=model.id,
            provider_id=model.provider_id,
            external_account_ref=model.external_account_ref,
            status=model.status,
        )

    async def save_payment_account(self, account: ProviderPaymentAccount) -> ProviderPaymentAccount:
        result = await self.session.execute(
            select(ProviderPaymentAccountModel).where(ProviderPaymentAccountModel.provider_id == account.provider_id)
        )
        model = result.scalar_one_or_none()
        if model is None:
            model = ProviderPaymentAccountModel(provider_id=account.provider_id)
            self.session.add(model)
        model.external_account_ref = account.external_account_ref
        model.status = account.status
        await self.session.flush()
        account.id = model.id
        return account
