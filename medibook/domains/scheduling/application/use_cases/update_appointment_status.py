"""
Update Appointment Status Use Case

Applies one state-machine transition. Confirmation of a paid appointment is
gated on the settlement having been paid and completed.
"""

import logging

from medibook.core.domain import (
    EntityNotFoundException,
    InvalidStatusTransitionException,
    PaymentNotReadyException,
)
from medibook.domains.scheduling.application.ports import IUnitOfWork, IUnitOfWorkFactory
from medibook.domains.scheduling.domain.entities import Appointment, Settlement
from medibook.domains.scheduling.domain.value_objects import AppointmentStatus, SettlementStatus

from .cancel_appointment import CancelAppointmentUseCase

logger = logging.getLogger(__name__)


class UpdateAppointmentStatusUseCase:
    def __init__(
        self,
        uow_factory: IUnitOfWorkFactory,
        cancel_use_case: CancelAppointmentUseCase,
        payout_delay_hours: int = 2,
    ):
        self.uow_factory = uow_factory
        self.cancel_use_case = cancel_use_case
        self.payout_delay_hours = payout_delay_hours

    async def execute(self, appointment_id: int, new_status: AppointmentStatus) -> Appointment:
        """
        Move an appointment to new_status.

        Cancellation is delegated so that refunds are always applied.

        Raises:
            EntityNotFoundException: unknown appointment
            InvalidStatusTransitionException: transition not allowed
            PaymentNotReadyException: PAYMENT_NOT_PROCESSED or PAYMENT_NOT_COMPLETED
        """
        if new_status == AppointmentStatus.CANCELLED:
            response = await self.cancel_use_case.execute(appointment_id)
            return response.appointment

        async with self.uow_factory() as uow:
            appointment = await uow.appointments.get(appointment_id, for_update=True)
            if appointment is None:
                raise EntityNotFoundException("Appointment", appointment_id)
            if not appointment.status.can_transition_to(new_status):
                raise InvalidStatusTransitionException(appointment.status.value, new_status.value)

            settlement = await uow.settlements.get_by_appointment(appointment_id, for_update=True)

            if new_status == AppointmentStatus.CONFIRMED and appointment.requires_payment:
                self._check_payment(appointment, settlement)
                await self._warn_if_payout_account_missing(uow, appointment.provider_id)

            appointment.transition_to(new_status)
            await uow.appointments.update(appointment)

            if (
                new_status == AppointmentStatus.CONFIRMED
                and settlement is not None
                and settlement.requester_paid
                and not settlement.provider_paid
            ):
                settlement.schedule_payout(appointment.starts_at, self.payout_delay_hours)
                await uow.settlements.update(settlement)

            uow.track(appointment, settlement)
            await uow.commit()

        logger.info(f"Appointment {appointment_id} is now {new_status.value}")
        return appointment

    def _check_payment(self, appointment: Appointment, settlement: Settlement | None) -> None:
        if settlement is None or not settlement.requester_paid:
            raise PaymentNotReadyException(
                "PAYMENT_NOT_PROCESSED",
                "Payment must be processed before confirming the appointment",
                appointment.id,
            )
        if settlement.status != SettlementStatus.COMPLETED:
            raise PaymentNotReadyException(
                "PAYMENT_NOT_COMPLETED",
                f"Payment is {settlement.status.value}, it must be completed before confirming",
                appointment.id,
            )

    async def _warn_if_payout_account_missing(self, uow: IUnitOfWork, provider_id: str) -> None:
        account = await uow.providers.get_payment_account(provider_id)
        if account is None or not account.can_receive_payouts():
            logger.warning(f"Provider {provider_id} has no active payout account, payouts will be held")
