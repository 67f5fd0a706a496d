"""
Payment Event Use Cases

Handlers for the requester side of a settlement. Each one is idempotent:
replaying an event that is already reflected in the settlement is a no-op
that reports False.
"""

import logging

from medibook.core.domain import EntityNotFoundException, ValidationException
from medibook.core.shared.clock import Clock
from medibook.domains.scheduling.application.ports import IUnitOfWorkFactory
from medibook.domains.scheduling.domain.entities import Settlement
from medibook.domains.scheduling.domain.value_objects import AppointmentStatus

logger = logging.getLogger(__name__)


class AttachPaymentReferenceUseCase:
    """Link the external payment intent to the settlement of an appointment."""

    def __init__(self, uow_factory: IUnitOfWorkFactory):
        self.uow_factory = uow_factory

    async def execute(self, appointment_id: int, payment_ref: str) -> Settlement:
        async with self.uow_factory() as uow:
            settlement = await uow.settlements.get_by_appointment(appointment_id, for_update=True)
            if settlement is None:
                raise EntityNotFoundException(
                    "Settlement", appointment_id, f"Appointment {appointment_id} has no settlement"
                )

            owner = await uow.settlements.get_by_payment_ref(payment_ref)
            if owner is not None and owner.id != settlement.id:
                raise ValidationException(
                    "Payment reference is already attached to another appointment",
                    code="PAYMENT_REFERENCE_IN_USE",
                    field="payment_ref",
                )

            if settlement.attach_payment_ref(payment_ref):
                await uow.settlements.update(settlement)
                await uow.commit()
                logger.info(f"Payment reference {payment_ref} attached to settlement {settlement.id}")

        return settlement


class ConfirmPaymentUseCase:
    """Record a successful charge and schedule the payout."""

    def __init__(self, uow_factory: IUnitOfWorkFactory, clock: Clock, payout_delay_hours: int = 2):
        self.uow_factory = uow_factory
        self.clock = clock
        self.payout_delay_hours = payout_delay_hours

    async def execute(self, payment_ref: str, charge_ref: str | None = None) -> bool:
        """
        Returns:
            True when the settlement changed from unpaid to paid
        """
        now = self.clock.now()

        async with self.uow_factory() as uow:
            settlement = await uow.settlements.get_by_payment_ref(payment_ref, for_update=True)
            if settlement is None:
                logger.warning(f"Payment confirmation for unknown reference {payment_ref}, ignoring")
                return False

            changed = settlement.confirm_payment(charge_ref, now)
            if changed:
                appointment = await uow.appointments.get(settlement.appointment_id)
                if appointment is not None and appointment.status == AppointmentStatus.CANCELLED:
                    logger.warning(
                        f"Payment {payment_ref} captured after appointment {appointment.id} was cancelled"
                    )
                    settlement.require_manual_intervention(
                        "Payment captured after the appointment was cancelled, refund manually"
                    )
                elif appointment is not None:
                    settlement.schedule_payout(appointment.starts_at, self.payout_delay_hours)

            await uow.settlements.update(settlement)
            uow.track(settlement)
            await uow.commit()

        if changed:
            logger.info(f"Payment {payment_ref} confirmed for settlement {settlement.id}")
        else:
            logger.debug(f"Payment {payment_ref} already confirmed, no-op")
        return changed


class MarkPaymentFailedUseCase:
    def __init__(self, uow_factory: IUnitOfWorkFactory):
        self.uow_factory = uow_factory

    async def execute(self, payment_ref: str) -> bool:
        async with self.uow_factory() as uow:
            settlement = await uow.settlements.get_by_payment_ref(payment_ref, for_update=True)
            if settlement is None:
                logger.warning(f"Payment failure for unknown reference {payment_ref}, ignoring")
                return False

            if settlement.requester_paid:
                logger.warning(f"Ignoring late failure for payment {payment_ref}, already captured")
                return False

            changed = settlement.mark_payment_failed()
            if changed:
                await uow.settlements.update(settlement)
                await uow.commit()
                logger.info(f"Payment {payment_ref} failed for settlement {settlement.id}")
        return changed
