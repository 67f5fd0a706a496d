"""
Scheduling API Routes

FastAPI routers for provider configuration and the appointment lifecycle.
"""

from datetime import date
from typing import Any

from fastapi import APIRouter, Query, status

from medibook.domains.scheduling.api.dependencies import ContainerDep
from medibook.domains.scheduling.api.schemas import (
    AppointmentDetailResponse,
    AppointmentRequest,
    AppointmentResponse,
    AppointmentTypeRequest,
    AppointmentTypeResponse,
    AvailabilityRequest,
    AvailabilityResponse,
    AvailableSlotsResponse,
    CancelRequest,
    CancelResponse,
    PaymentAccountRequest,
    PaymentAccountResponse,
    PaymentReferenceRequest,
    RefundResponse,
    RescheduleRequest,
    SettlementResponse,
    StatusUpdateRequest,
    WorkingDaySchema,
    WorkingHoursRequest,
    WorkingHoursResponse,
)
from medibook.domains.scheduling.application.use_cases import (
    BookAppointmentRequest,
    RescheduleAppointmentRequest,
)
from medibook.domains.scheduling.domain.entities import ProviderPaymentAccount

providers_router = APIRouter(prefix="/providers", tags=["Providers"])
appointments_router = APIRouter(prefix="/appointments", tags=["Appointments"])


# ==================== PROVIDERS ====================


@providers_router.get("/{provider_id}/available-slots", response_model=AvailableSlotsResponse)
async def get_available_slots(
    provider_id: str,
    container: ContainerDep,
    target_date: date = Query(..., alias="date"),
    duration: int | None = Query(None, ge=5, le=480),
):
    """Free slot start times for a provider on a day."""
    slots = await container.get_available_slots.execute(provider_id, target_date, duration)
    return AvailableSlotsResponse(provider_id=provider_id, date=target_date, duration_minutes=duration, slots=slots)


@providers_router.get("/{provider_id}/schedule")
async def get_provider_schedule(provider_id: str, container: ContainerDep) -> dict[str, Any]:
    return await container.configure_provider.get_schedule(provider_id)


@providers_router.put("/{provider_id}/availability", response_model=AvailabilityResponse)
async def set_availability(provider_id: str, request: AvailabilityRequest, container: ContainerDep):
    saved = await container.configure_provider.set_availability(request.to_entity(provider_id))
    return AvailabilityResponse.from_entity(saved)


@providers_router.put("/{provider_id}/working-hours", response_model=WorkingHoursResponse)
async def set_working_hours(provider_id: str, request: WorkingHoursRequest, container: ContainerDep):
    """Replace the weekly schedule. Days left out are non-working."""
    hours = [day.to_entity(provider_id) for day in request.days]
    saved = await container.configure_provider.set_working_hours(provider_id, hours)
    return WorkingHoursResponse(provider_id=provider_id, days=[WorkingDaySchema.from_entity(h) for h in saved])


@providers_router.post(
    "/{provider_id}/appointment-types",
    response_model=AppointmentTypeResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_appointment_type(provider_id: str, request: AppointmentTypeRequest, container: ContainerDep):
    saved = await container.configure_provider.add_appointment_type(request.to_entity(provider_id))
    return AppointmentTypeResponse.from_entity(saved)


@providers_router.put("/{provider_id}/payment-account", response_model=PaymentAccountResponse)
async def set_payment_account(provider_id: str, request: PaymentAccountRequest, container: ContainerDep):
    account = ProviderPaymentAccount(
        provider_id=provider_id,
        external_account_ref=request.external_account_ref,
        status=request.status,
    )
    saved = await container.configure_provider.set_payment_account(account)
    return PaymentAccountResponse.from_entity(saved)


# ==================== APPOINTMENTS ====================


@appointments_router.post("", response_model=AppointmentResponse, status_code=status.HTTP_201_CREATED)
async def book_appointment(request: AppointmentRequest, container: ContainerDep):
    """
    Book a new appointment.

    Returns 409 with SLOT_NOT_AVAILABLE or SLOT_CONFLICT when the slot is
    taken; the caller should re-query availability.
    """
    appointment = await container.book_appointment.execute(
        BookAppointmentRequest(
            provider_id=request.provider_id,
            requester_id=request.requester_id,
            appointment_date=request.appointment_date,
            start_time=request.start_time,
            duration_minutes=request.duration_minutes,
            appointment_type_id=request.appointment_type_id,
            reason=request.reason,
            notes=request.notes,
        )
    )
    return AppointmentResponse.from_entity(appointment)


@appointments_router.get("/{appointment_id}", response_model=AppointmentDetailResponse)
async def get_appointment(appointment_id: int, container: ContainerDep):
    details = await container.get_appointment.execute(appointment_id)
    return AppointmentDetailResponse(
        appointment=AppointmentResponse.from_entity(details.appointment),
        settlement=SettlementResponse.from_entity(details.settlement) if details.settlement else None,
        refunds=[RefundResponse.from_entity(r) for r in details.refunds],
    )


@appointments_router.post("/{appointment_id}/reschedule", response_model=AppointmentResponse)
async def reschedule_appointment(appointment_id: int, request: RescheduleRequest, container: ContainerDep):
    appointment = await container.reschedule_appointment.execute(
        RescheduleAppointmentRequest(
            appointment_id=appointment_id,
            new_date=request.new_date,
            new_time=request.new_time,
        )
    )
    return AppointmentResponse.from_entity(appointment)


@appointments_router.patch("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(appointment_id: int, request: StatusUpdateRequest, container: ContainerDep):
    appointment = await container.update_appointment_status.execute(appointment_id, request.status)
    return AppointmentResponse.from_entity(appointment)


@appointments_router.post("/{appointment_id}/cancel", response_model=CancelResponse)
async def cancel_appointment(
    appointment_id: int,
    container: ContainerDep,
    request: CancelRequest | None = None,
):
    """Cancel an appointment and refund the requester by notice tier."""
    result = await container.cancel_appointment.execute(appointment_id, request.reason if request else None)
    return CancelResponse(
        appointment=AppointmentResponse.from_entity(result.appointment),
        settlement=SettlementResponse.from_entity(result.settlement) if result.settlement else None,
        refund=RefundResponse.from_entity(result.refund) if result.refund else None,
    )


@appointments_router.post("/{appointment_id}/payment-reference", response_model=SettlementResponse)
async def attach_payment_reference(appointment_id: int, request: PaymentReferenceRequest, container: ContainerDep):
    settlement = await container.attach_payment_reference.execute(appointment_id, request.payment_ref)
    return SettlementResponse.from_entity(settlement)
