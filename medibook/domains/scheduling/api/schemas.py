"""
Scheduling API Schemas

Pydantic schemas for API request/response validation.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, Field

from medibook.domains.scheduling.domain.entities import (
    Appointment,
    AppointmentType,
    ProviderAvailability,
    ProviderPaymentAccount,
    RefundRecord,
    Settlement,
    WorkingHours,
)
from medibook.domains.scheduling.domain.value_objects import AppointmentStatus, PayoutAccountStatus

TIME_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


# ==================== PROVIDERS ====================


class AvailableSlotsResponse(BaseModel):
    provider_id: str
    date: date
    duration_minutes: int | None = None
    slots: list[str]


class AvailabilityRequest(BaseModel):
    """Slot rules for a provider."""

    allowed_time_slots: list[str] = Field(default_factory=list)
    slot_duration_minutes: int = Field(default=30, ge=5, le=480)
    booking_advance_days_max: int = Field(default=30, ge=0, le=365)
    min_booking_hours_ahead: int = Field(default=24, ge=0, le=720)

    def to_entity(self, provider_id: str) -> ProviderAvailability:
        return ProviderAvailability(
            provider_id=provider_id,
            allowed_time_slots=self.allowed_time_slots,
            slot_duration_minutes=self.slot_duration_minutes,
            booking_advance_days_max=self.booking_advance_days_max,
            min_booking_hours_ahead=self.min_booking_hours_ahead,
        )


class AvailabilityResponse(BaseModel):
    provider_id: str
    allowed_time_slots: list[str]
    slot_duration_minutes: int
    booking_advance_days_max: int
    min_booking_hours_ahead: int

    @classmethod
    def from_entity(cls, availability: ProviderAvailability) -> "AvailabilityResponse":
        return cls(
            provider_id=availability.provider_id,
            allowed_time_slots=availability.allowed_time_slots,
            slot_duration_minutes=availability.slot_duration_minutes,
            booking_advance_days_max=availability.booking_advance_days_max,
            min_booking_hours_ahead=availability.min_booking_hours_ahead,
        )


class WorkingDaySchema(BaseModel):
    """One day of the weekly schedule (0 = Sunday)."""

    day_of_week: int = Field(ge=0, le=6)
    start_time: str = Field(default="09:00", pattern=TIME_PATTERN)
    end_time: str = Field(default="17:00", pattern=TIME_PATTERN)
    is_working: bool = True

    def to_entity(self, provider_id: str) -> WorkingHours:
        return WorkingHours(
            provider_id=provider_id,
            day_of_week=self.day_of_week,
            start_time=self.start_time,
            end_time=self.end_time,
            is_working=self.is_working,
        )

    @classmethod
    def from_entity(cls, hours: WorkingHours) -> "WorkingDaySchema":
        return cls(
            day_of_week=hours.day_of_week,
            start_time=hours.start_time,
            end_time=hours.end_time,
            is_working=hours.is_working,
        )


class WorkingHoursRequest(BaseModel):
    days: list[WorkingDaySchema] = Field(max_length=7)


class WorkingHoursResponse(BaseModel):
    provider_id: str
    days: list[WorkingDaySchema]


class AppointmentTypeRequest(BaseModel):
    name: str = Field(min_length=1, max_length=120)
    duration_minutes: int = Field(default=30, ge=5, le=480)
    price: Decimal = Field(default=Decimal("0.00"), ge=0, decimal_places=2)
    requires_payment: bool = True
    is_active: bool = True

    def to_entity(self, provider_id: str) -> AppointmentType:
        return AppointmentType(
            provider_id=provider_id,
            name=self.name,
            duration_minutes=self.duration_minutes,
            price=self.price,
            requires_payment=self.requires_payment,
            is_active=self.is_active,
        )


class AppointmentTypeResponse(BaseModel):
    id: int
    provider_id: str
    name: str
    duration_minutes: int
    price: Decimal
    requires_payment: bool
    is_active: bool

    @classmethod
    def from_entity(cls, appointment_type: AppointmentType) -> "AppointmentTypeResponse":
        return cls(
            id=appointment_type.id or 0,
            provider_id=appointment_type.provider_id,
            name=appointment_type.name,
            duration_minutes=appointment_type.duration_minutes,
            price=appointment_type.price,
            requires_payment=appointment_type.requires_payment,
            is_active=appointment_type.is_active,
        )


class PaymentAccountRequest(BaseModel):
    external_account_ref: str = Field(min_length=1, max_length=255)
    status: PayoutAccountStatus = PayoutAccountStatus.PENDING


class PaymentAccountResponse(BaseModel):
    provider_id: str
    external_account_ref: str
    status: str
    can_receive_payouts: bool

    @classmethod
    def from_entity(cls, account: ProviderPaymentAccount) -> "PaymentAccountResponse":
        return cls(
            provider_id=account.provider_id,
            external_account_ref=account.external_account_ref,
            status=account.status.value,
            can_receive_payouts=account.can_receive_payouts(),
        )


# ==================== APPOINTMENTS ====================


class AppointmentRequest(BaseModel):
    """Appointment request schema."""

    provider_id: str = Field(min_length=1, max_length=100)
    requester_id: str = Field(min_length=1, max_length=100)
    appointment_date: date
    start_time: str = Field(description="HH:MM, 24-hour")
    duration_minutes: int | None = Field(default=None, ge=5, le=480)
    appointment_type_id: int | None = None
    reason: str | None = Field(default=None, max_length=500)
    notes: str | None = Field(default=None, max_length=2000)


class RescheduleRequest(BaseModel):
    new_date: date
    new_time: str = Field(description="HH:MM, 24-hour")


class StatusUpdateRequest(BaseModel):
    status: AppointmentStatus


class CancelRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class PaymentReferenceRequest(BaseModel):
    payment_ref: str = Field(min_length=1, max_length=255)


class AppointmentResponse(BaseModel):
    """Appointment response schema."""

    id: int
    provider_id: str
    requester_id: str
    appointment_date: date
    start_time: str
    end_time: str
    duration_minutes: int
    status: str
    appointment_type_id: int | None = None
    requires_payment: bool
    reason: str | None = None
    notes: str | None = None
    cancellation_reason: str | None = None
    cancelled_at: datetime | None = None

    @classmethod
    def from_entity(cls, appointment: Appointment) -> "AppointmentResponse":
        return cls(
            id=appointment.id or 0,
            provider_id=appointment.provider_id,
            requester_id=appointment.requester_id,
            appointment_date=appointment.appointment_date,
            start_time=appointment.start_time,
            end_time=appointment.ends_at.strftime("%H:%M"),
            duration_minutes=appointment.duration_minutes,
            status=appointment.status.value,
            appointment_type_id=appointment.appointment_type_id,
            requires_payment=appointment.requires_payment,
            reason=appointment.reason,
            notes=appointment.notes,
            cancellation_reason=appointment.cancellation_reason,
            cancelled_at=appointment.cancelled_at,
        )


class SettlementResponse(BaseModel):
    id: int
    appointment_id: int
    provider_id: str
    price: Decimal
    commission_amount: Decimal
    commission_percentage_used: Decimal
    payout_amount: Decimal
    status: str
    requester_paid: bool
    provider_paid: bool
    payout_scheduled_at: datetime | None = None
    refunded: bool
    refund_amount: Decimal | None = None
    refund_type: str | None = None
    manual_intervention_required: bool

    @classmethod
    def from_entity(cls, settlement: Settlement) -> "SettlementResponse":
        return cls(
            id=settlement.id or 0,
            appointment_id=settlement.appointment_id,
            provider_id=settlement.provider_id,
            price=settlement.price,
            commission_amount=settlement.commission_amount,
            commission_percentage_used=settlement.commission_percentage_used,
            payout_amount=settlement.payout_amount,
            status=settlement.status.value,
            requester_paid=settlement.requester_paid,
            provider_paid=settlement.provider_paid,
            payout_scheduled_at=settlement.payout_scheduled_at,
            refunded=settlement.refunded,
            refund_amount=settlement.refund_amount,
            refund_type=settlement.refund_type.value if settlement.refund_type else None,
            manual_intervention_required=settlement.manual_intervention_required,
        )


class RefundResponse(BaseModel):
    id: int | None = None
    amount: Decimal
    refund_type: str
    status: str
    hours_before_appointment: int
    failure_reason: str | None = None

    @classmethod
    def from_entity(cls, refund: RefundRecord) -> "RefundResponse":
        return cls(
            id=refund.id,
            amount=refund.amount,
            refund_type=refund.refund_type.value,
            status=refund.status.value,
            hours_before_appointment=refund.hours_before_appointment,
            failure_reason=refund.failure_reason,
        )


class AppointmentDetailResponse(BaseModel):
    appointment: AppointmentResponse
    settlement: SettlementResponse | None = None
    refunds: list[RefundResponse] = Field(default_factory=list)


class CancelResponse(BaseModel):
    appointment: AppointmentResponse
    settlement: SettlementResponse | None = None
    refund: RefundResponse | None = None


# ==================== ADMIN ====================


class CommissionRequest(BaseModel):
    commission_percentage: Decimal = Field(gt=0, le=100)


class CommissionResponse(BaseModel):
    commission_percentage: Decimal


class PayoutSweepResponse(BaseModel):
    processed: int
    skipped: int
    failed: int
    errors: list[dict[str, str]]


class WebhookResponse(BaseModel):
    received: bool = True
    event_id: str
    event_type: str
    status: str
    changed: bool


class CacheMetricsResponse(BaseModel):
    enabled: bool
    metrics: dict[str, Any]


class CacheClearRequest(BaseModel):
    """Exactly one of key, pattern or all. Keys and patterns are relative to the cache prefix."""

    key: str | None = None
    pattern: str | None = None
    all: bool = False


class CacheClearResponse(BaseModel):
    message: str
    removed: int | None = None
