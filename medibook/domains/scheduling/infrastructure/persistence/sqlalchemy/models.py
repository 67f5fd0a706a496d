"""
Scheduling SQLAlchemy Models

Database models for booking and settlement persistence.
Appointment times are stored as zero-padded HH:MM strings in the
platform timezone; settlement timestamps are naive local datetimes.
"""

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy import Enum as SQLEnum

from medibook.database.base import Base, TimestampMixin
from medibook.domains.scheduling.domain.value_objects import (
    AppointmentStatus,
    PayoutAccountStatus,
    RefundStatus,
    RefundType,
    SettlementStatus,
)

MONEY = Numeric(10, 2)


class ProviderAvailabilityModel(Base, TimestampMixin):
    """Booking window and slot rules per provider."""

    __tablename__ = "provider_availability"

    id = Column(Integer, primary_key=True)
    provider_id = Column(String(64), nullable=False, unique=True, index=True)
    allowed_time_slots = Column(JSON, nullable=False, default=list)
    slot_duration_minutes = Column(Integer, nullable=False, default=30)
    booking_advance_days_max = Column(Integer, nullable=False, default=30)
    min_booking_hours_ahead = Column(Integer, nullable=False, default=24)


class ProviderWorkingHoursModel(Base, TimestampMixin):
    """Weekly working window per provider (0 = Sunday)."""

    __tablename__ = "provider_working_hours"
    __table_args__ = (UniqueConstraint("provider_id", "day_of_week", name="uq_working_hours_provider_day"),)

    id = Column(Integer, primary_key=True)
    provider_id = Column(String(64), nullable=False, index=True)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    is_working = Column(Boolean, nullable=False, default=True)


class AppointmentTypeModel(Base, TimestampMixin):
    """Bookable service with its own duration and price."""

    __tablename__ = "appointment_types"

    id = Column(Integer, primary_key=True)
    provider_id = Column(String(64), nullable=False, index=True)
    name = Column(String(120), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    price = Column(MONEY, nullable=False, default=0)
    requires_payment = Column(Boolean, nullable=False, default=True)
    is_active = Column(Boolean, nullable=False, default=True)


class ProviderPaymentAccountModel(Base, TimestampMixin):
    """External payout destination per provider."""

    __tablename__ = "provider_payment_accounts"

    id = Column(Integer, primary_key=True)
    provider_id = Column(String(64), nullable=False, unique=True, index=True)
    external_account_ref = Column(String(128), nullable=False)
    status = Column(
        SQLEnum(PayoutAccountStatus, name="payout_account_status"),
        nullable=False,
        default=PayoutAccountStatus.PENDING,
    )


class PlatformSettingsModel(Base, TimestampMixin):
    """Single-row platform configuration."""

    __tablename__ = "platform_settings"

    id = Column(Integer, primary_key=True)
    commission_percentage = Column(Numeric(5, 2), nullable=False)


class AppointmentModel(Base, TimestampMixin):
    """SQLAlchemy model for Appointment entity."""

    __tablename__ = "appointments"
    __table_args__ = (Index("ix_appointments_provider_date_status", "provider_id", "appointment_date", "status"),)

    id = Column(Integer, primary_key=True)
    provider_id = Column(String(64), nullable=False, index=True)
    requester_id = Column(String(64), nullable=False, index=True)

    appointment_date = Column(Date, nullable=False)
    start_time = Column(String(5), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    appointment_type_id = Column(Integer, ForeignKey("appointment_types.id"), nullable=True)
    requires_payment = Column(Boolean, nullable=False, default=False)

    status = Column(
        SQLEnum(AppointmentStatus, name="appointment_status"),
        nullable=False,
        default=AppointmentStatus.PENDING,
    )
    reason = Column(Text, nullable=True)
    notes = Column(Text, nullable=True)

    cancellation_reason = Column(Text, nullable=True)
    cancelled_at = Column(DateTime, nullable=True)


class SettlementModel(Base, TimestampMixin):
    """Commission, payout and refund record of a priced appointment."""

    __tablename__ = "settlements"
    __table_args__ = (Index("ix_settlements_payout_due", "requester_paid", "provider_paid", "payout_scheduled_at"),)

    id = Column(Integer, primary_key=True)
    appointment_id = Column(Integer, ForeignKey("appointments.id"), nullable=False, unique=True)
    provider_id = Column(String(64), nullable=False, index=True)

    price = Column(MONEY, nullable=False)
    commission_amount = Column(MONEY, nullable=False)
    commission_percentage_used = Column(Numeric(5, 2), nullable=False)
    payout_amount = Column(MONEY, nullable=False)

    status = Column(
        SQLEnum(SettlementStatus, name="settlement_status"),
        nullable=False,
        default=SettlementStatus.PROCESSING,
    )

    requester_paid = Column(Boolean, nullable=False, default=False)
    requester_paid_at = Column(DateTime, nullable=True)
    payment_ref = Column(String(128), nullable=True, unique=True)
    charge_ref = Column(String(128), nullable=True)

    provider_paid = Column(Boolean, nullable=False, default=False)
    provider_paid_at = Column(DateTime, nullable=True)
    payout_scheduled_at = Column(DateTime, nullable=True)
    transfer_ref = Column(String(128), nullable=True, index=True)
    last_payout_error = Column(Text, nullable=True)
    last_payout_attempt_at = Column(DateTime, nullable=True)

    refunded = Column(Boolean, nullable=False, default=False)
    refund_amount = Column(MONEY, nullable=True)
    refund_type = Column(SQLEnum(RefundType, name="refund_type"), nullable=True)

    manual_intervention_required = Column(Boolean, nullable=False, default=False)
    manual_intervention_reason = Column(Text, nullable=True)


class RefundRecordModel(Base, TimestampMixin):
    """Append-only cancellation refund trace."""

    __tablename__ = "refund_records"

    id = Column(Integer, primary_key=True)
    settlement_id = Column(Integer, ForeignKey("settlements.id"), nullable=False, index=True)
    amount = Column(MONEY, nullable=False)
    refund_type = Column(SQLEnum(RefundType, name="refund_type"), nullable=False)
    reason = Column(Text, nullable=True)
    hours_before_appointment = Column(Integer, nullable=False)
    external_refund_ref = Column(String(128), nullable=True)
    status = Column(SQLEnum(RefundStatus, name="refund_status"), nullable=False, default=RefundStatus.PENDING)
    failure_reason = Column(Text, nullable=True)
