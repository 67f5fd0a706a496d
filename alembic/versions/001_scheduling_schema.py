"""Create scheduling and settlement schema.

Revision ID: 001_scheduling_schema
Revises:
Create Date: 2026-10-17

Creates:
- provider_availability, provider_working_hours, appointment_types,
  provider_payment_accounts: provider configuration
- platform_settings: single-row commission configuration
- appointments: booked intervals (never deleted)
- settlements: commission/payout/refund record, one per priced appointment
- refund_records: append-only cancellation refunds
"""

from typing import Sequence, Union

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001_scheduling_schema"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ENUMS = {
    "appointment_status": ("PENDING", "CONFIRMED", "COMPLETED", "CANCELLED"),
    "settlement_status": ("PROCESSING", "COMPLETED", "FAILED", "REFUNDED", "PARTIALLY_REFUNDED"),
    "refund_type": ("FULL", "PARTIAL", "NO_REFUND"),
    "refund_status": ("PENDING", "COMPLETED", "FAILED"),
    "payout_account_status": ("PENDING", "ACTIVE", "RESTRICTED", "DISABLED"),
}


def _enum(name: str) -> postgresql.ENUM:
    """Reference to a type created in upgrade(); never re-created by create_table."""
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.text("now()")),
    ]


def upgrade() -> None:
    bind = op.get_bind()
    for name, values in ENUMS.items():
        postgresql.ENUM(*values, name=name).create(bind, checkfirst=True)

    # =========================================================================
    # Provider configuration
    # =========================================================================
    op.create_table(
        "provider_availability",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("provider_id", sa.String(64), nullable=False),
        sa.Column("allowed_time_slots", sa.JSON(), nullable=False),
        sa.Column("slot_duration_minutes", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("booking_advance_days_max", sa.Integer(), nullable=False, server_default="30"),
        sa.Column("min_booking_hours_ahead", sa.Integer(), nullable=False, server_default="24"),
        *_timestamps(),
    )
    op.create_index("ix_provider_availability_provider_id", "provider_availability", ["provider_id"], unique=True)

    op.create_table(
        "provider_working_hours",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("provider_id", sa.String(64), nullable=False),
        sa.Column("day_of_week", sa.Integer(), nullable=False),
        sa.Column("start_time", sa.String(5), nullable=False),
        sa.Column("end_time", sa.String(5), nullable=False),
        sa.Column("is_working", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
        sa.UniqueConstraint("provider_id", "day_of_week", name="uq_working_hours_provider_day"),
        sa.CheckConstraint("day_of_week BETWEEN 0 AND 6", name="ck_working_hours_day_of_week"),
    )
    op.create_index("ix_provider_working_hours_provider_id", "provider_working_hours", ["provider_id"])

    op.create_table(
        "appointment_types",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("provider_id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(120), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("requires_payment", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )
    op.create_index("ix_appointment_types_provider_id", "appointment_types", ["provider_id"])

    op.create_table(
        "provider_payment_accounts",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("provider_id", sa.String(64), nullable=False),
        sa.Column("external_account_ref", sa.String(128), nullable=False),
        sa.Column("status", _enum("payout_account_status"), nullable=False, server_default="PENDING"),
        *_timestamps(),
    )
    op.create_index(
        "ix_provider_payment_accounts_provider_id", "provider_payment_accounts", ["provider_id"], unique=True
    )

    op.create_table(
        "platform_settings",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("commission_percentage", sa.Numeric(5, 2), nullable=False),
        *_timestamps(),
        sa.CheckConstraint(
            "commission_percentage > 0 AND commission_percentage <= 100",
            name="ck_platform_settings_commission_range",
        ),
    )

    # =========================================================================
    # Appointments
    # =========================================================================
    op.create_table(
        "appointments",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("provider_id", sa.String(64), nullable=False),
        sa.Column("requester_id", sa.String(64), nullable=False),
        sa.Column("appointment_date", sa.Date(), nullable=False),
        sa.Column("start_time", sa.String(5), nullable=False),
        sa.Column("duration_minutes", sa.Integer(), nullable=False),
        sa.Column("appointment_type_id", sa.Integer(), sa.ForeignKey("appointment_types.id"), nullable=True),
        sa.Column("requires_payment", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("status", _enum("appointment_status"), nullable=False, server_default="PENDING"),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("cancellation_reason", sa.Text(), nullable=True),
        sa.Column("cancelled_at", sa.DateTime(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_appointments_provider_id", "appointments", ["provider_id"])
    op.create_index("ix_appointments_requester_id", "appointments", ["requester_id"])
    op.create_index(
        "ix_appointments_provider_date_status", "appointments", ["provider_id", "appointment_date", "status"]
    )

    # =========================================================================
    # Settlements and refunds
    # =========================================================================
    op.create_table(
        "settlements",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("appointment_id", sa.Integer(), sa.ForeignKey("appointments.id"), nullable=False, unique=True),
        sa.Column("provider_id", sa.String(64), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("commission_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("commission_percentage_used", sa.Numeric(5, 2), nullable=False),
        sa.Column("payout_amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("status", _enum("settlement_status"), nullable=False, server_default="PROCESSING"),
        sa.Column("requester_paid", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("requester_paid_at", sa.DateTime(), nullable=True),
        sa.Column("payment_ref", sa.String(128), nullable=True, unique=True),
        sa.Column("charge_ref", sa.String(128), nullable=True),
        sa.Column("provider_paid", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("provider_paid_at", sa.DateTime(), nullable=True),
        sa.Column("payout_scheduled_at", sa.DateTime(), nullable=True),
        sa.Column("transfer_ref", sa.String(128), nullable=True),
        sa.Column("last_payout_error", sa.Text(), nullable=True),
        sa.Column("last_payout_attempt_at", sa.DateTime(), nullable=True),
        sa.Column("refunded", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("refund_amount", sa.Numeric(10, 2), nullable=True),
        sa.Column("refund_type", _enum("refund_type"), nullable=True),
        sa.Column("manual_intervention_required", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("manual_intervention_reason", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_settlements_provider_id", "settlements", ["provider_id"])
    op.create_index("ix_settlements_transfer_ref", "settlements", ["transfer_ref"])
    op.create_index(
        "ix_settlements_payout_due", "settlements", ["requester_paid", "provider_paid", "payout_scheduled_at"]
    )

    op.create_table(
        "refund_records",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("settlement_id", sa.Integer(), sa.ForeignKey("settlements.id"), nullable=False),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column("refund_type", _enum("refund_type"), nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("hours_before_appointment", sa.Integer(), nullable=False),
        sa.Column("external_refund_ref", sa.String(128), nullable=True),
        sa.Column("status", _enum("refund_status"), nullable=False, server_default="PENDING"),
        sa.Column("failure_reason", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_refund_records_settlement_id", "refund_records", ["settlement_id"])


def downgrade() -> None:
    op.drop_table("refund_records")
    op.drop_table("settlements")
    op.drop_table("appointments")
    op.drop_table("platform_settings")
    op.drop_table("provider_payment_accounts")
    op.drop_table("appointment_types")
    op.drop_table("provider_working_hours")
    op.drop_table("provider_availability")

    bind = op.get_bind()
    for name in reversed(list(ENUMS)):
        postgresql.ENUM(name=name).drop(bind, checkfirst=True)
