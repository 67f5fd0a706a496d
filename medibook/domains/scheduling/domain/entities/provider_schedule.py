"""
Provider configuration entities.

Availability rules, weekly working hours, bookable appointment types and
the payout account of a provider.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from medibook.core.domain import Entity, ValidationException

from ..value_objects import PayoutAccountStatus, TimeRange, is_valid_time, parse_time

DEFAULT_SLOT_DURATION_MINUTES = 30
DEFAULT_BOOKING_ADVANCE_DAYS = 30
DEFAULT_MIN_BOOKING_HOURS = 24


@dataclass(eq=False)
class ProviderAvailability(Entity[int]):
    """
    Booking window and slot granularity for a provider.

    An empty allowed_time_slots list means every generated slot is allowed.
    """

    provider_id: str = ""
    allowed_time_slots: list[str] = field(default_factory=list)
    slot_duration_minutes: int = DEFAULT_SLOT_DURATION_MINUTES
    booking_advance_days_max: int = DEFAULT_BOOKING_ADVANCE_DAYS
    min_booking_hours_ahead: int = DEFAULT_MIN_BOOKING_HOURS

    def __post_init__(self):
        if self.slot_duration_minutes <= 0:
            raise ValidationException("Slot duration must be positive", field="slot_duration_minutes")
        if self.booking_advance_days_max < 0 or self.min_booking_hours_ahead < 0:
            raise ValidationException("Booking window values cannot be negative")
        for slot in self.allowed_time_slots:
            if not is_valid_time(slot):
                raise ValidationException(
                    f"Invalid allowed slot {slot!r}, expected HH:MM",
                    code="INVALID_TIME_FORMAT",
                    field="allowed_time_slots",
                )
        self.allowed_time_slots = sorted(set(self.allowed_time_slots))


@dataclass(eq=False)
class WorkingHours(Entity[int]):
    """
    Working window for one day of the week.

    day_of_week follows 0 = Sunday ... 6 = Saturday.
    """

    provider_id: str = ""
    day_of_week: int = 0
    start_time: str = "09:00"
    end_time: str = "17:00"
    is_working: bool = True

    def __post_init__(self):
        if not 0 <= self.day_of_week <= 6:
            raise ValidationException("day_of_week must be between 0 (Sunday) and 6 (Saturday)", field="day_of_week")
        if not is_valid_time(self.start_time) or not is_valid_time(self.end_time):
            raise ValidationException("Working hours must use HH:MM", code="INVALID_TIME_FORMAT")
        if self.is_working and parse_time(self.start_time) >= parse_time(self.end_time):
            raise ValidationException("Working hours start must be before end", field="start_time")

    @property
    def window(self) -> TimeRange:
        return TimeRange(start=parse_time(self.start_time), end=parse_time(self.end_time))


@dataclass(eq=False)
class AppointmentType(Entity[int]):
    """Bookable service offered by a provider."""

    provider_id: str = ""
    name: str = ""
    duration_minutes: int = DEFAULT_SLOT_DURATION_MINUTES
    price: Decimal = Decimal("0.00")
    requires_payment: bool = True
    is_active: bool = True

    def __post_init__(self):
        if self.duration_minutes <= 0:
            raise ValidationException("Duration must be positive", field="duration_minutes")
        if self.price < 0:
            raise ValidationException("Price cannot be negative", field="price")

    @property
    def is_billable(self) -> bool:
        """A settlement is created only for paid, priced types."""
        return self.requires_payment and self.price > 0


@dataclass(eq=False)
class ProviderPaymentAccount(Entity[int]):
    """External account that receives provider payouts."""

    provider_id: str = ""
    external_account_ref: str = ""
    status: PayoutAccountStatus = PayoutAccountStatus.PENDING

    def can_receive_payouts(self) -> bool:
        return bool(self.external_account_ref) and self.status == PayoutAccountStatus.ACTIVE


@dataclass(eq=False)
class PlatformSettings(Entity[int]):
    """Platform-wide settlement configuration (single row)."""

    commission_percentage: Decimal = Decimal("5.00")
