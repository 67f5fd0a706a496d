"""
Clock

Appointment dates and times are wall-clock values in the platform timezone.
Every "now" used by booking, refund and payout rules comes from a Clock so
that it is comparable with those values and can be pinned in tests.
"""

from datetime import datetime, timedelta
from typing import Protocol, runtime_checkable

import pytz


@runtime_checkable
class Clock(Protocol):
    """Source of the current local time (naive, platform timezone)."""

    def now(self) -> datetime: ...


class LocalClock:
    """Wall clock for a named timezone."""

    def __init__(self, timezone_name: str):
        self._tz = pytz.timezone(timezone_name)

    @property
    def timezone(self):
        return self._tz

    def now(self) -> datetime:
        return datetime.now(self._tz).replace(tzinfo=None)


class FixedClock:
    """Clock pinned to a given instant. Used by tests and replay tooling."""

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, **delta) -> None:
        self.current = self.current + timedelta(**delta)
