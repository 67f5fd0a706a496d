"""
Time-of-day values.

Slots and working hours are handled as minutes since midnight so that
half-open interval arithmetic stays exact.
"""

import re
from dataclasses import dataclass

from medibook.core.domain import ValueObject

TIME_PATTERN = re.compile(r"^([01]\d|2[0-3]):([0-5]\d)$")


def is_valid_time(value: str) -> bool:
    """Check a 24-hour HH:MM string."""
    return bool(TIME_PATTERN.match(value or ""))


def parse_time(value: str) -> int:
    """Convert HH:MM to minutes since midnight."""
    match = TIME_PATTERN.match(value or "")
    if not match:
        raise ValueError(f"Invalid time format: {value!r}, expected HH:MM")
    return int(match.group(1)) * 60 + int(match.group(2))


def format_time(minutes: int) -> str:
    """Convert minutes since midnight to HH:MM."""
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True)
class TimeRange(ValueObject):
    """
    Half-open interval [start, end) in minutes since midnight.
    """

    start: int
    end: int

    def _validate(self) -> None:
        if self.start < 0:
            raise ValueError("Time range out of bounds")
        if self.start >= self.end:
            raise ValueError("Start time must be before end time")

    @classmethod
    def starting_at(cls, time_str: str, duration_minutes: int) -> "TimeRange":
        start = parse_time(time_str)
        return cls(start=start, end=start + duration_minutes)

    @property
    def duration(self) -> int:
        return self.end - self.start

    def overlaps_with(self, other: "TimeRange") -> bool:
        """Half-open intersection: touching intervals do not overlap."""
        return self.start < other.end and other.start < self.end

    def contains(self, other: "TimeRange") -> bool:
        return self.start <= other.start and other.end <= self.end

    def __str__(self) -> str:
        return f"{format_time(self.start)} - {format_time(self.end)}"
