"""Half-open time intervals on a court.

An interval covers ``[start, end)``: the end instant is excluded, so two
bookings where one ends exactly when the next starts are adjacent and do
not overlap. Back-to-back bookings are therefore legal.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta

from court_booking.core.errors import ErrorCode, ReservationError


@dataclass(frozen=True)
class TimeInterval:
    """A ``[start, end)`` range of naive UTC datetimes tied to one court."""

    court_id: int
    start: datetime
    end: datetime

    def __post_init__(self):
        if self.start >= self.end:
            raise ReservationError(
                ErrorCode.INVALID_TIME_RANGE,
                "Start time must be before end time",
            )

    @property
    def duration(self) -> timedelta:
        return self.end - self.start

    def overlaps(self, other: "TimeInterval") -> bool:
        return overlaps(self, other)

    def contains(self, point: datetime) -> bool:
        return contains(self, point)


def overlaps(a: TimeInterval, b: TimeInterval) -> bool:
    """True when both intervals are on the same court and share any instant."""
    if a.court_id != b.court_id:
        return False
    return a.start < b.end and b.start < a.end


def contains(interval: TimeInterval, point: datetime) -> bool:
    return interval.start <= point < interval.end
