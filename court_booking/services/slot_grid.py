"""Slot grid generation for calendar display."""
import logging
from dataclasses import dataclass, field
from datetime import date, datetime, time as dt_time, timedelta
from typing import List, Tuple

import pytz

from court_booking.services.intervals import TimeInterval

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PeakWindow:
    """A daily ``[start, end)`` window of local wall-clock time billed at the peak rate."""

    start: dt_time
    end: dt_time

    def includes(self, moment: dt_time) -> bool:
        return self.start <= moment < self.end


def parse_peak_windows(raw: str) -> Tuple[PeakWindow, ...]:
    """
    Parse a comma separated list of ``HH:MM-HH:MM`` windows.

    Args:
        raw: Window list, e.g. "17:00-19:00,20:00-22:00"

    Returns:
        Tuple of peak windows, empty if ``raw`` is blank
    """
    windows = []
    for chunk in raw.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        start_str, end_str = chunk.split("-")
        start = dt_time.fromisoformat(start_str.strip())
        end = dt_time.fromisoformat(end_str.strip())
        if start >= end:
            raise ValueError(f"Peak window '{chunk}' must start before it ends")
        windows.append(PeakWindow(start=start, end=end))
    return tuple(windows)


@dataclass(frozen=True)
class OperatingSchedule:
    """Fixed daily opening hours, slot size and peak windows of the facility."""

    open_time: dt_time = dt_time(6, 0)
    close_time: dt_time = dt_time(22, 0)
    slot_minutes: int = 60
    timezone: str = "UTC"
    peak_windows: Tuple[PeakWindow, ...] = field(default_factory=tuple)

    @classmethod
    def from_settings(cls, settings) -> "OperatingSchedule":
        return cls(
            open_time=settings.OPEN_TIME,
            close_time=settings.CLOSE_TIME,
            slot_minutes=settings.SLOT_MINUTES,
            timezone=settings.FACILITY_TIMEZONE,
            peak_windows=parse_peak_windows(settings.PEAK_WINDOWS),
        )

    @property
    def tz(self):
        return pytz.timezone(self.timezone)

    def to_local(self, moment: datetime) -> datetime:
        """Convert a naive UTC datetime to facility-local time."""
        return pytz.UTC.localize(moment).astimezone(self.tz)

    def to_utc(self, local_moment: datetime) -> datetime:
        """Convert a naive facility-local datetime to naive UTC."""
        return self.tz.localize(local_moment).astimezone(pytz.UTC).replace(tzinfo=None)

    def is_peak(self, moment: datetime) -> bool:
        """Whether a naive UTC instant falls in a peak window, judged in local time."""
        local_time = self.to_local(moment).time()
        return any(window.includes(local_time) for window in self.peak_windows)


@dataclass(frozen=True)
class GridSlot:
    """A candidate slot before availability is resolved."""

    interval: TimeInterval
    label: str
    is_peak_hour: bool


def generate_slot_grid(
    court_id: int, target_date: date, schedule: OperatingSchedule
) -> List[GridSlot]:
    """
    Build the ordered slot grid of one court for one calendar date.

    Slots are laid out from the opening time in steps of the slot size and
    must end no later than the closing time; a trailing partial slot is
    dropped. Steps are taken in UTC, so on a daylight saving change the
    grid holds one slot fewer or one more and labels follow the local clock.

    Args:
        court_id: Court the slots belong to
        target_date: Local calendar date
        schedule: Operating schedule

    Returns:
        List of grid slots ordered by start time
    """
    step = timedelta(minutes=schedule.slot_minutes)
    if step <= timedelta(0):
        raise ValueError("Slot size must be positive")

    current = schedule.to_utc(datetime.combine(target_date, schedule.open_time))
    closing = schedule.to_utc(datetime.combine(target_date, schedule.close_time))

    slots = []
    while current + step <= closing:
        slots.append(
            GridSlot(
                interval=TimeInterval(court_id=court_id, start=current, end=current + step),
                label=schedule.to_local(current).strftime("%H:%M"),
                is_peak_hour=schedule.is_peak(current),
            )
        )
        current += step

    logger.debug(f"Generated {len(slots)} slots for court {court_id} on {target_date}")
    return slots
