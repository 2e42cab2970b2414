"""Booking price calculation."""
import math
from decimal import Decimal, ROUND_HALF_UP

from court_booking.services.intervals import TimeInterval
from court_booking.services.slot_grid import OperatingSchedule

SECONDS_PER_HOUR = 3600
CENTS = Decimal("0.01")


def billed_hours(interval: TimeInterval) -> int:
    """Duration rounded up to whole hours."""
    return math.ceil(interval.duration.total_seconds() / SECONDS_PER_HOUR)


def calculate_price(interval: TimeInterval, court, schedule: OperatingSchedule) -> Decimal:
    """
    Price an interval on a court.

    The whole interval is billed at a single rate, chosen by its start time:
    the peak rate if the start falls in a peak window, the hourly rate
    otherwise.

    Args:
        interval: Interval to price
        court: Court providing ``hourly_rate`` and ``peak_hour_rate``
        schedule: Operating schedule with the peak windows

    Returns:
        Total amount rounded to cents
    """
    if schedule.is_peak(interval.start):
        rate = Decimal(str(court.peak_hour_rate))
    else:
        rate = Decimal(str(court.hourly_rate))
    amount = rate * billed_hours(interval)
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def default_peak_rate(hourly_rate, multiplier: float) -> Decimal:
    """Peak rate used when a court is created without one."""
    rate = Decimal(str(hourly_rate)) * Decimal(str(multiplier))
    return rate.quantize(CENTS, rounding=ROUND_HALF_UP)
