"""Tests for booking price calculation."""
from decimal import Decimal

from court_booking.services.intervals import TimeInterval
from court_booking.services.pricing import billed_hours, calculate_price, default_peak_rate
from tests.fakes import at


def test_one_off_peak_hour_at_hourly_rate(court, schedule):
    interval = TimeInterval(court.id, at(10), at(11))
    assert calculate_price(interval, court, schedule) == Decimal("25.00")


def test_partial_hours_are_rounded_up(court, schedule):
    interval = TimeInterval(court.id, at(10), at(11, 30))
    assert billed_hours(interval) == 2
    assert calculate_price(interval, court, schedule) == Decimal("50.00")


def test_short_booking_billed_as_full_hour(court, schedule):
    interval = TimeInterval(court.id, at(10), at(10, 15))
    assert billed_hours(interval) == 1


def test_peak_start_uses_peak_rate(court, schedule):
    interval = TimeInterval(court.id, at(18), at(19))
    assert calculate_price(interval, court, schedule) == Decimal("35.00")


def test_rate_chosen_by_start_time(court, schedule):
    # Starts off-peak, runs into the 17:00 peak window
    into_peak = TimeInterval(court.id, at(16, 30), at(18, 30))
    assert calculate_price(into_peak, court, schedule) == Decimal("50.00")

    # Starts in peak, runs into the 19:00 off-peak gap
    out_of_peak = TimeInterval(court.id, at(18, 30), at(20, 30))
    assert calculate_price(out_of_peak, court, schedule) == Decimal("70.00")


def test_default_peak_rate():
    assert default_peak_rate(Decimal("25"), 1.5) == Decimal("37.50")
    assert default_peak_rate(20, 1.5) == Decimal("30.00")
