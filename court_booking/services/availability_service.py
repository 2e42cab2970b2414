"""Availability service for computing calendar slots."""
import logging
from typing import List, Sequence
from datetime import date

from court_booking.core.errors import ErrorCode, ReservationError
from court_booking.models.booking import Booking
from court_booking.models.court import Court
from court_booking.schemas.availability import AvailabilitySlot, AvailabilityResponse
from court_booking.services.booking_store import BookingStore
from court_booking.services.intervals import TimeInterval
from court_booking.services.pricing import calculate_price
from court_booking.services.slot_grid import GridSlot, OperatingSchedule, generate_slot_grid

logger = logging.getLogger(__name__)


def resolve_availability(
    court: Court,
    grid: Sequence[GridSlot],
    bookings: Sequence[Booking],
    schedule: OperatingSchedule,
) -> List[AvailabilitySlot]:
    """
    Mark each grid slot free or occupied and attach its price.

    A slot is available when no booking in ``bookings`` overlaps it. Courts
    that cannot take bookings report every slot as unavailable. The
    bookings are only read.

    Args:
        court: Court the grid belongs to
        grid: Ordered grid slots
        bookings: CONFIRMED bookings of the court for the grid's day
        schedule: Operating schedule used for pricing

    Returns:
        Slots in grid order
    """
    booked = [booking.interval for booking in bookings]
    slots = []
    for grid_slot in grid:
        interval = grid_slot.interval
        is_free = court.is_bookable and not any(interval.overlaps(b) for b in booked)
        slots.append(
            AvailabilitySlot(
                time=grid_slot.label,
                start_time=interval.start,
                end_time=interval.end,
                is_available=is_free,
                is_peak_hour=grid_slot.is_peak_hour,
                price=calculate_price(interval, court, schedule),
            )
        )
    return slots


class AvailabilityService:
    """Service for reading court availability. Never locks; results are advisory."""

    def __init__(self, store: BookingStore, schedule: OperatingSchedule):
        self.store = store
        self.schedule = schedule

    async def get_availability(self, court_id: int, target_date: date) -> AvailabilityResponse:
        """
        Get the slot calendar of a court for one date.

        Args:
            court_id: Court ID
            target_date: Local calendar date

        Returns:
            AvailabilityResponse with ordered slots and utilization counts
        """
        court = await self.store.get_court(court_id)
        if not court:
            raise ReservationError(ErrorCode.COURT_NOT_FOUND, f"Court {court_id} not found")

        grid = generate_slot_grid(court.id, target_date, self.schedule)

        bookings = []
        if grid:
            window = TimeInterval(
                court_id=court.id,
                start=grid[0].interval.start,
                end=grid[-1].interval.end,
            )
            bookings = await self.store.find_confirmed_bookings(court.id, window)

        slots = resolve_availability(court, grid, bookings, self.schedule)

        total_slots = len(slots)
        free_slots = sum(1 for s in slots if s.is_available)
        booked_slots = total_slots - free_slots
        booked_percentage = (booked_slots / total_slots * 100) if total_slots > 0 else 0

        logger.info(
            f"Availability for court {court.name} ({court.id}) on {target_date}: "
            f"{free_slots}/{total_slots} free"
        )

        return AvailabilityResponse(
            court_id=court.id,
            court_name=court.name,
            date=target_date,
            total_slots=total_slots,
            free_slots=free_slots,
            booked_slots=booked_slots,
            booked_percentage=round(booked_percentage, 2),
            slots=slots,
        )
