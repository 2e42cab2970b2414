"""Admission control for court bookings.

:class:`BookingConflictGuard` is the only component that turns a booking
request into a CONFIRMED booking. The read of existing bookings, the
overlap test and the insert all happen while the court's serialization
point is held, so two requests for overlapping windows can never both pass
the check.
"""
import logging
from datetime import datetime

from court_booking.core.errors import ErrorCode, ReservationError
from court_booking.models.booking import Booking, BookingStatus, PaymentStatus, can_transition
from court_booking.models.court import CourtStatus
from court_booking.services.booking_store import BookingStore
from court_booking.services.clock import to_naive_utc
from court_booking.services.intervals import TimeInterval
from court_booking.services.pricing import calculate_price
from court_booking.services.slot_grid import OperatingSchedule

logger = logging.getLogger(__name__)


class BookingConflictGuard:
    """Creates and cancels bookings without ever double-booking a court."""

    def __init__(
        self,
        store: BookingStore,
        clock,
        schedule: OperatingSchedule,
        lock_timeout: float = 5.0,
    ):
        self.store = store
        self.clock = clock
        self.schedule = schedule
        self.lock_timeout = lock_timeout

    async def check_and_create_booking(
        self,
        court_id: int,
        user_id: str,
        start_time: datetime,
        end_time: datetime,
    ) -> Booking:
        """
        Admit a booking request or reject it with a ReservationError.

        Args:
            court_id: Court to book
            user_id: Requesting user
            start_time: Start of the requested interval
            end_time: End of the requested interval (excluded)

        Returns:
            The created CONFIRMED booking with payment status PENDING
        """
        interval = TimeInterval(
            court_id=court_id,
            start=to_naive_utc(start_time),
            end=to_naive_utc(end_time),
        )

        if interval.start < self.clock.now():
            raise ReservationError(ErrorCode.INVALID_TIME, "Cannot book in the past")

        async with self.store.serialize(court_id, self.lock_timeout) as tx:
            court = await tx.get_court(court_id)
            if court is None:
                raise ReservationError(ErrorCode.COURT_NOT_FOUND, "Court not found")
            if not court.is_bookable:
                raise ReservationError(
                    ErrorCode.COURT_UNAVAILABLE,
                    f"Court is {CourtStatus(court.status).value.lower()} and cannot be booked",
                )

            existing = await tx.find_overlapping_confirmed_bookings(court_id, interval)
            if any(interval.overlaps(booking.interval) for booking in existing):
                logger.warning(
                    f"Rejected booking on court {court_id} for "
                    f"{interval.start}-{interval.end}: slot unavailable"
                )
                raise ReservationError(
                    ErrorCode.SLOT_UNAVAILABLE, "Time slot is already booked"
                )

            booking = Booking(
                court_id=court_id,
                user_id=user_id,
                start_time=interval.start,
                end_time=interval.end,
                status=BookingStatus.CONFIRMED,
                payment_status=PaymentStatus.PENDING,
                total_amount=calculate_price(interval, court, self.schedule),
            )
            booking = await tx.insert_confirmed_booking(booking)

        logger.info(
            f"Confirmed booking {booking.id} on court {court_id} for user {user_id} "
            f"({interval.start}-{interval.end}, amount {booking.total_amount})"
        )
        return booking

    async def cancel_booking(
        self, booking_id: int, requesting_user_id: str, is_admin: bool = False
    ) -> Booking:
        """
        Cancel a PENDING or CONFIRMED booking.

        Only the owner or an administrator may cancel. A booking that is
        already CANCELLED or COMPLETED is rejected with BOOKING_NOT_CANCELLABLE.
        """
        booking = await self.store.get_booking(booking_id)
        if booking is None:
            raise ReservationError(ErrorCode.BOOKING_NOT_FOUND, "Booking not found")

        async with self.store.serialize(booking.court_id, self.lock_timeout) as tx:
            booking = await tx.get_booking(booking_id)
            if booking is None:
                raise ReservationError(ErrorCode.BOOKING_NOT_FOUND, "Booking not found")
            if not is_admin and booking.user_id != requesting_user_id:
                raise ReservationError(
                    ErrorCode.FORBIDDEN, "Not authorized to cancel this booking"
                )
            if not can_transition(booking.status, BookingStatus.CANCELLED):
                raise ReservationError(
                    ErrorCode.BOOKING_NOT_CANCELLABLE,
                    f"Booking is already {BookingStatus(booking.status).value.lower()}",
                )
            booking = await tx.update_booking_status(booking_id, BookingStatus.CANCELLED)

        logger.info(f"Cancelled booking {booking_id} by user {requesting_user_id}")
        return booking
