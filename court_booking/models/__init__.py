"""Database models."""
from court_booking.models.court import Court, CourtStatus
from court_booking.models.booking import Booking, BookingStatus, PaymentStatus

__all__ = ["Court", "CourtStatus", "Booking", "BookingStatus", "PaymentStatus"]
