"""Booking model."""
from enum import Enum

from sqlalchemy import Column, DateTime, Enum as SAEnum, ForeignKey, Index, Integer, Numeric, String, text
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from court_booking.core.database import Base
from court_booking.services.intervals import TimeInterval


class BookingStatus(str, Enum):
    """Lifecycle status of a booking."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    COMPLETED = "COMPLETED"


class PaymentStatus(str, Enum):
    """Payment status of a booking."""

    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"


# Allowed status transitions, listed for every status
BOOKING_TRANSITIONS = {
    BookingStatus.PENDING: {BookingStatus.CANCELLED},
    BookingStatus.CONFIRMED: {BookingStatus.CANCELLED, BookingStatus.COMPLETED},
    BookingStatus.CANCELLED: set(),
    BookingStatus.COMPLETED: set(),
}


def can_transition(current: BookingStatus, target: BookingStatus) -> bool:
    return BookingStatus(target) in BOOKING_TRANSITIONS[BookingStatus(current)]


class Booking(Base):
    """A reservation of one court over a half-open time interval."""

    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    court_id = Column(Integer, ForeignKey("courts.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String, nullable=False, index=True)
    start_time = Column(DateTime, nullable=False)  # naive UTC
    end_time = Column(DateTime, nullable=False)    # naive UTC, excluded
    status = Column(SAEnum(BookingStatus, name="booking_status"), nullable=False, default=BookingStatus.PENDING)
    payment_status = Column(SAEnum(PaymentStatus, name="payment_status"), nullable=False, default=PaymentStatus.PENDING)
    total_amount = Column(Numeric(10, 2), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    court = relationship("Court", back_populates="bookings")

    __table_args__ = (
        Index("ix_bookings_court_status_start", "court_id", "status", "start_time"),
        # Two confirmed bookings can never share a start on the same court
        Index(
            "uq_bookings_confirmed_court_start",
            "court_id",
            "start_time",
            unique=True,
            postgresql_where=text("status = 'CONFIRMED'"),
            sqlite_where=text("status = 'CONFIRMED'"),
        ),
    )

    @property
    def interval(self) -> TimeInterval:
        return TimeInterval(court_id=self.court_id, start=self.start_time, end=self.end_time)
