"""Booking schemas."""
from pydantic import BaseModel, ConfigDict
from typing import Optional
from datetime import datetime
from decimal import Decimal

from court_booking.models.booking import BookingStatus, PaymentStatus
from court_booking.schemas.court import CourtInDB


class BookingCreate(BaseModel):
    """Schema for a booking request. Naive datetimes are taken as UTC."""

    court_id: int
    start_time: datetime
    end_time: datetime


class BookingInDB(BaseModel):
    """Schema for booking from database."""

    id: int
    court_id: int
    user_id: str
    start_time: datetime
    end_time: datetime
    status: BookingStatus
    payment_status: PaymentStatus
    total_amount: Decimal
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class BookingWithCourt(BookingInDB):
    """Booking including its court."""

    court: CourtInDB


class BookedInterval(BaseModel):
    """A confirmed booking as exposed by the availability check."""

    court_id: int
    start_time: datetime
    end_time: datetime
    status: BookingStatus

    model_config = ConfigDict(from_attributes=True)
