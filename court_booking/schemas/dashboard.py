"""Dashboard schemas."""
from pydantic import BaseModel
from typing import List

from court_booking.schemas.booking import BookingWithCourt
from court_booking.schemas.court import CourtInDB


class DashboardCounts(BaseModel):
    """Headline numbers for the dashboard."""

    total_courts: int
    available_courts: int
    user_bookings: int


class DashboardStats(BaseModel):
    """Schema for the per-user dashboard."""

    stats: DashboardCounts
    upcoming_bookings: List[BookingWithCourt]
    available_courts_details: List[CourtInDB]
