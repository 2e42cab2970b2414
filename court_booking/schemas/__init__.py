"""API schemas."""
from court_booking.schemas.court import (
    CourtCreate,
    CourtUpdate,
    CourtInDB,
)
from court_booking.schemas.booking import (
    BookingCreate,
    BookingInDB,
    BookingWithCourt,
    BookedInterval,
)
from court_booking.schemas.availability import (
    AvailabilitySlot,
    AvailabilityResponse,
)
from court_booking.schemas.dashboard import (
    DashboardCounts,
    DashboardStats,
)

__all__ = [
    "CourtCreate",
    "CourtUpdate",
    "CourtInDB",
    "BookingCreate",
    "BookingInDB",
    "BookingWithCourt",
    "BookedInterval",
    "AvailabilitySlot",
    "AvailabilityResponse",
    "DashboardCounts",
    "DashboardStats",
]
