"""Availability endpoints."""
from datetime import date
from fastapi import APIRouter, Depends, Query

from court_booking.api.deps import CurrentUser, get_availability_service, get_current_user
from court_booking.schemas.availability import AvailabilityResponse
from court_booking.services.availability_service import AvailabilityService

router = APIRouter(prefix="/courts/{court_id}", tags=["availability"])


@router.get("/availability", response_model=AvailabilityResponse)
async def get_availability(
    court_id: int,
    date: date = Query(..., description="Local calendar date (YYYY-MM-DD)"),
    service: AvailabilityService = Depends(get_availability_service),
    user: CurrentUser = Depends(get_current_user),
):
    """
    Get the slot calendar of a court for one date.

    Each slot shows whether it is free, whether it is a peak hour, and its
    price. The result reflects the bookings at read time; a free slot can
    still be taken before it is booked.

    Args:
        court_id: Court ID
        date: Calendar date
        service: Availability service

    Returns:
        Availability data
    """
    return await service.get_availability(court_id, date)
