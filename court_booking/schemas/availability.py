"""Availability schemas."""
from pydantic import BaseModel
from typing import List
from datetime import datetime, date
from decimal import Decimal


class AvailabilitySlot(BaseModel):
    """Schema for a single calendar slot."""

    time: str  # local HH:MM label
    start_time: datetime
    end_time: datetime
    is_available: bool
    is_peak_hour: bool
    price: Decimal


class AvailabilityResponse(BaseModel):
    """Schema for availability of one court on one date."""

    court_id: int
    court_name: str
    date: date
    total_slots: int
    free_slots: int
    booked_slots: int
    booked_percentage: float
    slots: List[AvailabilitySlot]
