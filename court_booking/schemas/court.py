"""Court schemas."""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, Dict, Any
from datetime import datetime
from decimal import Decimal

from court_booking.models.court import CourtStatus


class CourtBase(BaseModel):
    """Base court schema."""

    name: str = Field(..., min_length=1)
    court_type: str
    is_indoor: bool = False
    hourly_rate: Decimal = Field(..., gt=0)
    maintenance_schedule: Optional[Dict[str, Any]] = None


class CourtCreate(CourtBase):
    """Schema for creating a court. Peak rate defaults to a multiple of the hourly rate."""

    peak_hour_rate: Optional[Decimal] = Field(default=None, gt=0)
    status: CourtStatus = CourtStatus.AVAILABLE


class CourtUpdate(BaseModel):
    """Schema for updating a court."""

    name: Optional[str] = Field(default=None, min_length=1)
    court_type: Optional[str] = None
    is_indoor: Optional[bool] = None
    status: Optional[CourtStatus] = None
    hourly_rate: Optional[Decimal] = Field(default=None, gt=0)
    peak_hour_rate: Optional[Decimal] = Field(default=None, gt=0)
    maintenance_schedule: Optional[Dict[str, Any]] = None


class CourtInDB(CourtBase):
    """Schema for court from database."""

    id: int
    peak_hour_rate: Decimal
    status: CourtStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
