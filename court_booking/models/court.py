"""Court model."""
from enum import Enum

from sqlalchemy import Boolean, Column, DateTime, Enum as SAEnum, Integer, JSON, Numeric, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from court_booking.core.database import Base


class CourtStatus(str, Enum):
    """Operational status of a court."""

    AVAILABLE = "AVAILABLE"
    OCCUPIED = "OCCUPIED"
    MAINTENANCE = "MAINTENANCE"
    CLOSED = "CLOSED"


# Whether new bookings may be admitted for a court in each status
BOOKABLE_STATUSES = {
    CourtStatus.AVAILABLE: True,
    CourtStatus.OCCUPIED: True,
    CourtStatus.MAINTENANCE: False,
    CourtStatus.CLOSED: False,
}


class Court(Base):
    """Represents a bookable sports court."""

    __tablename__ = "courts"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, nullable=False)
    court_type = Column(String, nullable=False)  # e.g., "padel", "tennis"
    is_indoor = Column(Boolean, nullable=False, default=False)
    status = Column(SAEnum(CourtStatus, name="court_status"), nullable=False, default=CourtStatus.AVAILABLE)
    hourly_rate = Column(Numeric(10, 2), nullable=False)
    peak_hour_rate = Column(Numeric(10, 2), nullable=False)
    maintenance_schedule = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), onupdate=func.now())

    # Relationships
    bookings = relationship("Booking", back_populates="court", cascade="all, delete-orphan")

    @property
    def is_bookable(self) -> bool:
        return BOOKABLE_STATUSES[CourtStatus(self.status)]
