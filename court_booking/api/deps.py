"""Shared request dependencies."""
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, Request

from court_booking.core.config import settings
from court_booking.core.errors import ErrorCode, ReservationError
from court_booking.services.availability_service import AvailabilityService
from court_booking.services.booking_guard import BookingConflictGuard
from court_booking.services.booking_store import BookingStore
from court_booking.services.clock import SystemClock
from court_booking.services.slot_grid import OperatingSchedule

ADMIN_ROLE = "ADMIN"


@dataclass(frozen=True)
class CurrentUser:
    """Caller identity as asserted by the upstream authentication layer."""

    id: str
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ADMIN_ROLE


async def get_current_user(
    x_user_id: Optional[str] = Header(default=None),
    x_user_role: str = Header(default="MEMBER"),
) -> CurrentUser:
    if not x_user_id:
        raise ReservationError(ErrorCode.UNAUTHENTICATED, "User not authenticated")
    return CurrentUser(id=x_user_id, role=x_user_role.upper())


async def require_admin(user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
    if not user.is_admin:
        raise ReservationError(ErrorCode.FORBIDDEN, "Admin access required")
    return user


def get_booking_store(request: Request) -> BookingStore:
    return request.app.state.booking_store


def get_clock():
    return SystemClock()


@lru_cache
def get_schedule() -> OperatingSchedule:
    return OperatingSchedule.from_settings(settings)


def get_conflict_guard(
    store: BookingStore = Depends(get_booking_store),
    clock=Depends(get_clock),
    schedule: OperatingSchedule = Depends(get_schedule),
) -> BookingConflictGuard:
    return BookingConflictGuard(
        store, clock, schedule, lock_timeout=settings.LOCK_TIMEOUT_SECONDS
    )


def get_availability_service(
    store: BookingStore = Depends(get_booking_store),
    schedule: OperatingSchedule = Depends(get_schedule),
) -> AvailabilityService:
    return AvailabilityService(store, schedule)
