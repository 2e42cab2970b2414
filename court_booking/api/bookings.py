"""Booking endpoints."""
from datetime import datetime
from typing import List
from fastapi import APIRouter, Depends, Query
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from court_booking.api.deps import (
    CurrentUser,
    get_booking_store,
    get_conflict_guard,
    get_current_user,
    require_admin,
)
from court_booking.core.database import get_db
from court_booking.core.errors import ErrorCode, ReservationError
from court_booking.models.booking import Booking
from court_booking.schemas.booking import (
    BookingCreate,
    BookingInDB,
    BookingWithCourt,
    BookedInterval,
)
from court_booking.services.booking_guard import BookingConflictGuard
from court_booking.services.booking_store import BookingStore
from court_booking.services.clock import to_naive_utc
from court_booking.services.intervals import TimeInterval

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.post("", response_model=BookingInDB, status_code=201)
async def create_booking(
    booking: BookingCreate,
    guard: BookingConflictGuard = Depends(get_conflict_guard),
    user: CurrentUser = Depends(get_current_user),
):
    """
    Book a court for a time interval.

    The booking is confirmed immediately if no confirmed booking on the same
    court overlaps it. Intervals are half-open, so a booking may start
    exactly when another one ends.

    Args:
        booking: Court and interval to book
        guard: Booking admission control
        user: Requesting user

    Returns:
        Created booking
    """
    return await guard.check_and_create_booking(
        booking.court_id, user.id, booking.start_time, booking.end_time
    )


@router.get("/my-bookings", response_model=List[BookingWithCourt])
async def get_my_bookings(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """List the bookings of the requesting user, newest start first."""
    result = await db.execute(
        select(Booking)
        .options(selectinload(Booking.court))
        .where(Booking.user_id == user.id)
        .order_by(Booking.start_time.desc())
    )
    return result.scalars().all()


@router.get("", response_model=List[BookingWithCourt])
async def list_bookings(
    skip: int = 0,
    limit: int = 100,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    """List all bookings (admin only)."""
    result = await db.execute(
        select(Booking)
        .options(selectinload(Booking.court))
        .order_by(Booking.start_time)
        .offset(skip)
        .limit(limit)
    )
    return result.scalars().all()


@router.get("/check-availability", response_model=List[BookedInterval])
async def check_availability(
    court_id: int = Query(...),
    start_time: datetime = Query(...),
    end_time: datetime = Query(...),
    store: BookingStore = Depends(get_booking_store),
    user: CurrentUser = Depends(get_current_user),
):
    """
    List confirmed bookings on a court that overlap a time window.

    An empty list means the window was free when read.

    Args:
        court_id: Court ID
        start_time: Window start
        end_time: Window end (excluded)

    Returns:
        Overlapping confirmed bookings ordered by start time
    """
    window = TimeInterval(
        court_id=court_id,
        start=to_naive_utc(start_time),
        end=to_naive_utc(end_time),
    )
    return await store.find_confirmed_bookings(court_id, window)


@router.get("/{booking_id}", response_model=BookingWithCourt)
async def get_booking(
    booking_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """Get a booking. Only its owner or an administrator may view it."""
    result = await db.execute(
        select(Booking)
        .options(selectinload(Booking.court))
        .where(Booking.id == booking_id)
    )
    booking = result.scalar_one_or_none()

    if not booking:
        raise ReservationError(ErrorCode.BOOKING_NOT_FOUND, "Booking not found")

    if not user.is_admin and booking.user_id != user.id:
        raise ReservationError(ErrorCode.FORBIDDEN, "Not authorized to view this booking")

    return booking


@router.delete("/{booking_id}", response_model=BookingInDB)
async def cancel_booking(
    booking_id: int,
    guard: BookingConflictGuard = Depends(get_conflict_guard),
    user: CurrentUser = Depends(get_current_user),
):
    """
    Cancel a booking.

    The freed interval can be booked again immediately.

    Args:
        booking_id: Booking ID
        guard: Booking admission control
        user: Requesting user

    Returns:
        Cancelled booking
    """
    return await guard.cancel_booking(booking_id, user.id, is_admin=user.is_admin)
