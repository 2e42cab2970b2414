"""Per-user dashboard statistics."""
import logging
from datetime import datetime

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from court_booking.models.booking import Booking, BookingStatus
from court_booking.models.court import Court, CourtStatus
from court_booking.schemas.booking import BookingWithCourt
from court_booking.schemas.court import CourtInDB
from court_booking.schemas.dashboard import DashboardCounts, DashboardStats

logger = logging.getLogger(__name__)


async def get_dashboard_stats(
    db: AsyncSession, user_id: str, now: datetime, limit: int = 5
) -> DashboardStats:
    """
    Collect the dashboard of one user.

    Args:
        db: Database session
        user_id: User the dashboard belongs to
        now: Current naive UTC time, separating upcoming from past bookings
        limit: Maximum number of upcoming bookings and courts listed

    Returns:
        Dashboard statistics
    """
    total_courts = await db.scalar(select(func.count()).select_from(Court))
    available_courts = await db.scalar(
        select(func.count()).select_from(Court).where(Court.status == CourtStatus.AVAILABLE)
    )
    user_bookings = await db.scalar(
        select(func.count()).select_from(Booking).where(Booking.user_id == user_id)
    )

    result = await db.execute(
        select(Booking)
        .options(selectinload(Booking.court))
        .where(
            Booking.user_id == user_id,
            Booking.start_time >= now,
            Booking.status != BookingStatus.CANCELLED,
        )
        .order_by(Booking.start_time)
        .limit(limit)
    )
    upcoming = result.scalars().all()

    result = await db.execute(
        select(Court)
        .where(Court.status == CourtStatus.AVAILABLE)
        .order_by(Court.name)
        .limit(limit)
    )
    courts = result.scalars().all()

    logger.debug(f"Dashboard for user {user_id}: {len(upcoming)} upcoming booking(s)")

    return DashboardStats(
        stats=DashboardCounts(
            total_courts=total_courts or 0,
            available_courts=available_courts or 0,
            user_bookings=user_bookings or 0,
        ),
        upcoming_bookings=[BookingWithCourt.model_validate(b) for b in upcoming],
        available_courts_details=[CourtInDB.model_validate(c) for c in courts],
    )
