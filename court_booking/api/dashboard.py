"""Dashboard endpoints."""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from court_booking.api.deps import CurrentUser, get_clock, get_current_user
from court_booking.core.config import settings
from court_booking.core.database import get_db
from court_booking.schemas.dashboard import DashboardStats
from court_booking.services.dashboard_service import get_dashboard_stats

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


@router.get("/stats", response_model=DashboardStats)
async def dashboard_stats(
    db: AsyncSession = Depends(get_db),
    clock=Depends(get_clock),
    user: CurrentUser = Depends(get_current_user),
):
    """Court counts, the user's booking count and their next bookings."""
    return await get_dashboard_stats(
        db, user.id, clock.now(), limit=settings.UPCOMING_BOOKINGS_LIMIT
    )
