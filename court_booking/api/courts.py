"""Court endpoints."""
import logging
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from court_booking.api.deps import CurrentUser, get_current_user, require_admin
from court_booking.core.config import settings
from court_booking.core.database import get_db
from court_booking.core.errors import ErrorCode, ReservationError
from court_booking.models.court import Court, CourtStatus
from court_booking.schemas.court import CourtCreate, CourtUpdate, CourtInDB
from court_booking.services.pricing import default_peak_rate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/courts", tags=["courts"])


async def _get_court_or_404(db: AsyncSession, court_id: int) -> Court:
    result = await db.execute(select(Court).where(Court.id == court_id))
    court = result.scalar_one_or_none()

    if not court:
        raise ReservationError(ErrorCode.COURT_NOT_FOUND, "Court not found")

    return court


async def _ensure_name_free(db: AsyncSession, name: str) -> None:
    result = await db.execute(select(Court).where(Court.name == name))
    existing_court = result.scalar_one_or_none()

    if existing_court:
        raise ReservationError(
            ErrorCode.DUPLICATE_COURT,
            f"Court with name '{name}' already exists (ID: {existing_court.id})",
        )


@router.post("", response_model=CourtInDB, status_code=201)
async def create_court(
    court: CourtCreate,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    """
    Create a new court.

    If no peak hour rate is given, it defaults to the hourly rate times the
    configured peak multiplier.

    Args:
        court: Court data
        db: Database session
        admin: Administrator performing the change

    Returns:
        Created court
    """
    await _ensure_name_free(db, court.name)

    court_data = court.model_dump()
    if court_data["peak_hour_rate"] is None:
        court_data["peak_hour_rate"] = default_peak_rate(
            court.hourly_rate, settings.PEAK_RATE_MULTIPLIER
        )

    db_court = Court(**court_data)
    db.add(db_court)
    await db.commit()
    await db.refresh(db_court)

    logger.info(f"Court {db_court.name} ({db_court.id}) created by {admin.id}")
    return db_court


@router.get("", response_model=List[CourtInDB])
async def list_courts(
    skip: int = 0,
    limit: int = 100,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """
    List all courts.

    Args:
        skip: Number of records to skip
        limit: Maximum number of records to return
        db: Database session

    Returns:
        List of courts
    """
    result = await db.execute(
        select(Court).order_by(Court.id).offset(skip).limit(limit)
    )
    return result.scalars().all()


@router.get("/available", response_model=List[CourtInDB])
async def list_available_courts(
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """List courts whose status is AVAILABLE, ordered by name."""
    result = await db.execute(
        select(Court)
        .where(Court.status == CourtStatus.AVAILABLE)
        .order_by(Court.name)
    )
    return result.scalars().all()


@router.get("/{court_id}", response_model=CourtInDB)
async def get_court(
    court_id: int,
    db: AsyncSession = Depends(get_db),
    user: CurrentUser = Depends(get_current_user),
):
    """Get a specific court by ID."""
    return await _get_court_or_404(db, court_id)


@router.patch("/{court_id}", response_model=CourtInDB)
async def update_court(
    court_id: int,
    court_update: CourtUpdate,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    """
    Update a court's information.

    Rate changes apply to future bookings only; existing bookings keep
    their stored amount.

    Args:
        court_id: Court ID
        court_update: Fields to update
        db: Database session

    Returns:
        Updated court
    """
    court = await _get_court_or_404(db, court_id)

    update_data = court_update.model_dump(exclude_unset=True)
    if "name" in update_data and update_data["name"] != court.name:
        await _ensure_name_free(db, update_data["name"])

    for field, value in update_data.items():
        setattr(court, field, value)

    await db.commit()
    await db.refresh(court)

    return court


@router.delete("/{court_id}", status_code=204)
async def delete_court(
    court_id: int,
    db: AsyncSession = Depends(get_db),
    admin: CurrentUser = Depends(require_admin),
):
    """
    Delete a court and all of its bookings.

    Args:
        court_id: Court ID
        db: Database session
    """
    court = await _get_court_or_404(db, court_id)

    await db.delete(court)
    await db.commit()
    logger.info(f"Court {court_id} deleted by {admin.id}")
