"""
Pytest configuration and shared fixtures.
"""
from datetime import time
from decimal import Decimal

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from court_booking.core.database import Base
from court_booking.models.court import CourtStatus
from court_booking.services.slot_grid import OperatingSchedule, parse_peak_windows
from tests.fakes import FixedClock, InMemoryBookingStore, at, make_court


@pytest.fixture
def schedule():
    return OperatingSchedule(
        open_time=time(6, 0),
        close_time=time(22, 0),
        slot_minutes=60,
        timezone="UTC",
        peak_windows=parse_peak_windows("17:00-19:00,20:00-22:00"),
    )


@pytest.fixture
def clock():
    return FixedClock(at(8))


@pytest.fixture
def court():
    return make_court()


@pytest.fixture
def memory_store(court):
    return InMemoryBookingStore([court, make_court(2, name="Court 2")])


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    """Session factory over a fresh SQLite database file."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    yield factory

    await engine.dispose()


@pytest_asyncio.fixture
async def seeded_factory(session_factory):
    """Session factory with two available courts and one in maintenance."""
    async with session_factory() as db:
        db.add_all(
            [
                make_court(1, name="Court A"),
                make_court(2, name="Court B", is_indoor=False,
                           hourly_rate=Decimal("20.00"), peak_hour_rate=Decimal("30.00")),
                make_court(3, name="Court C", status=CourtStatus.MAINTENANCE),
            ]
        )
        await db.commit()
    return session_factory
