"""Test doubles for the booking store and clock."""
import asyncio
import itertools
from contextlib import asynccontextmanager
from datetime import datetime
from decimal import Decimal

from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from court_booking.models.booking import BookingStatus
from court_booking.models.court import Court, CourtStatus
from court_booking.services.booking_store import (
    BookingStore,
    BookingTransaction,
    CourtLockRegistry,
)


class FixedClock:
    """Clock frozen at a settable instant."""

    def __init__(self, now: datetime):
        self.current = now

    def now(self) -> datetime:
        return self.current


class InMemoryTransaction(BookingTransaction):
    """Stages writes and applies them to the store on commit."""

    def __init__(self, store: "InMemoryBookingStore"):
        self.store = store
        self.inserted = []
        self.previous_statuses = {}

    async def get_court(self, court_id):
        return self.store.courts.get(court_id)

    async def get_booking(self, booking_id):
        for booking in self.inserted:
            if booking.id == booking_id:
                return booking
        return self.store.bookings.get(booking_id)

    async def find_overlapping_confirmed_bookings(self, court_id, interval):
        # Yield so concurrent tasks interleave between read and write
        await asyncio.sleep(0)
        return [
            b
            for b in self.store.all_bookings()
            if b.court_id == court_id
            and b.status == BookingStatus.CONFIRMED
            and b.start_time < interval.end
            and b.end_time > interval.start
        ]

    async def insert_confirmed_booking(self, booking):
        await asyncio.sleep(0)
        booking.id = next(self.store.ids)
        self.inserted.append(booking)
        return booking

    async def update_booking_status(self, booking_id, status):
        booking = await self.get_booking(booking_id)
        if booking is None:
            return None
        self.previous_statuses.setdefault(booking_id, booking.status)
        booking.status = status
        return booking

    def commit(self):
        for booking in self.inserted:
            self.store.bookings[booking.id] = booking

    def rollback(self):
        for booking_id, status in self.previous_statuses.items():
            self.store.bookings[booking_id].status = status


class InMemoryBookingStore(BookingStore):
    """Dictionary-backed store serialized by per-court asyncio locks."""

    def __init__(self, courts=()):
        self.courts = {court.id: court for court in courts}
        self.bookings = {}
        self.ids = itertools.count(1)
        self.locks = CourtLockRegistry()

    def all_bookings(self):
        return list(self.bookings.values())

    def confirmed(self, court_id):
        return sorted(
            (
                b
                for b in self.bookings.values()
                if b.court_id == court_id and b.status == BookingStatus.CONFIRMED
            ),
            key=lambda b: b.start_time,
        )

    async def get_court(self, court_id):
        return self.courts.get(court_id)

    async def get_booking(self, booking_id):
        return self.bookings.get(booking_id)

    async def find_confirmed_bookings(self, court_id, window):
        return [
            b
            for b in self.confirmed(court_id)
            if b.start_time < window.end and b.end_time > window.start
        ]

    @asynccontextmanager
    async def serialize(self, court_id, timeout):
        async with self.locks.hold(court_id, timeout):
            tx = InMemoryTransaction(self)
            try:
                yield tx
            except BaseException:
                tx.rollback()
                raise
            tx.commit()

    async def complete_finished_bookings(self, now):
        completed = 0
        for booking in self.bookings.values():
            if booking.status == BookingStatus.CONFIRMED and booking.end_time <= now:
                booking.status = BookingStatus.COMPLETED
                completed += 1
        return completed


# All scenarios run on this day; the clock starts at 08:00 UTC
BOOKING_DAY = datetime(2030, 6, 1)


def at(hour: int, minute: int = 0) -> datetime:
    """Naive UTC instant on the booking day."""
    return BOOKING_DAY.replace(hour=hour, minute=minute)


def make_court(court_id: int = 1, **overrides) -> Court:
    fields = dict(
        id=court_id,
        name=f"Court {court_id}",
        court_type="padel",
        is_indoor=True,
        status=CourtStatus.AVAILABLE,
        hourly_rate=Decimal("25.00"),
        peak_hour_rate=Decimal("35.00"),
    )
    fields.update(overrides)
    return Court(**fields)


class LockNotAvailable(Exception):
    """Driver error carrying PostgreSQL's lock_not_available SQLSTATE."""

    sqlstate = "55P03"


def connection_lost() -> OperationalError:
    return OperationalError("SELECT 1", {}, Exception("server closed the connection"))


def lock_timeout() -> DBAPIError:
    return DBAPIError(
        "SELECT courts.id FROM courts FOR UPDATE",
        {},
        LockNotAvailable("canceling statement due to lock timeout"),
    )


def failing_session_factory(session_factory, error) -> async_sessionmaker:
    """Sessions on the same database whose every statement raises ``error``."""

    class FailingSession(AsyncSession):
        async def execute(self, *args, **kwargs):
            raise error

    return async_sessionmaker(
        session_factory.kw["bind"], class_=FailingSession, expire_on_commit=False
    )
