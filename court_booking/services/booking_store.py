"""Booking persistence.

The conflict guard talks to storage only through :class:`BookingStore`.
Every check-then-insert happens inside :meth:`BookingStore.serialize`,
which holds the court's serialization point for the whole unit of work:

* an in-process ``asyncio.Lock`` per court, acquired with a timeout, and
* inside the transaction, a ``SELECT ... FOR UPDATE`` on the court row so
  that separate worker processes serialize as well.
"""
import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator, Dict, List, Optional

from sqlalchemy import select, text, update
from sqlalchemy.exc import DBAPIError, IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from court_booking.core.errors import ErrorCode, PersistenceError, ReservationError
from court_booking.models.booking import Booking, BookingStatus, can_transition
from court_booking.models.court import Court
from court_booking.services.intervals import TimeInterval

logger = logging.getLogger(__name__)

# PostgreSQL SQLSTATE for lock_not_available
LOCK_NOT_AVAILABLE = "55P03"


class CourtLockRegistry:
    """In-process mutexes keyed by court id.

    A court's lock lives only while some request holds or waits for it, so
    requests for arbitrary court ids do not accumulate entries.
    """

    def __init__(self):
        self._locks: Dict[int, asyncio.Lock] = {}
        self._users: Dict[int, int] = {}

    def __len__(self) -> int:
        return len(self._locks)

    @asynccontextmanager
    async def hold(self, court_id: int, timeout: float) -> AsyncIterator[None]:
        lock = self._locks.setdefault(court_id, asyncio.Lock())
        self._users[court_id] = self._users.get(court_id, 0) + 1
        try:
            try:
                await asyncio.wait_for(lock.acquire(), timeout=timeout)
            except asyncio.TimeoutError:
                logger.warning(f"Timed out after {timeout}s waiting for court {court_id}")
                raise ReservationError(
                    ErrorCode.CONFLICT_CHECK_TIMEOUT,
                    "Could not check availability in time, please retry",
                )
            try:
                yield
            finally:
                lock.release()
        finally:
            self._users[court_id] -= 1
            if not self._users[court_id]:
                del self._users[court_id]
                del self._locks[court_id]


class BookingTransaction(ABC):
    """Reads and writes performed while a court's serialization point is held."""

    @abstractmethod
    async def get_court(self, court_id: int) -> Optional[Court]:
        ...

    @abstractmethod
    async def get_booking(self, booking_id: int) -> Optional[Booking]:
        ...

    @abstractmethod
    async def find_overlapping_confirmed_bookings(
        self, court_id: int, interval: TimeInterval
    ) -> List[Booking]:
        ...

    @abstractmethod
    async def insert_confirmed_booking(self, booking: Booking) -> Booking:
        """Persist a new booking; raises SLOT_UNAVAILABLE if the store detects a clash."""

    @abstractmethod
    async def update_booking_status(
        self, booking_id: int, status: BookingStatus
    ) -> Optional[Booking]:
        """Return the updated booking, or None if it does not exist."""


class BookingStore(ABC):
    """Persistence and court catalog consumed by the reservation services."""

    @abstractmethod
    async def get_court(self, court_id: int) -> Optional[Court]:
        ...

    @abstractmethod
    async def get_booking(self, booking_id: int) -> Optional[Booking]:
        ...

    @abstractmethod
    async def find_confirmed_bookings(
        self, court_id: int, window: TimeInterval
    ) -> List[Booking]:
        """Unlocked read of CONFIRMED bookings intersecting ``window``, ordered by start."""

    @abstractmethod
    def serialize(self, court_id: int, timeout: float):
        """Async context manager yielding a :class:`BookingTransaction`.

        The transaction commits when the block exits normally and rolls back
        on any exception. Raises CONFLICT_CHECK_TIMEOUT if the court cannot
        be locked within ``timeout`` seconds.
        """

    @abstractmethod
    async def complete_finished_bookings(self, now: datetime) -> int:
        """Mark CONFIRMED bookings ended by ``now`` as COMPLETED; return how many."""


def _is_lock_timeout(exc: DBAPIError) -> bool:
    orig = exc.orig
    code = getattr(orig, "pgcode", None) or getattr(orig, "sqlstate", None)
    return code == LOCK_NOT_AVAILABLE


class SqlAlchemyBookingTransaction(BookingTransaction):
    """Transaction bound to one open session with the court row locked."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def lock_court(self, court_id: int, timeout: float) -> None:
        if self.db.get_bind().dialect.name == "postgresql":
            # SET LOCAL does not accept bind parameters
            await self.db.execute(text(f"SET LOCAL lock_timeout = '{int(timeout * 1000)}ms'"))
        await self.db.execute(
            select(Court.id).where(Court.id == court_id).with_for_update()
        )

    async def get_court(self, court_id: int) -> Optional[Court]:
        result = await self.db.execute(select(Court).where(Court.id == court_id))
        return result.scalar_one_or_none()

    async def get_booking(self, booking_id: int) -> Optional[Booking]:
        result = await self.db.execute(
            select(Booking).where(Booking.id == booking_id).with_for_update()
        )
        return result.scalar_one_or_none()

    async def find_overlapping_confirmed_bookings(
        self, court_id: int, interval: TimeInterval
    ) -> List[Booking]:
        result = await self.db.execute(
            select(Booking)
            .where(
                Booking.court_id == court_id,
                Booking.status == BookingStatus.CONFIRMED,
                Booking.start_time < interval.end,
                Booking.end_time > interval.start,
            )
            .order_by(Booking.start_time)
        )
        return list(result.scalars().all())

    async def insert_confirmed_booking(self, booking: Booking) -> Booking:
        self.db.add(booking)
        try:
            await self.db.flush()
        except IntegrityError:
            raise ReservationError(
                ErrorCode.SLOT_UNAVAILABLE, "Time slot is already booked"
            )
        await self.db.refresh(booking)
        return booking

    async def update_booking_status(
        self, booking_id: int, status: BookingStatus
    ) -> Optional[Booking]:
        booking = await self.get_booking(booking_id)
        if booking is None:
            return None
        booking.status = status
        await self.db.flush()
        await self.db.refresh(booking)
        return booking


class SqlAlchemyBookingStore(BookingStore):
    """Booking store backed by SQLAlchemy async sessions."""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory
        self.locks = CourtLockRegistry()

    @asynccontextmanager
    async def _reading(self) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as db:
            try:
                yield db
            except SQLAlchemyError as e:
                raise PersistenceError(f"Database read failed: {e}") from e

    async def get_court(self, court_id: int) -> Optional[Court]:
        async with self._reading() as db:
            result = await db.execute(select(Court).where(Court.id == court_id))
            return result.scalar_one_or_none()

    async def get_booking(self, booking_id: int) -> Optional[Booking]:
        async with self._reading() as db:
            result = await db.execute(select(Booking).where(Booking.id == booking_id))
            return result.scalar_one_or_none()

    async def find_confirmed_bookings(
        self, court_id: int, window: TimeInterval
    ) -> List[Booking]:
        async with self._reading() as db:
            result = await db.execute(
                select(Booking)
                .where(
                    Booking.court_id == court_id,
                    Booking.status == BookingStatus.CONFIRMED,
                    Booking.start_time < window.end,
                    Booking.end_time > window.start,
                )
                .order_by(Booking.start_time)
            )
            return list(result.scalars().all())

    @asynccontextmanager
    async def serialize(
        self, court_id: int, timeout: float
    ) -> AsyncIterator[SqlAlchemyBookingTransaction]:
        async with self.locks.hold(court_id, timeout):
            async with self.session_factory() as db:
                try:
                    async with db.begin():
                        tx = SqlAlchemyBookingTransaction(db)
                        await tx.lock_court(court_id, timeout)
                        yield tx
                except IntegrityError:
                    raise ReservationError(
                        ErrorCode.SLOT_UNAVAILABLE, "Time slot is already booked"
                    )
                except DBAPIError as e:
                    if _is_lock_timeout(e):
                        logger.warning(f"Database lock timeout on court {court_id}")
                        raise ReservationError(
                            ErrorCode.CONFLICT_CHECK_TIMEOUT,
                            "Could not check availability in time, please retry",
                        )
                    raise PersistenceError(f"Booking transaction failed: {e}") from e
                except SQLAlchemyError as e:
                    raise PersistenceError(f"Booking transaction failed: {e}") from e

    async def complete_finished_bookings(self, now: datetime) -> int:
        sources = [s for s in BookingStatus if can_transition(s, BookingStatus.COMPLETED)]
        async with self._reading() as db:
            async with db.begin():
                result = await db.execute(
                    update(Booking)
                    .where(Booking.status.in_(sources), Booking.end_time <= now)
                    .values(status=BookingStatus.COMPLETED)
                    .execution_options(synchronize_session=False)
                )
            return result.rowcount or 0
