"""Tests for booking admission control and cancellation."""
import asyncio
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from itertools import combinations

import pytest

from court_booking.core.errors import ErrorCode, ReservationError
from court_booking.models.booking import BookingStatus, PaymentStatus
from court_booking.models.court import CourtStatus
from court_booking.services.booking_guard import BookingConflictGuard
from court_booking.services.intervals import overlaps
from tests.fakes import at, make_court


@pytest.fixture
def guard(memory_store, clock, schedule):
    return BookingConflictGuard(memory_store, clock, schedule, lock_timeout=1.0)


def assert_no_double_booking(store, court_id):
    confirmed = store.confirmed(court_id)
    for a, b in combinations(confirmed, 2):
        assert not overlaps(a.interval, b.interval), (a.interval, b.interval)


async def test_accepted_booking_is_confirmed_and_priced(guard, memory_store):
    booking = await guard.check_and_create_booking(1, "user-1", at(10), at(11))

    assert booking.id is not None
    assert booking.status == BookingStatus.CONFIRMED
    assert booking.payment_status == PaymentStatus.PENDING
    assert booking.total_amount == Decimal("25.00")
    assert booking.user_id == "user-1"
    assert memory_store.confirmed(1) == [booking]


async def test_back_to_back_bookings_both_succeed(guard, memory_store):
    await guard.check_and_create_booking(1, "user-1", at(10), at(11))
    await guard.check_and_create_booking(1, "user-2", at(11), at(12))

    assert len(memory_store.confirmed(1)) == 2


async def test_overlapping_booking_rejected(guard, memory_store):
    await guard.check_and_create_booking(1, "user-1", at(10), at(11))

    with pytest.raises(ReservationError) as exc_info:
        await guard.check_and_create_booking(1, "user-2", at(10, 30), at(11, 30))

    assert exc_info.value.code == ErrorCode.SLOT_UNAVAILABLE
    assert not exc_info.value.retryable
    assert len(memory_store.confirmed(1)) == 1


async def test_same_interval_on_other_court_is_fine(guard, memory_store):
    await guard.check_and_create_booking(1, "user-1", at(10), at(11))
    await guard.check_and_create_booking(2, "user-2", at(10), at(11))

    assert len(memory_store.confirmed(1)) == 1
    assert len(memory_store.confirmed(2)) == 1


@pytest.mark.parametrize("start,end", [(at(10), at(10)), (at(11), at(10))])
async def test_invalid_time_range(guard, memory_store, start, end):
    with pytest.raises(ReservationError) as exc_info:
        await guard.check_and_create_booking(1, "user-1", start, end)

    assert exc_info.value.code == ErrorCode.INVALID_TIME_RANGE
    assert memory_store.all_bookings() == []


async def test_past_start_rejected_without_storing(guard, memory_store):
    with pytest.raises(ReservationError) as exc_info:
        await guard.check_and_create_booking(1, "user-1", at(7), at(9))

    assert exc_info.value.code == ErrorCode.INVALID_TIME
    assert memory_store.all_bookings() == []


async def test_range_checked_before_past_start(guard):
    with pytest.raises(ReservationError) as exc_info:
        await guard.check_and_create_booking(1, "user-1", at(7), at(6))

    assert exc_info.value.code == ErrorCode.INVALID_TIME_RANGE


async def test_unknown_court(guard, memory_store):
    with pytest.raises(ReservationError) as exc_info:
        await guard.check_and_create_booking(99, "user-1", at(10), at(11))

    assert exc_info.value.code == ErrorCode.COURT_NOT_FOUND
    assert memory_store.all_bookings() == []


@pytest.mark.parametrize("status", [CourtStatus.MAINTENANCE, CourtStatus.CLOSED])
async def test_court_out_of_service(guard, memory_store, status):
    memory_store.courts[3] = make_court(3, status=status)

    with pytest.raises(ReservationError) as exc_info:
        await guard.check_and_create_booking(3, "user-1", at(10), at(11))

    assert exc_info.value.code == ErrorCode.COURT_UNAVAILABLE


async def test_occupied_court_still_takes_future_bookings(guard, memory_store):
    memory_store.courts[3] = make_court(3, status=CourtStatus.OCCUPIED)

    booking = await guard.check_and_create_booking(3, "user-1", at(10), at(11))

    assert booking.status == BookingStatus.CONFIRMED


async def test_aware_datetimes_stored_as_utc(guard):
    plus_two = timezone(timedelta(hours=2))
    booking = await guard.check_and_create_booking(
        1,
        "user-1",
        datetime(2030, 6, 1, 12, 0, tzinfo=plus_two),
        datetime(2030, 6, 1, 13, 0, tzinfo=plus_two),
    )

    assert booking.start_time == at(10)
    assert booking.end_time == at(11)


async def test_concurrent_identical_requests_admit_exactly_one(guard, memory_store):
    results = await asyncio.gather(
        guard.check_and_create_booking(1, "user-1", at(10), at(11)),
        guard.check_and_create_booking(1, "user-2", at(10), at(11)),
        return_exceptions=True,
    )

    errors = [r for r in results if isinstance(r, ReservationError)]
    created = [r for r in results if not isinstance(r, Exception)]
    assert len(created) == 1
    assert len(errors) == 1
    assert errors[0].code == ErrorCode.SLOT_UNAVAILABLE
    assert len(memory_store.confirmed(1)) == 1


async def test_many_concurrent_overlapping_requests_never_double_book(guard, memory_store):
    requests = [
        guard.check_and_create_booking(
            1, f"user-{i}", at(10) + timedelta(minutes=15 * i), at(11) + timedelta(minutes=15 * i)
        )
        for i in range(16)
    ]
    results = await asyncio.gather(*requests, return_exceptions=True)

    for result in results:
        if isinstance(result, Exception):
            assert isinstance(result, ReservationError)
            assert result.code == ErrorCode.SLOT_UNAVAILABLE
    assert_no_double_booking(memory_store, 1)
    # The first request in line always wins its slot
    assert memory_store.confirmed(1)[0].start_time == at(10)


async def test_lock_timeout_is_retryable(memory_store, clock, schedule):
    impatient = BookingConflictGuard(memory_store, clock, schedule, lock_timeout=0.01)

    async with memory_store.locks.hold(1, timeout=1.0):
        with pytest.raises(ReservationError) as exc_info:
            await impatient.check_and_create_booking(1, "user-1", at(10), at(11))

    assert exc_info.value.code == ErrorCode.CONFLICT_CHECK_TIMEOUT
    assert exc_info.value.retryable
    assert memory_store.all_bookings() == []


async def test_other_courts_not_blocked_by_held_lock(memory_store, clock, schedule):
    impatient = BookingConflictGuard(memory_store, clock, schedule, lock_timeout=0.01)

    async with memory_store.locks.hold(1, timeout=1.0):
        booking = await impatient.check_and_create_booking(2, "user-1", at(10), at(11))

    assert booking.court_id == 2


async def test_unknown_courts_leave_no_locks_behind(guard, memory_store):
    for court_id in range(1000, 1200):
        with pytest.raises(ReservationError):
            await guard.check_and_create_booking(court_id, "user-1", at(10), at(11))

    assert len(memory_store.locks) == 0


async def test_court_lock_dropped_once_last_user_leaves(guard, memory_store):
    await asyncio.gather(
        *(guard.check_and_create_booking(1, f"user-{i}", at(10), at(11)) for i in range(5)),
        return_exceptions=True,
    )
    assert len(memory_store.locks) == 0

    impatient = BookingConflictGuard(
        memory_store, guard.clock, guard.schedule, lock_timeout=0.01
    )
    async with memory_store.locks.hold(2, timeout=1.0):
        with pytest.raises(ReservationError):
            await impatient.check_and_create_booking(2, "user-1", at(12), at(13))
        assert len(memory_store.locks) == 1

    assert len(memory_store.locks) == 0


async def test_owner_cancels_booking(guard, memory_store):
    booking = await guard.check_and_create_booking(1, "user-1", at(10), at(11))

    cancelled = await guard.cancel_booking(booking.id, "user-1")

    assert cancelled.status == BookingStatus.CANCELLED
    assert memory_store.confirmed(1) == []


async def test_cancelled_interval_can_be_rebooked(guard, memory_store):
    booking = await guard.check_and_create_booking(1, "user-1", at(10), at(11))
    await guard.cancel_booking(booking.id, "user-1")

    rebooked = await guard.check_and_create_booking(1, "user-2", at(10), at(11))

    assert rebooked.status == BookingStatus.CONFIRMED
    assert memory_store.confirmed(1) == [rebooked]


async def test_admin_cancels_someone_elses_booking(guard):
    booking = await guard.check_and_create_booking(1, "user-1", at(10), at(11))

    cancelled = await guard.cancel_booking(booking.id, "admin-1", is_admin=True)

    assert cancelled.status == BookingStatus.CANCELLED


async def test_stranger_cannot_cancel(guard, memory_store):
    booking = await guard.check_and_create_booking(1, "user-1", at(10), at(11))

    with pytest.raises(ReservationError) as exc_info:
        await guard.cancel_booking(booking.id, "user-2")

    assert exc_info.value.code == ErrorCode.FORBIDDEN
    assert memory_store.confirmed(1) == [booking]


async def test_cancel_unknown_booking(guard):
    with pytest.raises(ReservationError) as exc_info:
        await guard.cancel_booking(404, "user-1")

    assert exc_info.value.code == ErrorCode.BOOKING_NOT_FOUND


async def test_second_cancel_has_no_effect(guard):
    booking = await guard.check_and_create_booking(1, "user-1", at(10), at(11))
    await guard.cancel_booking(booking.id, "user-1")

    with pytest.raises(ReservationError) as exc_info:
        await guard.cancel_booking(booking.id, "user-1")

    assert exc_info.value.code == ErrorCode.BOOKING_NOT_CANCELLABLE


async def test_completed_booking_cannot_be_cancelled(guard, memory_store, clock):
    booking = await guard.check_and_create_booking(1, "user-1", at(10), at(11))
    await memory_store.complete_finished_bookings(at(12))

    with pytest.raises(ReservationError) as exc_info:
        await guard.cancel_booking(booking.id, "user-1")

    assert exc_info.value.code == ErrorCode.BOOKING_NOT_CANCELLABLE
    assert memory_store.bookings[booking.id].status == BookingStatus.COMPLETED


async def test_concurrent_cancel_and_rebook_keep_invariant(guard, memory_store):
    first = await guard.check_and_create_booking(1, "user-1", at(10), at(11))

    await asyncio.gather(
        guard.cancel_booking(first.id, "user-1"),
        guard.check_and_create_booking(1, "user-2", at(10), at(11)),
        return_exceptions=True,
    )

    assert memory_store.bookings[first.id].status == BookingStatus.CANCELLED
    assert len(memory_store.confirmed(1)) <= 1
    assert_no_double_booking(memory_store, 1)
