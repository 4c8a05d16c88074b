"""
Тесты доменной модели контекста бронирования.
"""
from datetime import date

import pytest
from pydantic import ValidationError

from hotel_booking.booking.domain import (
    Booking,
    BookingAlreadyCancelled,
    BookingCancelled,
    BookingConfirmed,
    BookingCreated,
    RoomCandidate,
    select_room,
)
from hotel_booking.shared_kernel import (
    BookingStatus,
    BusinessRuleValidationException,
    DateRange,
)


@pytest.fixture
def booking() -> Booking:
    return Booking.create(
        owner_id="alice",
        room_id=5,
        period=DateRange(start=date(2025, 6, 1), end=date(2025, 6, 3)),
        idempotency_key="key-1",
    )


# Выбор номера


def test_select_room_takes_least_loaded_candidate():
    """Из упорядоченного сервисом списка берется первый номер."""
    candidates = [
        RoomCandidate(room_id=11, booking_load_count=1),
        RoomCandidate(room_id=12, booking_load_count=1),
        RoomCandidate(room_id=10, booking_load_count=3),
    ]

    assert select_room(candidates) == 11


def test_select_room_does_not_reorder_candidates():
    """Выбор не пересортировывает список: порядок задает сервис номеров."""
    candidates = [
        RoomCandidate(room_id=10, booking_load_count=3),
        RoomCandidate(room_id=11, booking_load_count=1),
    ]

    assert select_room(candidates) == 10


def test_select_room_returns_none_for_empty_pool():
    assert select_room([]) is None


# Диапазон дат


def test_date_range_allows_same_day():
    period = DateRange(start=date(2025, 6, 1), end=date(2025, 6, 1))
    assert period.nights == 0


def test_date_range_rejects_end_before_start():
    with pytest.raises(ValidationError, match="раньше даты заезда"):
        DateRange(start=date(2025, 6, 3), end=date(2025, 6, 1))


# Агрегат бронирования


def test_new_booking_is_pending_without_id(booking: Booking):
    assert booking.status == BookingStatus.PENDING
    assert booking.id is None
    assert booking.domain_events == []


def test_assign_id_records_created_event(booking: Booking):
    booking.assign_id(7)

    assert booking.id == 7
    [event] = booking.domain_events
    assert isinstance(event, BookingCreated)
    assert event.booking_id == 7
    assert event.room_id == 5


def test_id_cannot_be_reassigned(booking: Booking):
    booking.assign_id(7)

    with pytest.raises(BusinessRuleValidationException):
        booking.assign_id(8)
    assert booking.id == 7


def test_confirm_moves_pending_to_confirmed(booking: Booking):
    booking.confirm()

    assert booking.status == BookingStatus.CONFIRMED
    assert isinstance(booking.domain_events[-1], BookingConfirmed)


def test_confirmed_booking_cannot_be_confirmed_again(booking: Booking):
    booking.confirm()

    with pytest.raises(BusinessRuleValidationException):
        booking.confirm()


def test_cancelled_booking_cannot_be_confirmed(booking: Booking):
    booking.cancel("room unavailable")

    with pytest.raises(BusinessRuleValidationException):
        booking.confirm()
    assert booking.status == BookingStatus.CANCELLED


def test_cancel_records_reason_and_event(booking: Booking):
    booking.cancel("room unavailable")

    assert booking.status == BookingStatus.CANCELLED
    assert booking.cancel_reason == "room unavailable"
    event = booking.domain_events[-1]
    assert isinstance(event, BookingCancelled)
    assert event.reason == "room unavailable"


def test_confirmed_booking_can_be_cancelled_by_owner(booking: Booking):
    booking.confirm()
    booking.cancel()

    assert booking.status == BookingStatus.CANCELLED


def test_second_cancel_is_rejected(booking: Booking):
    booking.cancel()

    with pytest.raises(BookingAlreadyCancelled):
        booking.cancel()


def test_pull_events_empties_the_list(booking: Booking):
    booking.confirm()

    events = booking.pull_events()

    assert len(events) == 1
    assert booking.domain_events == []


def test_snapshot_is_independent_copy(booking: Booking):
    booking.assign_id(1)
    copy = booking.snapshot()

    copy.confirm()

    assert booking.status == BookingStatus.PENDING
    assert copy.domain_events != booking.domain_events
    assert copy.created_at == booking.created_at
