"""Tests for timeslot booking, the entry window and crowdedness."""

from datetime import datetime, time, timedelta

import pytest

from clup.core.errors import ConflictError, NotFoundError
from clup.models.ticket import TicketStatus
from clup.services import reservation_manager
from clup.services.reservation_manager import crowdedness, slot_occurrence

from conftest import MONDAY_9AM, add_slot, add_store

MONDAY = MONDAY_9AM.weekday()


def _id(code):
    return int(code[1:])


def _book(queries, store, slot, user, now=MONDAY_9AM):
    return _id(reservation_manager.make_reservation(queries, store.id, slot.id, user, now))


def test_slot_occurrence_stays_within_a_week(queries, store):
    today = add_slot(queries, store, weekday=MONDAY, start_time=time(10, 0))
    yesterday = add_slot(queries, store, weekday=(MONDAY - 1) % 7, start_time=time(10, 0))

    assert slot_occurrence(today, MONDAY_9AM) == datetime(2026, 10, 19, 10, 0)
    assert slot_occurrence(yesterday, MONDAY_9AM) == datetime(2026, 10, 25, 10, 0)


@pytest.mark.parametrize("count, capacity, expected", [
    (0, 10, 0), (3, 10, 0), (4, 10, 1), (7, 10, 2), (9, 10, 2), (10, 10, 3), (1, 1, 3),
])
def test_crowdedness_buckets(count, capacity, expected):
    assert crowdedness(count, capacity) == expected


def test_make_reservation(queries, store, customer):
    slot = add_slot(queries, store, weekday=MONDAY, start_time=time(10, 0))
    code = reservation_manager.make_reservation(queries, store.id, slot.id, customer, MONDAY_9AM)

    assert code.startswith("R")
    ticket = queries.get_ticket(_id(code))
    assert ticket.user_id == customer
    assert ticket.reservation_id == slot.id
    assert ticket.reservation_date == datetime(2026, 10, 19, 10, 0)


def test_reservation_for_passed_slot_is_rejected(queries, store, customer):
    slot = add_slot(queries, store, weekday=MONDAY, start_time=time(8, 30))
    with pytest.raises(ConflictError):
        _book(queries, store, slot, customer)


def test_one_active_ticket_per_user(queries, store, customer):
    slot = add_slot(queries, store, weekday=MONDAY, start_time=time(10, 0))
    other_slot = add_slot(queries, store, weekday=MONDAY, start_time=time(11, 0))
    _book(queries, store, slot, customer)

    with pytest.raises(ConflictError):
        _book(queries, store, other_slot, customer)


def test_unknown_inactive_or_foreign_slot(queries, store, customer):
    other_store = add_store(queries, name="Coop Bonola")
    foreign = add_slot(queries, other_store, weekday=MONDAY)
    inactive = add_slot(queries, store, weekday=MONDAY, is_active=False)

    for slot_id in [999, foreign.id, inactive.id]:
        with pytest.raises(NotFoundError):
            reservation_manager.make_reservation(queries, store.id, slot_id, customer, MONDAY_9AM)


def test_full_slot_is_rejected(queries, store, customer, other_customer):
    slot = add_slot(queries, store, weekday=MONDAY, max_people_allowed=1)
    _book(queries, store, slot, other_customer)

    with pytest.raises(ConflictError):
        _book(queries, store, slot, customer)


@pytest.mark.parametrize("minutes, expected", [
    (-1, False), (0, True), (3, True), (5, True), (6, False),
])
def test_entry_window(queries, store, customer, minutes, expected):
    slot = add_slot(queries, store, weekday=MONDAY, start_time=time(10, 0))
    ticket_id = _book(queries, store, slot, customer)
    now = datetime(2026, 10, 19, 10, 0) + timedelta(minutes=minutes, seconds=30)

    assert reservation_manager.is_ticket_valid(queries, store.id, ticket_id, now) is expected
    expected_status = TicketStatus.used if expected else (
        TicketStatus.cancelled if minutes > 5 else TicketStatus.valid
    )
    assert queries.get_ticket(ticket_id).status == expected_status


def test_admission_takes_a_place_once(queries, store, customer):
    slot = add_slot(queries, store, weekday=MONDAY, start_time=time(10, 0))
    ticket_id = _book(queries, store, slot, customer)
    now = datetime(2026, 10, 19, 10, 1)

    assert reservation_manager.is_ticket_valid(queries, store.id, ticket_id, now)
    assert not reservation_manager.is_ticket_valid(queries, store.id, ticket_id, now)
    assert queries.get_store(store.id).curr_number == 1


def test_wrong_weekday_is_rejected(queries, store, customer):
    slot = add_slot(queries, store, weekday=MONDAY, start_time=time(10, 0))
    ticket_id = _book(queries, store, slot, customer)
    tuesday = datetime(2026, 10, 20, 10, 1)

    assert not reservation_manager.is_ticket_valid(queries, store.id, ticket_id, tuesday)


def test_full_store_rejects_reservation(queries, customer):
    full = add_store(queries, max_capacity=3, curr_number=3)
    slot = add_slot(queries, full, weekday=MONDAY, start_time=time(10, 0))
    ticket_id = _book(queries, full, slot, customer)

    assert not reservation_manager.is_ticket_valid(queries, full.id, ticket_id, datetime(2026, 10, 19, 10, 2))
    assert queries.get_ticket(ticket_id).status == TicketStatus.valid


def test_ticket_of_another_store_is_rejected(queries, store, customer):
    other_store = add_store(queries, name="Coop Bonola")
    slot = add_slot(queries, store, weekday=MONDAY, start_time=time(10, 0))
    ticket_id = _book(queries, store, slot, customer)

    assert not reservation_manager.is_ticket_valid(queries, other_store.id, ticket_id, datetime(2026, 10, 19, 10, 2))


def test_cancel_reservation(queries, store, customer, other_customer):
    slot = add_slot(queries, store, weekday=MONDAY)
    ticket_id = _book(queries, store, slot, customer)

    with pytest.raises(NotFoundError):
        reservation_manager.cancel_reservation(queries, store.id, ticket_id, other_customer)
    reservation_manager.cancel_reservation(queries, store.id, ticket_id, customer)
    assert queries.get_ticket(ticket_id).status == TicketStatus.cancelled

    # the user may book again
    _book(queries, store, slot, customer)


def test_reservation_data_excludes_full_and_passed_slots(queries, store):
    passed = add_slot(queries, store, weekday=MONDAY, start_time=time(8, 0), max_people_allowed=3)
    later = add_slot(queries, store, weekday=MONDAY, start_time=time(12, 0), max_people_allowed=3)
    tomorrow = add_slot(queries, store, weekday=(MONDAY + 1) % 7, start_time=time(10, 0), max_people_allowed=3)

    expected = {later.id: 0, tomorrow.id: 0}
    for booked in range(3):
        data = reservation_manager.get_reservation_data(queries, store.id, MONDAY_9AM)
        levels = {entry["id"]: entry["crowdedness"] for entry in data}
        assert passed.id not in levels
        assert levels == expected, f"After {booked} bookings: {levels}"

        phone = f"+39333000000{booked}"
        queries.create_user(phone)
        _book(queries, store, later, phone)
        expected[later.id] = booked + 1

    # three bookings out of three places: crowdedness 3, no longer listed
    data = reservation_manager.get_reservation_data(queries, store.id, MONDAY_9AM)
    assert [entry["id"] for entry in data] == [tomorrow.id]


def test_reservation_data_is_ordered_by_date(queries, store):
    add_slot(queries, store, weekday=(MONDAY + 2) % 7, start_time=time(9, 0))
    add_slot(queries, store, weekday=MONDAY, start_time=time(18, 0))
    add_slot(queries, store, weekday=(MONDAY + 1) % 7, start_time=time(9, 0))

    dates = [entry["date"] for entry in reservation_manager.get_reservation_data(queries, store.id, MONDAY_9AM)]
    assert dates == sorted(dates)
    assert dates[0] == datetime(2026, 10, 19, 18, 0)


def test_reservation_data_unknown_store(queries):
    with pytest.raises(NotFoundError):
        reservation_manager.get_reservation_data(queries, 999, MONDAY_9AM)
