# clup/services/reservation_manager.py
# Timeslot reservations: booking, admission inside the entry window, listing with crowdedness.
import logging
from datetime import datetime, timedelta

from clup.core.config import settings
from clup.core.errors import ConflictError, NotFoundError
from clup.db.queries import QueryInterface
from clup.models.store import ReservationSlot
from clup.models.ticket import TicketStatus, TicketType
from clup.services.store_search import get_store
from clup.services.tickets import ticket_code

logger = logging.getLogger(__name__)

CROWDEDNESS_LEVELS = 3


def slot_occurrence(slot: ReservationSlot, now: datetime) -> datetime:
    """The slot's date and time within the week starting today."""
    days_ahead = (slot.weekday - now.weekday()) % 7
    day = now.date() + timedelta(days=days_ahead)
    return datetime.combine(day, slot.start_time.replace(second=0, microsecond=0))


def crowdedness(count: int, max_people_allowed: int) -> int:
    """0 (empty) to 2 (almost full); 3 or more means the slot is full."""
    return (count * CROWDEDNESS_LEVELS) // max_people_allowed


def _entry_window() -> timedelta:
    return timedelta(minutes=settings.RESERVATION_ENTRY_WINDOW_MINUTES)


def _clear_old_reservations(queries: QueryInterface, now: datetime) -> None:
    queries.clear_old_reservations(now.replace(second=0, microsecond=0) - _entry_window())


def make_reservation(queries: QueryInterface, store_id: int, slot_id: int, user_id: str, now: datetime) -> str:
    """
    Books the next occurrence of a timeslot for the user.

    Returns the ticket code ("R" + id). Raises ConflictError when the user
    already holds a valid ticket, the occurrence has already started or the
    slot is full; NotFoundError when the slot is unknown, inactive or
    belongs to another store.
    """
    _clear_old_reservations(queries, now)
    if queries.get_active_ticket_from_user(user_id) is not None:
        raise ConflictError("Ticket already present")

    slot = queries.get_reservation_slot(slot_id)
    if slot is None or slot.store_id != store_id or not slot.is_active:
        raise NotFoundError("Timeslot not found")

    occurrence = slot_occurrence(slot, now)
    if occurrence < now:
        raise ConflictError("Timeslot already started")
    created_id = queries.create_user_reservation(store_id, slot.id, user_id, occurrence, slot.max_people_allowed)
    created = queries.get_ticket(created_id)
    if created is None or created.user_id != user_id:
        raise ConflictError("Could not create reservation")

    code = ticket_code(TicketType.reservation, created_id)
    logger.info(f"User {user_id} booked slot {slot.id} of store {store_id} at {occurrence} ({code})")
    return code


def is_ticket_valid(queries: QueryInterface, store_id: int, ticket_id: int, now: datetime) -> bool:
    """
    Checks a reservation ticket at the store entrance and uses it when valid.

    Valid means: still valid, store not full, slot active, today is the
    slot's day and the current minute is between the start time and
    RESERVATION_ENTRY_WINDOW_MINUTES after it.
    """
    _clear_old_reservations(queries, now)
    ticket = queries.get_ticket(ticket_id)
    if ticket is None or ticket.type != TicketType.reservation:
        raise NotFoundError("Receipt not found")
    if ticket.store_id != store_id:
        return False

    slot = ticket.slot
    store = get_store(queries, store_id)
    start = slot.start_time.hour * 60 + slot.start_time.minute
    current = now.hour * 60 + now.minute

    if not (
        ticket.status == TicketStatus.valid
        and store.curr_number < store.max_capacity
        and slot.is_active
        and slot.weekday == now.weekday()
        and ticket.reservation_date.date() == now.date()
        and start <= current <= start + settings.RESERVATION_ENTRY_WINDOW_MINUTES
    ):
        return False

    return queries.admit_ticket(store_id, ticket_id, TicketType.reservation)


def cancel_reservation(queries: QueryInterface, store_id: int, ticket_id: int, user_id: str) -> None:
    if not queries.cancel_ticket(store_id, ticket_id, user_id, TicketType.reservation):
        raise NotFoundError("Store/receipt not found")
    logger.info(f"User {user_id} cancelled reservation R{ticket_id} at store {store_id}")


def get_reservation_data(queries: QueryInterface, store_id: int, now: datetime) -> list[dict]:
    """Bookable occurrences of the store's timeslots in the coming week, with their crowdedness."""
    get_store(queries, store_id)

    timeslots = []
    for slot in queries.list_active_slots(store_id):
        occurrence = slot_occurrence(slot, now)
        if occurrence < now or slot.max_people_allowed <= 0:
            continue
        count = queries.count_slot_bookings(slot.id, occurrence)
        level = crowdedness(count, slot.max_people_allowed)
        if level >= CROWDEDNESS_LEVELS:
            continue
        timeslots.append({
            "id": slot.id,
            "weekday": slot.weekday,
            "start_time": slot.start_time,
            "date": occurrence,
            "max_people_allowed": slot.max_people_allowed,
            "crowdedness": level,
        })
    timeslots.sort(key=lambda t: t["date"])
    return timeslots
