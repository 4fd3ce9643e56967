# clup/services/queue_manager.py
# Virtual queue: joining, admission at the entrance, leaving.
import logging
import math
from datetime import datetime, timedelta

from clup.core.config import settings
from clup.core.errors import ConflictError, NotFoundError
from clup.db.queries import QueryInterface
from clup.models.ticket import TicketType
from clup.services.store_search import get_store
from clup.services.tickets import ticket_code

logger = logging.getLogger(__name__)


def join_queue(queries: QueryInterface, store_id: int, user_id: str) -> str:
    """
    Puts the user at the end of the store's queue.

    Returns the ticket code to show to the user ("Q" + id).
    Raises NotFoundError for unknown stores, ConflictError if the user
    already holds a valid ticket.
    """
    get_store(queries, store_id)
    if queries.get_active_ticket_from_user(user_id) is not None:
        raise ConflictError("Ticket already present")

    code = ticket_code(TicketType.queue, queries.add_user_to_queue(user_id, store_id))
    logger.info(f"User {user_id} joined queue of store {store_id} with {code}")
    return code


def is_ticket_valid(queries: QueryInterface, store_id: int, ticket_id: int, now: datetime) -> bool:
    """
    Checks a queue ticket at the store entrance and uses it when valid.

    The ticket must be the oldest valid queue ticket of the store, and the
    store must have room once the reservations due in the next
    RESERVATION_LOOKAHEAD_MINUTES are counted. Unknown tickets raise
    NotFoundError, as for reservations.
    """
    ticket = queries.get_ticket(ticket_id)
    if ticket is None or ticket.type != TicketType.queue:
        raise NotFoundError("Receipt not found")

    first_ticket = queries.get_first_queue_ticket(store_id)
    if first_ticket is None or first_ticket.id != ticket_id:
        logger.info(f"Q{ticket_id} is not first in line at store {store_id}")
        return False

    reserved = queries.get_store_next_reservations(
        store_id, now, now + timedelta(minutes=settings.RESERVATION_LOOKAHEAD_MINUTES)
    )
    return queries.admit_ticket(store_id, ticket_id, TicketType.queue, reserved_load=reserved)


def cancel_queue_ticket(queries: QueryInterface, store_id: int, ticket_id: int, user_id: str) -> None:
    if not queries.cancel_ticket(store_id, ticket_id, user_id, TicketType.queue):
        raise NotFoundError("Receipt not found")
    logger.info(f"User {user_id} left queue of store {store_id} (Q{ticket_id})")


def get_queue_data(queries: QueryInterface, store_id: int) -> dict:
    """Queue length and a rough wait estimate in minutes."""
    store = get_store(queries, store_id)
    queue_length = queries.count_queue(store_id)
    wait = math.ceil(queue_length * settings.AVERAGE_VISIT_MINUTES / max(store.max_capacity, 1))
    return {"queue_length": queue_length, "queue_wait_minutes": wait}
