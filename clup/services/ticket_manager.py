# clup/services/ticket_manager.py
# Totem-facing entry point: routes ticket codes to the queue or reservation manager.
import logging
from datetime import datetime

from clup.core.errors import ConflictError, NotFoundError
from clup.db.queries import QueryInterface
from clup.models.ticket import TicketType
from clup.services import queue_manager, reservation_manager
from clup.services.store_search import get_store
from clup.services.tickets import parse_ticket_code, ticket_code

logger = logging.getLogger(__name__)


def check_ticket(queries: QueryInterface, store_id: int, code: str, now: datetime) -> bool:
    """Validates (and uses) a ticket shown at the store entrance."""
    kind, ticket_id = parse_ticket_code(code)
    if kind == TicketType.queue:
        valid = queue_manager.is_ticket_valid(queries, store_id, ticket_id, now)
    else:
        valid = reservation_manager.is_ticket_valid(queries, store_id, ticket_id, now)
    logger.info(f"{code} is {'valid' if valid else 'not valid'} at store {store_id}")
    return valid


def get_ticket(queries: QueryInterface, user_id: str) -> dict:
    """The user's valid ticket, with its store and position in line or reservation time."""
    ticket = queries.get_active_ticket_from_user(user_id)
    if ticket is None:
        raise NotFoundError("No tickets found")

    data = {
        "receipt_id": ticket_code(ticket.type, ticket.id),
        "type": ticket.type,
        "status": ticket.status,
        "created_at": ticket.created_at,
        "store_id": ticket.store_id,
        "store_name": ticket.store.name,
        "queue_position": None,
        "reservation_date": None,
    }
    if ticket.type == TicketType.queue:
        data["queue_position"] = queries.count_queue_ahead(ticket) + 1
    else:
        data["reservation_date"] = ticket.reservation_date
    return data


def checkout(queries: QueryInterface, store_id: int) -> int:
    """Registers a customer leaving the store; returns the new occupancy."""
    store = get_store(queries, store_id)
    curr_number = queries.release_occupant(store_id)
    if curr_number is None:
        raise ConflictError("Store is already empty")
    logger.info(f"Checkout at store {store_id}: {curr_number}/{store.max_capacity}")
    return curr_number
