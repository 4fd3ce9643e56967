# clup/api/tickets.py
# Ticket lookup for customers and ticket verification for totems.
import logging

from fastapi import APIRouter, Depends

from clup import schemas
from clup.core.clock import local_now
from clup.core.security import get_current_user_id, get_queries, require_totem
from clup.db.queries import QueryInterface
from clup.services import ticket_manager

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/user/ticket", response_model=schemas.UserTicket)
def user_ticket(user_id: str = Depends(get_current_user_id),
                queries: QueryInterface = Depends(get_queries)):
    return ticket_manager.get_ticket(queries, user_id)


@router.post("/store/{store_id}/ticket/verify", response_model=schemas.TicketValidity)
def verify_ticket(store_id: int,
                  body: schemas.VerifyTicketRequest,
                  totem_id: str = Depends(require_totem),
                  queries: QueryInterface = Depends(get_queries)):
    """Totem only: validates the ticket and, when valid, lets the customer in."""
    logger.info(f"Validating ticket: {store_id} {body.receipt_id} (totem {totem_id})")
    valid = ticket_manager.check_ticket(queries, store_id, body.receipt_id, local_now())
    return schemas.TicketValidity(is_ticket_valid=valid)
