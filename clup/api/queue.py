# clup/api/queue.py
# Queue routes for customers.
import logging

from fastapi import APIRouter, Depends

from clup import schemas
from clup.core.security import get_current_user_id, get_queries
from clup.db.queries import QueryInterface
from clup.models.ticket import TicketType
from clup.services import queue_manager
from clup.services.tickets import parse_kind_code

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/join", response_model=schemas.Receipt)
def join(store_id: int,
         user_id: str = Depends(get_current_user_id),
         queries: QueryInterface = Depends(get_queries)):
    receipt_id = queue_manager.join_queue(queries, store_id, user_id)
    return schemas.Receipt(receipt_id=receipt_id)


@router.post("/leave", response_model=schemas.CancelledReceipt)
def leave(store_id: int,
          body: schemas.LeaveQueueRequest,
          user_id: str = Depends(get_current_user_id),
          queries: QueryInterface = Depends(get_queries)):
    logger.info(f"Leaving queue: (S: {store_id} U: {user_id} T: {body.queue_receipt_id})")
    ticket_id = parse_kind_code(body.queue_receipt_id, TicketType.queue)
    queue_manager.cancel_queue_ticket(queries, store_id, ticket_id, user_id)
    return schemas.CancelledReceipt(receipt_id=body.queue_receipt_id)
