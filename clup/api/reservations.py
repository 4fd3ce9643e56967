# clup/api/reservations.py
# Timeslot listing, booking and cancellation routes.
import logging
from typing import List

from fastapi import APIRouter, Depends

from clup import schemas
from clup.core.clock import local_now
from clup.core.security import get_current_user_id, get_queries
from clup.db.queries import QueryInterface
from clup.models.ticket import TicketType
from clup.services import reservation_manager
from clup.services.tickets import parse_kind_code

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/timeslots", response_model=List[schemas.Timeslot])
def timeslots(store_id: int,
              user_id: str = Depends(get_current_user_id),
              queries: QueryInterface = Depends(get_queries)):
    return reservation_manager.get_reservation_data(queries, store_id, local_now())


@router.post("/book/{timeslot_id}", response_model=schemas.Receipt)
def book(store_id: int,
         timeslot_id: int,
         user_id: str = Depends(get_current_user_id),
         queries: QueryInterface = Depends(get_queries)):
    receipt_id = reservation_manager.make_reservation(queries, store_id, timeslot_id, user_id, local_now())
    return schemas.Receipt(receipt_id=receipt_id)


@router.post("/cancel", response_model=schemas.CancelledReceipt)
def cancel(store_id: int,
           body: schemas.CancelReservationRequest,
           user_id: str = Depends(get_current_user_id),
           queries: QueryInterface = Depends(get_queries)):
    logger.info(f"Canceling reservation: (S: {store_id} U: {user_id} T: {body.reservation_receipt_id})")
    ticket_id = parse_kind_code(body.reservation_receipt_id, TicketType.reservation)
    reservation_manager.cancel_reservation(queries, store_id, ticket_id, user_id)
    return schemas.CancelledReceipt(receipt_id=body.reservation_receipt_id)
