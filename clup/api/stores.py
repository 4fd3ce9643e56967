# clup/api/stores.py
# Store search, store detail and checkout routes.
import logging
from typing import List

from fastapi import APIRouter, Depends

from clup import schemas
from clup.core.clock import local_now
from clup.core.errors import ValidationError
from clup.core.security import get_current_user_id, get_queries
from clup.db.queries import QueryInterface
from clup.services import queue_manager, reservation_manager, store_search, ticket_manager

logger = logging.getLogger(__name__)

router = APIRouter()


def parse_coordinates(raw: str) -> tuple[float, float]:
    """Parses "lat|long", e.g. "45.4642|9.19"."""
    parts = raw.split("|")
    if len(parts) != 2:
        raise ValidationError("Bad request")
    try:
        return float(parts[0]), float(parts[1])
    except ValueError:
        raise ValidationError("Bad request")


@router.get("/search/{coordinates}", response_model=List[schemas.StoreSearchResult])
def search(coordinates: str,
           user_id: str = Depends(get_current_user_id),
           queries: QueryInterface = Depends(get_queries)):
    lat, lon = parse_coordinates(coordinates)
    found = store_search.get_stores(queries, lat, lon)
    logger.info(f"server --> client : sending {len(found)} stores near {lat},{lon}")
    return [
        schemas.StoreSearchResult(**schemas.StoreOut.model_validate(store).model_dump(), distance_km=round(distance, 3))
        for store, distance in found
    ]


@router.get("/store/{store_id}", response_model=schemas.StoreDetail)
def store_detail(store_id: int,
                 user_id: str = Depends(get_current_user_id),
                 queries: QueryInterface = Depends(get_queries)):
    """Store data merged with its queue data and bookable timeslots."""
    store = store_search.get_store(queries, store_id)
    queue_data = queue_manager.get_queue_data(queries, store_id)
    timeslots = reservation_manager.get_reservation_data(queries, store_id, local_now())
    return schemas.StoreDetail(
        **schemas.StoreOut.model_validate(store).model_dump(),
        **queue_data,
        timeslots=timeslots,
    )


@router.post("/store/{store_id}/checkout", response_model=schemas.Occupancy)
def checkout(store_id: int, queries: QueryInterface = Depends(get_queries)):
    """Called by the store when a customer leaves."""
    return schemas.Occupancy(curr_number=ticket_manager.checkout(queries, store_id))
