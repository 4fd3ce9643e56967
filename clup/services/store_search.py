# clup/services/store_search.py
# Store lookup and search around a coordinate.
import math

from clup.core.config import settings
from clup.core.errors import NotFoundError
from clup.db.queries import QueryInterface
from clup.models.store import Store

EARTH_RADIUS_KM = 6371.0


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Haversine distance between two points."""
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)
    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(a))


def longitude_ranges(lon: float, d_lon: float) -> list[tuple[float, float]]:
    """[lon - d_lon, lon + d_lon] as ranges inside [-180, 180], split where it crosses the antimeridian."""
    low, high = lon - d_lon, lon + d_lon
    if high - low >= 360.0:
        return [(-180.0, 180.0)]
    if low < -180.0:
        return [(low + 360.0, 180.0), (-180.0, high)]
    if high > 180.0:
        return [(low, 180.0), (-180.0, high - 360.0)]
    return [(low, high)]


def get_stores(queries: QueryInterface, lat: float, lon: float,
               radius_km: float | None = None) -> list[tuple[Store, float]]:
    """Stores within radius_km of (lat, lon), nearest first, paired with their distance."""
    radius_km = radius_km or settings.SEARCH_RADIUS_KM

    # bounding box first, exact distance after
    d_lat = math.degrees(radius_km / EARTH_RADIUS_KM)
    cos_lat = max(math.cos(math.radians(lat)), 1e-6)
    d_lon = min(math.degrees(radius_km / (EARTH_RADIUS_KM * cos_lat)), 180.0)
    candidates = queries.list_stores_in_box(lat - d_lat, lat + d_lat, longitude_ranges(lon, d_lon))

    found = []
    for store in candidates:
        distance = distance_km(lat, lon, store.latitude, store.longitude)
        if distance <= radius_km:
            found.append((store, distance))
    if not found:
        raise NotFoundError("Store not found")
    found.sort(key=lambda pair: pair[1])
    return found


def get_store(queries: QueryInterface, store_id: int) -> Store:
    store = queries.get_store(store_id)
    if store is None:
        raise NotFoundError("Store not found")
    return store
