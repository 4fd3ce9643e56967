"""
Shared pytest fixtures.

Tests run against an in-memory SQLite database. Every test works inside
`rolled_back`, so nothing it writes survives it; the API client shares the
same query interface through a dependency override.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ.setdefault("ENVIRONMENT", "test")

from datetime import datetime, time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool

from clup.core.security import get_queries
from clup.db.base import Base
from clup.db.queries import rolled_back
from clup.db.session import make_engine
from clup.main import app
from clup.models.store import ReservationSlot, Store
from clup.services import accounts
from clup.services.sms import SmsSender, get_sms_sender

# one in-memory database shared by every connection
engine = make_engine("sqlite://", poolclass=StaticPool)
Base.metadata.create_all(bind=engine)

CUSTOMER_PHONE = "+393331234567"
OTHER_PHONE = "+393339876543"
TOTEM_PHONE = "+390200000001"

# Monday 19 October 2026, 09:00
MONDAY_9AM = datetime(2026, 10, 19, 9, 0)


class CapturingSmsSender(SmsSender):
    """Keeps the messages instead of sending them."""

    def __init__(self):
        self.outbox = []

    def send(self, phone_number: str, message: str) -> None:
        self.outbox.append((phone_number, message))

    def last_code(self, phone_number: str) -> str:
        for phone, message in reversed(self.outbox):
            if phone == phone_number:
                return message.rsplit(" ", 1)[-1]
        raise AssertionError(f"No SMS sent to {phone_number}")


@pytest.fixture
def queries():
    with rolled_back(engine) as q:
        yield q


@pytest.fixture
def sms():
    return CapturingSmsSender()


@pytest.fixture
def client(queries, sms):
    app.dependency_overrides[get_queries] = lambda: queries
    app.dependency_overrides[get_sms_sender] = lambda: sms
    yield TestClient(app)
    app.dependency_overrides.clear()


def add_store(queries, max_capacity=10, curr_number=0, name="Esselunga Piave",
              latitude=45.4719, longitude=9.2075) -> Store:
    store = Store(name=name, address="Viale Piave 38, Milano", latitude=latitude, longitude=longitude,
                  max_capacity=max_capacity, curr_number=curr_number)
    queries.db.add(store)
    queries.db.commit()
    return store


def add_slot(queries, store, weekday, start_time=time(10, 0), max_people_allowed=10, is_active=True) -> ReservationSlot:
    slot = ReservationSlot(store_id=store.id, weekday=weekday, start_time=start_time,
                           max_people_allowed=max_people_allowed, is_active=is_active)
    queries.db.add(slot)
    queries.db.commit()
    return slot


@pytest.fixture
def store(queries):
    return add_store(queries)


@pytest.fixture
def customer(queries):
    queries.create_user(CUSTOMER_PHONE, "Mario", "Rossi")
    return CUSTOMER_PHONE


@pytest.fixture
def other_customer(queries):
    queries.create_user(OTHER_PHONE, "Lucia", "Bianchi")
    return OTHER_PHONE


@pytest.fixture
def totem(queries):
    queries.create_user(TOTEM_PHONE, "Totem", "Piave", is_totem=True)
    return TOTEM_PHONE


@pytest.fixture
def customer_headers(queries, customer):
    return {"X-Auth-Token": accounts.get_account_token(queries, customer)}


@pytest.fixture
def totem_headers(queries, totem):
    return {"X-Auth-Token": accounts.get_account_token(queries, totem)}
