# scripts/seed_db.py
# Checks the connection to settings.DATABASE_URL and inserts demo stores, timeslots and a totem account.
import logging
from datetime import time

from sqlalchemy import text

from clup.core.config import settings
from clup.db.base import Base
from clup.db.session import SessionLocal, engine
from clup.models.store import ReservationSlot, Store
from clup.models.user import User
import clup.models.ticket

logging.basicConfig(level=settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

DEMO_STORES = [
    ("Esselunga Viale Piave", "Viale Piave 38, Milano", 45.4719, 9.2075, 60),
    ("Carrefour Express Leonardo", "Piazza Leonardo da Vinci 7, Milano", 45.4781, 9.2270, 25),
    ("Coop Bonola", "Via Quarenghi 23, Milano", 45.5105, 9.1100, 120),
]
SLOT_HOURS = [time(9, 0), time(11, 0), time(15, 0), time(17, 30)]
TOTEM_PHONE = "+390200000000"


def main():
    logger.info(f"Trying to connect to: {engine.url!r}")
    with engine.connect() as conn:
        logger.info(f"Connection OK, SELECT 1 -> {conn.execute(text('SELECT 1')).scalar()}")

    Base.metadata.create_all(bind=engine)

    with SessionLocal() as db:
        if db.query(Store).count():
            logger.info("Stores already present, nothing to seed")
            return
        for name, address, lat, lon, capacity in DEMO_STORES:
            store = Store(name=name, address=address, latitude=lat, longitude=lon,
                          max_capacity=capacity, curr_number=0)
            db.add(store)
            db.flush()
            for weekday in range(6):
                for start in SLOT_HOURS:
                    db.add(ReservationSlot(store_id=store.id, weekday=weekday, start_time=start,
                                           max_people_allowed=max(capacity // 4, 1)))
        db.add(User(id=TOTEM_PHONE, name="Totem", surname="Demo", is_totem=True))
        db.commit()
        logger.info(f"Seeded {len(DEMO_STORES)} stores and totem {TOTEM_PHONE}")


if __name__ == '__main__':
    main()
