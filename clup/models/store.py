# clup/models/store.py
# Stores and the weekly reservation timeslots they offer.
from sqlalchemy import Column, Integer, String, Float, Boolean, Time, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from clup.db.base import Base


class Store(Base):
    __tablename__ = "stores"
    __table_args__ = (
        CheckConstraint("curr_number >= 0", name="ck_stores_curr_number_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    address = Column(String, nullable=False)
    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    max_capacity = Column(Integer, nullable=False)
    curr_number = Column(Integer, default=0, nullable=False)

    slots = relationship("ReservationSlot", back_populates="store")


class ReservationSlot(Base):
    __tablename__ = "reservation_slots"

    id = Column(Integer, primary_key=True, index=True)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True)
    # 0 = Monday ... 6 = Sunday, same as datetime.weekday()
    weekday = Column(Integer, nullable=False)
    start_time = Column(Time, nullable=False)
    max_people_allowed = Column(Integer, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    store = relationship("Store", back_populates="slots")
