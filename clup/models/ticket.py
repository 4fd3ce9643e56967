# clup/models/ticket.py
# Ticket: a claim on store entry, either from the queue or from a booked timeslot.
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, Index, text
from sqlalchemy.orm import relationship
from datetime import datetime
from clup.db.base import Base
import enum


class TicketType(str, enum.Enum):
    queue = "queue"
    reservation = "reservation"


class TicketStatus(str, enum.Enum):
    valid = "valid"
    used = "used"
    cancelled = "cancelled"


class Ticket(Base):
    __tablename__ = "tickets"
    # at most one valid ticket per user, whatever its kind
    __table_args__ = (
        Index(
            "uq_tickets_valid_user",
            "user_id",
            unique=True,
            postgresql_where=text("status = 'valid'"),
            sqlite_where=text("status = 'valid'"),
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    type = Column(Enum(TicketType), nullable=False)
    status = Column(Enum(TicketStatus), default=TicketStatus.valid, nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)
    store_id = Column(Integer, ForeignKey("stores.id"), nullable=False, index=True)
    user_id = Column(String(20), ForeignKey("users.id"), nullable=False, index=True)
    reservation_id = Column(Integer, ForeignKey("reservation_slots.id"), nullable=True)
    reservation_date = Column(DateTime, nullable=True)

    store = relationship("Store")
    user = relationship("User")
    slot = relationship("ReservationSlot")
