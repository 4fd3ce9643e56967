# clup/db/queries.py
# Query interface: one method per data-access need of the managers.
# Wraps a request-scoped Session; write methods commit, or roll back and re-raise on any error.
import logging
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional

from sqlalchemy import exists, func, or_
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, aliased

from clup.core.errors import ConflictError
from clup.models.store import ReservationSlot, Store
from clup.models.ticket import Ticket, TicketStatus, TicketType
from clup.models.user import Token, User, VerificationCode

logger = logging.getLogger(__name__)


class QueryInterface:

    def __init__(self, db: Session):
        self.db = db

    @contextmanager
    def _writing(self):
        try:
            yield
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

    # --- users ---

    def get_user(self, phone_number: str) -> Optional[User]:
        return self.db.query(User).filter(User.id == phone_number).first()

    def create_user(self, phone_number: str, name: str | None = None, surname: str | None = None,
                    is_totem: bool = False) -> User:
        user = User(id=phone_number, name=name, surname=surname, is_totem=is_totem)
        with self._writing():
            self.db.add(user)
        self.db.refresh(user)
        return user

    def is_totem(self, user_id: str) -> bool:
        user = self.get_user(user_id)
        return bool(user and user.is_totem)

    # --- tokens ---

    def replace_user_token(self, user_id: str, token: str, expires_at: datetime) -> None:
        """Deletes the user's previous token and stores the new one in one transaction."""
        with self._writing():
            self.db.query(Token).filter(Token.user_id == user_id).delete(synchronize_session=False)
            self.db.add(Token(user_id=user_id, token=token, expires_at=expires_at))

    def get_token(self, token: str) -> Optional[Token]:
        return self.db.query(Token).filter(Token.token == token).first()

    # --- verification codes ---

    def add_verification_code(self, phone_number: str, code_hash: str, expires_at: datetime) -> None:
        with self._writing():
            self.db.add(VerificationCode(phone_number=phone_number, code_hash=code_hash, expires_at=expires_at))

    def get_latest_verification_code(self, phone_number: str, now: datetime) -> Optional[VerificationCode]:
        return (
            self.db.query(VerificationCode)
            .filter(VerificationCode.phone_number == phone_number, VerificationCode.expires_at > now)
            .order_by(VerificationCode.id.desc())
            .first()
        )

    def consume_verification_code(self, code_id: int) -> bool:
        """Deletes the code; False if another request consumed it first."""
        with self._writing():
            deleted = (
                self.db.query(VerificationCode)
                .filter(VerificationCode.id == code_id)
                .delete(synchronize_session=False)
            )
        return deleted == 1

    # --- stores ---

    def get_store(self, store_id: int) -> Optional[Store]:
        return self.db.query(Store).filter(Store.id == store_id).first()

    def list_stores_in_box(self, lat_min: float, lat_max: float,
                           lon_ranges: List[tuple[float, float]]) -> List[Store]:
        """Stores inside the latitude band and any of the (lon_min, lon_max) ranges."""
        return (
            self.db.query(Store)
            .filter(
                Store.latitude.between(lat_min, lat_max),
                or_(*(Store.longitude.between(lon_min, lon_max) for lon_min, lon_max in lon_ranges)),
            )
            .all()
        )

    def release_occupant(self, store_id: int) -> Optional[int]:
        """Takes one customer out of the store; returns the new curr_number, None if it was empty."""
        with self._writing():
            updated = (
                self.db.query(Store)
                .filter(Store.id == store_id, Store.curr_number > 0)
                .update({Store.curr_number: Store.curr_number - 1}, synchronize_session=False)
            )
            curr_number = None
            if updated == 1:
                curr_number = self.db.query(Store.curr_number).filter(Store.id == store_id).scalar()
        return curr_number

    # --- tickets ---

    def get_ticket(self, ticket_id: int) -> Optional[Ticket]:
        return self.db.query(Ticket).filter(Ticket.id == ticket_id).first()

    def get_active_ticket_from_user(self, user_id: str) -> Optional[Ticket]:
        return (
            self.db.query(Ticket)
            .filter(Ticket.user_id == user_id, Ticket.status == TicketStatus.valid)
            .order_by(Ticket.id.desc())
            .first()
        )

    def _holds_valid_ticket(self, user_id: str) -> bool:
        return self.db.query(
            exists().where(Ticket.user_id == user_id, Ticket.status == TicketStatus.valid)
        ).scalar()

    def _insert_ticket(self, ticket: Ticket, slot_capacity: Optional[int] = None) -> int:
        """
        Inserts a valid ticket; the uq_tickets_valid_user index rejects a second one.

        With slot_capacity the slot row is locked and its bookings for the
        ticket's date counted inside the same transaction.
        """
        user_id = ticket.user_id
        try:
            with self._writing():
                if slot_capacity is not None:
                    (
                        self.db.query(ReservationSlot.id)
                        .filter(ReservationSlot.id == ticket.reservation_id)
                        .with_for_update()
                        .first()
                    )
                    if self.count_slot_bookings(ticket.reservation_id, ticket.reservation_date) >= slot_capacity:
                        raise ConflictError("Timeslot is full")
                self.db.add(ticket)
                self.db.flush()
                ticket_id = ticket.id
        except IntegrityError:
            if self._holds_valid_ticket(user_id):
                raise ConflictError("Ticket already present")
            raise
        return ticket_id

    def add_user_to_queue(self, user_id: str, store_id: int) -> int:
        return self._insert_ticket(
            Ticket(type=TicketType.queue, status=TicketStatus.valid, store_id=store_id, user_id=user_id)
        )

    def get_first_queue_ticket(self, store_id: int) -> Optional[Ticket]:
        return (
            self.db.query(Ticket)
            .filter(
                Ticket.store_id == store_id,
                Ticket.type == TicketType.queue,
                Ticket.status == TicketStatus.valid,
            )
            .order_by(Ticket.id)
            .first()
        )

    def count_queue(self, store_id: int) -> int:
        return (
            self.db.query(func.count(Ticket.id))
            .filter(
                Ticket.store_id == store_id,
                Ticket.type == TicketType.queue,
                Ticket.status == TicketStatus.valid,
            )
            .scalar()
        )

    def count_queue_ahead(self, ticket: Ticket) -> int:
        """Valid queue tickets of the same store issued before this one."""
        return (
            self.db.query(func.count(Ticket.id))
            .filter(
                Ticket.store_id == ticket.store_id,
                Ticket.type == TicketType.queue,
                Ticket.status == TicketStatus.valid,
                Ticket.id < ticket.id,
            )
            .scalar()
        )

    def get_store_next_reservations(self, store_id: int, start: datetime, end: datetime) -> int:
        return (
            self.db.query(func.count(Ticket.id))
            .filter(
                Ticket.store_id == store_id,
                Ticket.type == TicketType.reservation,
                Ticket.status == TicketStatus.valid,
                Ticket.reservation_date >= start,
                Ticket.reservation_date <= end,
            )
            .scalar()
        )

    def admit_ticket(self, store_id: int, ticket_id: int, kind: TicketType, reserved_load: int = 0) -> bool:
        """
        Marks a valid ticket as used and takes one store place, in one transaction.

        The store update only matches while curr_number + reserved_load < max_capacity,
        the ticket update only while the ticket is still valid (and, for queue tickets,
        first in line). If either matches no row both are rolled back.
        """
        ticket_filter = [
            Ticket.id == ticket_id,
            Ticket.store_id == store_id,
            Ticket.type == kind,
            Ticket.status == TicketStatus.valid,
        ]
        if kind == TicketType.queue:
            earlier = aliased(Ticket)
            ticket_filter.append(
                ~exists().where(
                    earlier.store_id == store_id,
                    earlier.type == TicketType.queue,
                    earlier.status == TicketStatus.valid,
                    earlier.id < ticket_id,
                )
            )

        try:
            used = (
                self.db.query(Ticket)
                .filter(*ticket_filter)
                .update({Ticket.status: TicketStatus.used}, synchronize_session=False)
            )
            seated = 0
            if used == 1:
                seated = (
                    self.db.query(Store)
                    .filter(Store.id == store_id, Store.curr_number + reserved_load < Store.max_capacity)
                    .update({Store.curr_number: Store.curr_number + 1}, synchronize_session=False)
                )
            if used == 1 and seated == 1:
                self.db.commit()
                return True
            self.db.rollback()
            return False
        except SQLAlchemyError:
            self.db.rollback()
            raise

    def cancel_ticket(self, store_id: int, ticket_id: int, user_id: str, kind: TicketType) -> bool:
        with self._writing():
            updated = (
                self.db.query(Ticket)
                .filter(
                    Ticket.id == ticket_id,
                    Ticket.store_id == store_id,
                    Ticket.user_id == user_id,
                    Ticket.type == kind,
                    Ticket.status == TicketStatus.valid,
                )
                .update({Ticket.status: TicketStatus.cancelled}, synchronize_session=False)
            )
        return updated == 1

    def create_user_reservation(self, store_id: int, slot_id: int, user_id: str, reservation_date: datetime,
                                max_people_allowed: Optional[int] = None) -> int:
        ticket = Ticket(
            type=TicketType.reservation,
            status=TicketStatus.valid,
            store_id=store_id,
            user_id=user_id,
            reservation_id=slot_id,
            reservation_date=reservation_date,
        )
        return self._insert_ticket(ticket, slot_capacity=max_people_allowed)

    def clear_old_reservations(self, before: datetime) -> int:
        """Cancels valid reservation tickets whose entry window closed before `before`."""
        with self._writing():
            cleared = (
                self.db.query(Ticket)
                .filter(
                    Ticket.type == TicketType.reservation,
                    Ticket.status == TicketStatus.valid,
                    Ticket.reservation_date < before,
                )
                .update({Ticket.status: TicketStatus.cancelled}, synchronize_session=False)
            )
        if cleared:
            logger.info(f"Cleared {cleared} expired reservation(s)")
        return cleared

    # --- reservation slots ---

    def get_reservation_slot(self, slot_id: int) -> Optional[ReservationSlot]:
        return self.db.query(ReservationSlot).filter(ReservationSlot.id == slot_id).first()

    def list_active_slots(self, store_id: int) -> List[ReservationSlot]:
        return (
            self.db.query(ReservationSlot)
            .filter(ReservationSlot.store_id == store_id, ReservationSlot.is_active.is_(True))
            .order_by(ReservationSlot.weekday, ReservationSlot.start_time)
            .all()
        )

    def count_slot_bookings(self, slot_id: int, occurrence: datetime) -> int:
        return (
            self.db.query(func.count(Ticket.id))
            .filter(
                Ticket.reservation_id == slot_id,
                Ticket.reservation_date == occurrence,
                Ticket.status.in_([TicketStatus.valid, TicketStatus.used]),
            )
            .scalar()
        )


@contextmanager
def rolled_back(bind: Engine) -> Iterator[QueryInterface]:
    """
    Test helper: yields a QueryInterface whose work is rolled back at exit.

    The session runs inside an outer connection-level transaction; its own
    commits only release savepoints.
    """
    connection = bind.connect()
    transaction = connection.begin()
    session = Session(bind=connection, join_transaction_mode="create_savepoint")
    try:
        yield QueryInterface(session)
    finally:
        session.close()
        transaction.rollback()
        connection.close()
