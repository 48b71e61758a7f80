"""
Ciclo de vida de las reservas.

Máquina de estados: Pending -> Available -> Completed, y Pending | Available
-> Cancelled. Completed y Cancelled son terminales. La recogida (Available ->
Completed) ocurre al crear el préstamo, ver `loans.create_loan`.
"""

import datetime
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from librogestion.core.exceptions import ConflictError, InvalidTransitionError
from librogestion.crud.base import atomic, get_or_raise
from librogestion.models.enums import OPEN_RESERVATION_STATUSES, ReservationStatus
from librogestion.models.reservation import Reservation
from librogestion.schemas.circulation import ReservationCreate
from .inventory import lock_book
from .loans import get_eligible_member
from .queue import promote_waiting_reservations

logger = logging.getLogger(__name__)


def create_reservation(db: Session, reservation: ReservationCreate,
                       today: Optional[datetime.date] = None) -> Reservation:
    """
    Pone a un socio en la cola de espera de un libro.

    La reserva entra como Pending y pasa a Available en la misma transacción si
    hay un ejemplar en la estantería que nadie tiene retenido.

    Raises:
        NotFoundError: Si el socio o el libro no existen.
        MemberNotActiveError: Si el socio no está activo.
        ConflictError: Si el socio ya tiene una reserva abierta de ese libro.
    """
    with atomic(db, f"reserve book {reservation.book_id} for member {reservation.member_id}"):
        get_eligible_member(db, reservation.member_id)
        book = lock_book(db, reservation.book_id)

        existing = db.execute(
            select(Reservation).where(
                Reservation.member_id == reservation.member_id,
                Reservation.book_id == reservation.book_id,
                Reservation.status.in_(OPEN_RESERVATION_STATUSES),
            )
        ).scalars().first()
        if existing is not None:
            raise ConflictError(
                f"Member {reservation.member_id} already has open reservation {existing.id} "
                f"for book {reservation.book_id}",
                {"reservation_id": existing.id},
            )

        db_reservation = Reservation(
            member_id=reservation.member_id,
            book_id=book.id,
            reservation_date=datetime.datetime.now(),
            status=ReservationStatus.PENDING,
        )
        db.add(db_reservation)
        promote_waiting_reservations(db, book, today=today)

    db.refresh(db_reservation)
    logger.info(
        f"Reservation {db_reservation.id} created for book {db_reservation.book_id} "
        f"by member {db_reservation.member_id} ({ReservationStatus(db_reservation.status).value})."
    )
    return db_reservation


def cancel_reservation(db: Session, reservation_id: int,
                       today: Optional[datetime.date] = None) -> Reservation:
    """
    Cancela una reserva Pending o Available.

    Si la reserva retenía un ejemplar, éste se ofrece a la siguiente de la cola.

    Raises:
        InvalidTransitionError: Si la reserva ya está Completed o Cancelled.
    """
    with atomic(db, f"cancel reservation {reservation_id}"):
        db_reservation = get_or_raise(db, Reservation, reservation_id)
        book = lock_book(db, db_reservation.book_id, include_deleted=True)
        db.refresh(db_reservation)
        status = ReservationStatus(db_reservation.status)
        if status not in OPEN_RESERVATION_STATUSES:
            raise InvalidTransitionError(
                f"Cannot cancel reservation {reservation_id}: it is {status.value}",
                {"reservation_id": reservation_id, "status": status.value},
            )
        db_reservation.status = ReservationStatus.CANCELLED
        if status == ReservationStatus.AVAILABLE:
            promote_waiting_reservations(db, book, today=today)

    db.refresh(db_reservation)
    logger.info(f"Reservation {reservation_id} cancelled (was {status.value}).")
    return db_reservation


def expire_reservation_holds(db: Session, today: Optional[datetime.date] = None) -> List[Reservation]:
    """
    Cancela las reservas Available cuya fecha de recogida ya pasó.

    Cada ejemplar liberado se ofrece a la siguiente reserva Pending del mismo
    libro. Se ejecuta a demanda; no hay ningún proceso en segundo plano.

    Returns:
        List[Reservation]: Reservas caducadas.
    """
    today = today or datetime.date.today()
    with atomic(db, "expire reservation holds"):
        expired = list(db.execute(
            select(Reservation)
            .where(
                Reservation.status == ReservationStatus.AVAILABLE,
                Reservation.pickup_date < today,
            )
            .order_by(Reservation.book_id, Reservation.id)
        ).scalars().all())

        for book_id in sorted({r.book_id for r in expired}):
            book = lock_book(db, book_id, include_deleted=True)
            for reservation in expired:
                if reservation.book_id == book_id:
                    reservation.status = ReservationStatus.CANCELLED
                    logger.info(f"Reservation {reservation.id} expired (pickup by {reservation.pickup_date}).")
            promote_waiting_reservations(db, book, today=today)

    return expired


def get_reservation(db: Session, reservation_id: int) -> Reservation:
    return get_or_raise(db, Reservation, reservation_id)


def get_reservations_for_book(db: Session, book_id: int,
                              status: Optional[ReservationStatus] = None) -> List[Reservation]:
    """Reservas de un libro en orden de cola (más antiguas primero)."""
    stmt = select(Reservation).where(Reservation.book_id == book_id)
    if status is not None:
        stmt = stmt.where(Reservation.status == status)
    stmt = stmt.order_by(Reservation.reservation_date, Reservation.id)
    return list(db.execute(stmt).scalars().all())


def get_reservations_for_member(db: Session, member_id: int, open_only: bool = False) -> List[Reservation]:
    stmt = select(Reservation).where(Reservation.member_id == member_id)
    if open_only:
        stmt = stmt.where(Reservation.status.in_(OPEN_RESERVATION_STATUSES))
    return list(db.execute(stmt.order_by(Reservation.reservation_date, Reservation.id)).scalars().all())
