"""
Cola de reservas por libro.

Una reserva Available retiene un ejemplar disponible para su socio hasta
`pickup_date`. Los ejemplares retenidos no se prestan a otros socios. Cada vez
que se libera un ejemplar, las reservas Pending más antiguas (por
`reservation_date` y luego por id) pasan a Available mientras queden ejemplares
sin retener.

Estas funciones no confirman la transacción; el llamador debe tener bloqueada
la fila del libro (ver `inventory.lock_book`).
"""

import datetime
import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from librogestion.core.config import settings
from librogestion.models.book import Book
from librogestion.models.enums import ReservationStatus
from librogestion.models.reservation import Reservation

logger = logging.getLogger(__name__)


def count_held_copies(db: Session, book_id: int) -> int:
    """
    Cuenta los ejemplares retenidos por reservas Available de un libro.

    Args:
        db (Session): Sesión de base de datos SQLAlchemy.
        book_id (int): ID del libro.

    Returns:
        int: Número de reservas Available.
    """
    db.flush()
    return db.scalar(
        select(func.count(Reservation.id)).where(
            Reservation.book_id == book_id,
            Reservation.status == ReservationStatus.AVAILABLE,
        )
    ) or 0


def get_member_hold(db: Session, book_id: int, member_id: int) -> Optional[Reservation]:
    """Devuelve la reserva Available del socio para el libro, si existe."""
    db.flush()
    stmt = select(Reservation).where(
        Reservation.book_id == book_id,
        Reservation.member_id == member_id,
        Reservation.status == ReservationStatus.AVAILABLE,
    )
    return db.execute(stmt).scalars().first()


def count_waiting(db: Session, book_id: int, exclude_member_id: Optional[int] = None) -> int:
    """Cuenta las reservas abiertas (Pending o Available) de otros socios."""
    db.flush()
    stmt = select(func.count(Reservation.id)).where(
        Reservation.book_id == book_id,
        Reservation.status.in_([ReservationStatus.PENDING, ReservationStatus.AVAILABLE]),
    )
    if exclude_member_id is not None:
        stmt = stmt.where(Reservation.member_id != exclude_member_id)
    return db.scalar(stmt) or 0


def promote_waiting_reservations(db: Session, book: Book,
                                 today: Optional[datetime.date] = None) -> List[Reservation]:
    """
    Ofrece los ejemplares libres y sin retener a las reservas Pending más antiguas.

    Args:
        db (Session): Sesión SQLAlchemy con la fila del libro bloqueada.
        book (Book): Libro cuyos ejemplares se ofrecen.
        today (Optional[datetime.date]): Fecha de referencia para `pickup_date`.

    Returns:
        List[Reservation]: Reservas que han pasado a Available, en orden de cola.
    """
    today = today or datetime.date.today()
    free = book.available_copies - count_held_copies(db, book.id)
    if free <= 0:
        return []

    stmt = (
        select(Reservation)
        .where(
            Reservation.book_id == book.id,
            Reservation.status == ReservationStatus.PENDING,
        )
        .order_by(Reservation.reservation_date, Reservation.id)
        .limit(free)
        .with_for_update()
    )
    promoted = list(db.execute(stmt).scalars().all())
    pickup_date = today + datetime.timedelta(days=settings.RESERVATION_HOLD_DAYS)
    for reservation in promoted:
        reservation.status = ReservationStatus.AVAILABLE
        reservation.pickup_date = pickup_date
        logger.info(
            f"Reservation {reservation.id} for book {book.id} is now Available "
            f"(pickup by {pickup_date})."
        )
    db.flush()
    return promoted
