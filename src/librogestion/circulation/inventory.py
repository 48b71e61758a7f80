"""
Bloqueo de filas y actualización de los contadores de ejemplares de un libro.

`Book.available_copies` lo comparten todas las transacciones que prestan o
devuelven el mismo título. Solo se modifica aquí, con UPDATE condicionales
lanzados después de bloquear la fila del libro, así que dos transacciones
nunca se llevan a la vez el último ejemplar: el segundo UPDATE no encuentra
ninguna fila y el préstamo se rechaza.
Ninguna de estas funciones confirma la transacción; de eso se encarga el llamador.
"""

import logging
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from librogestion.core.exceptions import (
    CapacityExceededError,
    IntegrityViolationError,
    NotFoundError,
)
from librogestion.models.book import Book
from librogestion.models.enums import ReservationStatus
from librogestion.models.reservation import Reservation

logger = logging.getLogger(__name__)


def _take_sqlite_write_lock(db: Session, book_id: int) -> None:
    # SQLite ignora FOR UPDATE: una escritura nula toma el bloqueo de escritura de la base
    db.execute(
        update(Book)
        .where(Book.id == book_id)
        .values(available_copies=Book.available_copies, updated_at=Book.updated_at)
        .execution_options(synchronize_session=False)
    )


def lock_book(db: Session, book_id: int, include_deleted: bool = False) -> Book:
    """
    Carga un libro con su fila bloqueada hasta el final de la transacción.

    En PostgreSQL/MySQL se usa `SELECT ... FOR UPDATE`. En SQLite, que ignora
    esa cláusula, antes de leer se toma el bloqueo de escritura de la base de
    datos, así que las demás transacciones que escriben esperan. La instancia
    se recarga desde la fila aunque ya estuviera en la sesión.

    Raises:
        NotFoundError: Si el libro no existe o está borrado lógicamente.
    """
    db.flush()
    if db.get_bind().dialect.name == "sqlite":
        _take_sqlite_write_lock(db, book_id)
    stmt = (
        select(Book)
        .where(Book.id == book_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    book = db.execute(stmt).scalars().first()
    if book is None or (book.is_deleted and not include_deleted):
        logger.warning(f"Book {book_id} not found")
        raise NotFoundError("Book", book_id)
    return book


def _held_for_others(member_id: Optional[int]):
    held = select(func.count(Reservation.id)).where(
        Reservation.book_id == Book.id,
        Reservation.status == ReservationStatus.AVAILABLE,
    )
    if member_id is not None:
        held = held.where(Reservation.member_id != member_id)
    return held.correlate(Book).scalar_subquery()


def take_copy(db: Session, book: Book, member_id: Optional[int] = None) -> None:
    """
    Descuenta un ejemplar disponible si queda alguno que nadie tenga retenido.

    La condición del UPDATE cuenta las reservas Available de otros socios, así
    que un ejemplar retenido no se presta aunque la retención se haya
    confirmado después de que el llamador leyera el libro.

    Args:
        db (Session): Sesión de base de datos SQLAlchemy.
        book (Book): Libro del que se presta el ejemplar.
        member_id (Optional[int]): Socio que se lo lleva; su propia reserva
            Available no cuenta como retenida.

    Raises:
        CapacityExceededError: Si no queda ningún ejemplar prestable.
    """
    db.flush()
    result = db.execute(
        update(Book)
        .where(Book.id == book.id, Book.available_copies > _held_for_others(member_id))
        .values(available_copies=Book.available_copies - 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        logger.warning(f"No lendable copy of book {book.id} left")
        raise CapacityExceededError(
            f"Book {book.id} has no lendable copies",
            {"book_id": book.id},
        )
    db.refresh(book)


def release_copy(db: Session, book: Book) -> None:
    """
    Suma exactamente un ejemplar disponible.

    Raises:
        IntegrityViolationError: Si todos los ejemplares ya están en la estantería.
    """
    db.flush()
    result = db.execute(
        update(Book)
        .where(Book.id == book.id, Book.available_copies < Book.total_copies)
        .values(available_copies=Book.available_copies + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise IntegrityViolationError(
            "book_available_le_total",
            f"Book {book.id}: all copies are already available",
        )
    db.refresh(book)


def write_off_copy(db: Session, book: Book) -> None:
    """
    Da de baja del inventario un ejemplar prestado (ejemplar perdido).

    available_copies no cambia, así que los ejemplares prestados bajan en uno.
    """
    db.flush()
    result = db.execute(
        update(Book)
        .where(Book.id == book.id, Book.total_copies > Book.available_copies)
        .values(total_copies=Book.total_copies - 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise IntegrityViolationError(
            "book_available_le_total",
            f"Book {book.id}: no copy is out on loan to write off",
        )
    db.refresh(book)
