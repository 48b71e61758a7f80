"""
Ciclo de vida de los préstamos.

Máquina de estados: Active -> Returned | Lost. Overdue se deriva al leer
(ver `status.py`); Returned y Lost son terminales. Crear y devolver un préstamo
se serializan sobre la fila del libro, dentro de una única transacción.
"""

import datetime
import logging
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from librogestion.core.config import settings
from librogestion.core.exceptions import (
    CapacityExceededError,
    InvalidTransitionError,
    MemberNotActiveError,
)
from librogestion.crud.base import atomic, get_or_raise
from librogestion.models.book import Book
from librogestion.models.enums import AccountStatus, LoanStatus, ReservationStatus
from librogestion.models.loan import Loan
from librogestion.models.member import Member
from librogestion.schemas.circulation import LoanCreate
from .inventory import lock_book, release_copy, take_copy, write_off_copy
from .queue import count_held_copies, count_waiting, get_member_hold, promote_waiting_reservations
from .status import calculate_late_fine, loan_status

logger = logging.getLogger(__name__)


def get_eligible_member(db: Session, member_id: int) -> Member:
    """
    Recupera un socio que puede tomar prestado o reservar.

    Raises:
        NotFoundError: Si el socio no existe o está borrado.
        MemberNotActiveError: Si la cuenta está Suspended o Inactive.
    """
    member = get_or_raise(db, Member, member_id)
    if member.account_status != AccountStatus.ACTIVE:
        logger.warning(f"Member {member_id} is {member.account_status}; circulation refused")
        raise MemberNotActiveError(
            f"Member {member_id} account is {AccountStatus(member.account_status).value}",
            {"member_id": member_id, "account_status": AccountStatus(member.account_status).value},
        )
    return member


def create_loan(db: Session, loan: LoanCreate, today: Optional[datetime.date] = None) -> Loan:
    """
    Presta un ejemplar de un libro a un socio.

    Bloquea la fila del libro y descuenta un ejemplar disponible. Los ejemplares
    retenidos para reservas Available de otros socios no se prestan. Si el
    socio tenía una reserva Available del libro, pasa a Completed (recogida).

    Args:
        db (Session): Sesión de base de datos SQLAlchemy.
        loan (LoanCreate): Datos del préstamo (ya validados).
        today (Optional[datetime.date]): Fecha de referencia; hoy por defecto.

    Returns:
        Loan: El préstamo creado, en estado Active.

    Raises:
        NotFoundError: Si el socio o el libro no existen.
        MemberNotActiveError: Si el socio no está activo.
        CapacityExceededError: Si no queda ningún ejemplar prestable; el
            estado de la base de datos no cambia.
    """
    today = today or datetime.date.today()
    loan_date = loan.loan_date or today
    due_date = loan.due_date or loan_date + datetime.timedelta(days=settings.DEFAULT_LOAN_DAYS)

    with atomic(db, f"create loan of book {loan.book_id} to member {loan.member_id}"):
        get_eligible_member(db, loan.member_id)
        book = lock_book(db, loan.book_id)

        own_hold = get_member_hold(db, book.id, loan.member_id)
        held_for_others = count_held_copies(db, book.id) - (1 if own_hold else 0)
        if book.available_copies - held_for_others <= 0:
            logger.warning(
                f"Loan refused: book {book.id} has {book.available_copies} available, "
                f"{held_for_others} held for other members"
            )
            raise CapacityExceededError(
                f"Book {book.id} has no lendable copies",
                {"book_id": book.id, "available_copies": book.available_copies,
                 "held_copies": held_for_others},
            )

        take_copy(db, book, member_id=loan.member_id)
        db_loan = Loan(
            member_id=loan.member_id,
            book_id=book.id,
            loan_date=loan_date,
            due_date=due_date,
            status=LoanStatus.ACTIVE,
            fine_amount=0,
        )
        db.add(db_loan)

        if own_hold is not None:
            own_hold.status = ReservationStatus.COMPLETED
            own_hold.pickup_date = loan_date
            logger.info(f"Reservation {own_hold.id} completed by pickup.")

    db.refresh(db_loan)
    logger.info(
        f"Loan {db_loan.id} created: book {book.id} to member {loan.member_id}, due {due_date}. "
        f"Available copies now {book.available_copies}/{book.total_copies}."
    )
    return db_loan


def _lock_loan_for_close(db: Session, loan_id: int, action: str) -> tuple[Loan, Book]:
    db_loan = get_or_raise(db, Loan, loan_id)
    if db_loan.status != LoanStatus.ACTIVE:
        raise InvalidTransitionError(
            f"Cannot {action} loan {loan_id}: it is already {LoanStatus(db_loan.status).value}",
            {"loan_id": loan_id, "status": LoanStatus(db_loan.status).value},
        )
    # Soft-deleted books still take their copies back
    book = lock_book(db, db_loan.book_id, include_deleted=True)
    db.refresh(db_loan)
    if db_loan.status != LoanStatus.ACTIVE:
        raise InvalidTransitionError(f"Loan {loan_id} was closed concurrently", {"loan_id": loan_id})
    return db_loan, book


def return_loan(db: Session, loan_id: int, return_date: Optional[datetime.date] = None) -> Loan:
    """
    Registra la devolución de un préstamo Active u Overdue.

    Suma exactamente un ejemplar disponible, fija la multa por retraso y ofrece
    el ejemplar a la reserva Pending más antigua del libro.

    Raises:
        NotFoundError: Si el préstamo no existe.
        InvalidTransitionError: Si el préstamo ya está Returned o Lost.
        IntegrityViolationError: Si return_date es anterior a loan_date.
    """
    return_date = return_date or datetime.date.today()
    with atomic(db, f"return loan {loan_id}"):
        db_loan, book = _lock_loan_for_close(db, loan_id, "return")
        was_overdue = loan_status(db_loan, return_date) == LoanStatus.OVERDUE
        db_loan.status = LoanStatus.RETURNED
        db_loan.return_date = return_date
        db_loan.fine_amount = calculate_late_fine(db_loan.due_date, return_date)
        release_copy(db, book)
        promoted = promote_waiting_reservations(db, book, today=return_date)

    db.refresh(db_loan)
    logger.info(
        f"Loan {loan_id} returned{' late' if was_overdue else ''} (fine {db_loan.fine_amount}). "
        f"Book {book.id} available {book.available_copies}/{book.total_copies}; "
        f"{len(promoted)} reservation(s) promoted."
    )
    return db_loan


def mark_loan_lost(db: Session, loan_id: int) -> Loan:
    """
    Declara perdido el ejemplar de un préstamo Active u Overdue.

    El ejemplar se da de baja (total_copies baja en uno, available_copies no
    cambia) y se cobra LOST_ITEM_FEE.
    """
    with atomic(db, f"mark loan {loan_id} lost"):
        db_loan, book = _lock_loan_for_close(db, loan_id, "mark lost")
        db_loan.status = LoanStatus.LOST
        db_loan.fine_amount = settings.LOST_ITEM_FEE
        write_off_copy(db, book)

    db.refresh(db_loan)
    logger.info(
        f"Loan {loan_id} marked lost; book {book.id} now has {book.total_copies} copies "
        f"({book.available_copies} available)."
    )
    return db_loan


def renew_loan(db: Session, loan_id: int, today: Optional[datetime.date] = None) -> Loan:
    """
    Amplía DEFAULT_LOAN_DAYS la fecha de devolución de un préstamo activo.

    Raises:
        InvalidTransitionError: Si el préstamo está cerrado, vencido, o hay otros
            socios esperando el libro.
    """
    today = today or datetime.date.today()
    with atomic(db, f"renew loan {loan_id}"):
        db_loan = get_or_raise(db, Loan, loan_id)
        status = loan_status(db_loan, today)
        if status != LoanStatus.ACTIVE:
            raise InvalidTransitionError(
                f"Cannot renew loan {loan_id}: it is {status.value}",
                {"loan_id": loan_id, "status": status.value},
            )
        lock_book(db, db_loan.book_id, include_deleted=True)
        waiting = count_waiting(db, db_loan.book_id, exclude_member_id=db_loan.member_id)
        if waiting:
            raise InvalidTransitionError(
                f"Cannot renew loan {loan_id}: {waiting} reservation(s) are waiting for the book",
                {"loan_id": loan_id, "waiting": waiting},
            )
        db_loan.due_date = db_loan.due_date + datetime.timedelta(days=settings.DEFAULT_LOAN_DAYS)

    db.refresh(db_loan)
    logger.info(f"Loan {loan_id} renewed until {db_loan.due_date}.")
    return db_loan


def get_loan(db: Session, loan_id: int) -> Loan:
    return get_or_raise(db, Loan, loan_id)


def get_loans_for_member(db: Session, member_id: int, open_only: bool = False) -> List[Loan]:
    stmt = select(Loan).where(Loan.member_id == member_id)
    if open_only:
        stmt = stmt.where(Loan.status == LoanStatus.ACTIVE)
    return list(db.execute(stmt.order_by(Loan.loan_date, Loan.id)).scalars().all())


def get_loans_for_book(db: Session, book_id: int, open_only: bool = False) -> List[Loan]:
    stmt = select(Loan).where(Loan.book_id == book_id)
    if open_only:
        stmt = stmt.where(Loan.status == LoanStatus.ACTIVE)
    return list(db.execute(stmt.order_by(Loan.loan_date, Loan.id)).scalars().all())


def get_overdue_loans(db: Session, today: Optional[datetime.date] = None) -> List[Loan]:
    """Préstamos activos cuya fecha de devolución ya pasó, más antiguos primero."""
    today = today or datetime.date.today()
    stmt = (
        select(Loan)
        .where(Loan.status == LoanStatus.ACTIVE, Loan.return_date.is_(None), Loan.due_date < today)
        .order_by(Loan.due_date, Loan.id)
    )
    return list(db.execute(stmt).scalars().all())
