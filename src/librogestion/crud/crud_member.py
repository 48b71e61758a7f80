"""
Operaciones CRUD para el modelo Member en la base de datos de LibroGestion.
Incluye alta de socios, búsqueda por email, cambio de estado de la cuenta y
borrado (lógico, o definitivo con borrado en cascada de préstamos y reservas).
"""

from sqlalchemy.orm import Session
from sqlalchemy import select
from typing import Optional, List
import logging

from ..core.exceptions import ConflictError
from ..models.enums import AccountStatus, LoanStatus, ReservationStatus
from ..models.loan import Loan
from ..models.member import Member
from ..models.reservation import Reservation
from ..schemas.member import MemberCreate, MemberUpdate
from ..circulation.inventory import lock_book, release_copy
from ..circulation.queue import promote_waiting_reservations
from .base import atomic, commit, get_or_raise, list_rows, set_deleted_flag, find_by, apply_update

logger = logging.getLogger(__name__)


def get_member_by_email(db: Session, email: str) -> Optional[Member]:
    """
    Obtiene un socio por su email.

    Args:
        db (Session): Sesión de base de datos SQLAlchemy.
        email (str): Email del socio a buscar.

    Returns:
        Optional[Member]: El socio si existe, None si no.
    """
    return find_by(db, Member, Member.email == email)


def create_member(db: Session, member: MemberCreate) -> Member:
    """
    Da de alta un nuevo socio.

    Args:
        db (Session): Sesión de base de datos SQLAlchemy.
        member (MemberCreate): Datos validados del socio.

    Returns:
        Member: El socio creado.

    Raises:
        ConflictError: Si el email ya está registrado.
    """
    if get_member_by_email(db, member.email):
        raise ConflictError(f"Email {member.email} is already registered", {"field": "email"})
    db_member: Member = Member(**member.model_dump())
    db.add(db_member)
    commit(db, f"create member {member.email}")
    db.refresh(db_member)
    logger.info(f"Member {db_member.id} <{db_member.email}> created.")
    return db_member


def get_member(db: Session, member_id: int, include_deleted: bool = False) -> Member:
    return get_or_raise(db, Member, member_id, include_deleted)


def get_members(db: Session, skip: int = 0, limit: int = 100, include_deleted: bool = False) -> List[Member]:
    """
    Obtiene una lista de socios ordenada por ID, con paginación.

    Args:
        db (Session): Sesión de base de datos SQLAlchemy.
        skip (int): Número de registros a omitir.
        limit (int): Número máximo de registros a devolver.
        include_deleted (bool): Incluir socios con borrado lógico.

    Returns:
        List[Member]: Socios encontrados.
    """
    return list_rows(db, Member, [Member.id], skip, limit, include_deleted)


def update_member(db: Session, member_id: int, member: MemberUpdate) -> Member:
    db_member = get_member(db, member_id)
    changes = member.model_dump(exclude_unset=True)
    for field in ("first_name", "last_name", "email"):
        if field in changes and changes[field] is None:
            changes.pop(field)
    if "email" in changes and changes["email"] != db_member.email and get_member_by_email(db, changes["email"]):
        raise ConflictError(f"Email {changes['email']} is already registered", {"field": "email"})
    apply_update(db_member, changes)
    commit(db, f"update member {member_id}")
    db.refresh(db_member)
    return db_member


def update_member_status(db: Session, member_id: int, status: AccountStatus) -> Member:
    """Cambia el estado de la cuenta (Active, Suspended, Inactive)."""
    db_member = get_member(db, member_id)
    db_member.account_status = AccountStatus(status)
    commit(db, f"set member {member_id} status to {status}")
    db.refresh(db_member)
    logger.info(f"Member {member_id} account is now {AccountStatus(status).value}.")
    return db_member


def soft_delete_member(db: Session, member_id: int) -> Member:
    return set_deleted_flag(db, Member, member_id, True)


def restore_member(db: Session, member_id: int) -> Member:
    return set_deleted_flag(db, Member, member_id, False)


def delete_member(db: Session, member_id: int) -> None:
    """
    Borrado definitivo de un socio.

    Los préstamos y reservas del socio se borran en cascada. Los ejemplares
    que tenía prestados vuelven a la estantería, y tanto éstos como los que
    tenía retenidos (reservas Available) se ofrecen a la siguiente reserva de
    cada libro.

    Raises:
        NotFoundError: Si el socio no existe.
    """
    with atomic(db, f"delete member {member_id}"):
        db_member = get_member(db, member_id, include_deleted=True)
        open_loan_book_ids = list(db.execute(
            select(Loan.book_id).where(Loan.member_id == member_id, Loan.status == LoanStatus.ACTIVE)
        ).scalars().all())
        held_book_ids = list(db.execute(
            select(Reservation.book_id).where(
                Reservation.member_id == member_id,
                Reservation.status == ReservationStatus.AVAILABLE,
            )
        ).scalars().all())
        books = {
            book_id: lock_book(db, book_id, include_deleted=True)
            for book_id in sorted(set(open_loan_book_ids) | set(held_book_ids))
        }

        for book_id in open_loan_book_ids:
            release_copy(db, books[book_id])
        db.delete(db_member)
        db.flush()
        for book in books.values():
            promote_waiting_reservations(db, book)

    logger.info(
        f"Member {member_id} permanently deleted with their loans and reservations; "
        f"{len(open_loan_book_ids)} copies returned, holds released on {len(held_book_ids)} book(s)."
    )
