"""
Operaciones CRUD para el modelo Book en la base de datos.
Incluye alta con autores, búsqueda por distintos criterios, obtención por ID o ISBN,
ajuste del inventario de ejemplares y borrado lógico o definitivo.
"""

from sqlalchemy.orm import Session
from sqlalchemy import select, or_, func
from typing import List, Optional
import logging

from ..core.exceptions import ConflictError, IntegrityViolationError, ReferentialBlockError
from ..models.author import Author
from ..models.book import Book
from ..models.enums import LoanStatus, OPEN_RESERVATION_STATUSES
from ..models.genre import Genre
from ..models.loan import Loan
from ..models.publisher import Publisher
from ..models.reservation import Reservation
from ..schemas.catalog import BookCreate, BookUpdate
from ..circulation.inventory import lock_book
from ..circulation.queue import count_held_copies, promote_waiting_reservations
from .base import atomic, commit, get_or_raise, list_rows, set_deleted_flag, find_by, apply_update

logger = logging.getLogger(__name__)


def _check_references(db: Session, genre_id: Optional[int], publisher_id: Optional[int]) -> None:
    if genre_id is not None:
        get_or_raise(db, Genre, genre_id)
    if publisher_id is not None:
        get_or_raise(db, Publisher, publisher_id)


def create_book(db: Session, book: BookCreate) -> Book:
    """
    Da de alta un libro y lo enlaza con sus autores.

    Args:
        db (Session): Sesión de base de datos SQLAlchemy.
        book (BookCreate): Datos validados del libro.

    Returns:
        Book: El libro creado.

    Raises:
        ConflictError: Si ya existe un libro con el mismo ISBN.
        NotFoundError: Si el género, la editorial o algún autor no existen.
    """
    if get_book_by_isbn(db, book.isbn):
        raise ConflictError(f"A book with ISBN {book.isbn} already exists", {"field": "isbn"})
    _check_references(db, book.genre_id, book.publisher_id)
    authors = [get_or_raise(db, Author, author_id) for author_id in book.author_ids]

    db_book = Book(**book.model_dump(exclude={"author_ids"}))
    db_book.authors = authors
    db.add(db_book)
    commit(db, f"create book {book.isbn}")
    db.refresh(db_book)
    logger.info(f"Book {db_book.id} '{db_book.title}' created with {db_book.total_copies} copies.")
    return db_book


def _author_matches(term: str):
    return Book.authors.any(
        or_(Author.first_name.ilike(f"%{term}%"), Author.last_name.ilike(f"%{term}%"))
    )


def _genre_matches(term: str):
    return Book.genre.has(Genre.name.ilike(f"%{term}%"))


def search_books(
    db: Session,
    title: Optional[str] = None,
    author: Optional[str] = None,
    genre: Optional[str] = None,
    query: Optional[str] = None,
    limit: int = 10
) -> List[Book]:
    """
    Busca libros según título, autor, género o un término general.

    Args:
        db (Session): Sesión de base de datos SQLAlchemy.
        title (Optional[str]): Filtra por título (coincidencia parcial, sin distinción de mayúsculas).
        author (Optional[str]): Filtra por nombre o apellido de algún autor.
        genre (Optional[str]): Filtra por nombre del género.
        query (Optional[str]): Término general para buscar en título, autor, género o ISBN.
        limit (int): Número máximo de resultados a devolver.

    Returns:
        List[Book]: Lista de libros no borrados que cumplen los criterios.
    """
    stmt = select(Book).where(Book.is_deleted == False)  # noqa: E712
    if query:
        stmt = stmt.where(or_(
            Book.title.ilike(f"%{query}%"),
            Book.isbn == query,
            _author_matches(query),
            _genre_matches(query),
        ))
    else:
        if title:
            stmt = stmt.where(Book.title.ilike(f"%{title}%"))
        if author:
            stmt = stmt.where(_author_matches(author))
        if genre:
            stmt = stmt.where(_genre_matches(genre))

    stmt = stmt.order_by(Book.title, Book.id).limit(limit)
    return list(db.execute(stmt).scalars().all())


def get_book(db: Session, book_id: int, include_deleted: bool = False) -> Book:
    return get_or_raise(db, Book, book_id, include_deleted)


def get_book_by_isbn(db: Session, isbn: str) -> Optional[Book]:
    """
    Recupera un libro por su ISBN (normalizado, 13 dígitos).

    Returns:
        Optional[Book]: El libro si existe, None si no.
    """
    return find_by(db, Book, Book.isbn == isbn)


def get_books(db: Session, skip: int = 0, limit: int = 100, include_deleted: bool = False) -> List[Book]:
    return list_rows(db, Book, [Book.title, Book.id], skip, limit, include_deleted)


def update_book(db: Session, book_id: int, book: BookUpdate) -> Book:
    """
    Actualiza parcialmente un libro.

    Si cambia `total_copies`, el número de ejemplares prestados se mantiene:
    `available_copies = total_copies - prestados`. No se puede bajar por debajo
    de los ejemplares prestados más los retenidos por reservas Available. Los
    ejemplares nuevos se ofrecen a la cola de reservas.

    Raises:
        ConflictError: Si el nuevo ISBN ya existe.
        IntegrityViolationError: Si total_copies no cubre los ejemplares
            prestados y los retenidos.
    """
    changes = book.model_dump(exclude_unset=True)
    for field in ("title", "isbn", "total_copies"):
        if field in changes and changes[field] is None:
            changes.pop(field)
    new_total = changes.pop("total_copies", None)

    with atomic(db, f"update book {book_id}"):
        db_book = lock_book(db, book_id)
        if "isbn" in changes and changes["isbn"] != db_book.isbn and get_book_by_isbn(db, changes["isbn"]):
            raise ConflictError(f"A book with ISBN {changes['isbn']} already exists", {"field": "isbn"})
        _check_references(db, changes.get("genre_id"), changes.get("publisher_id"))
        apply_update(db_book, changes)

        if new_total is not None and new_total != db_book.total_copies:
            on_loan = db_book.copies_on_loan
            if new_total < on_loan:
                raise IntegrityViolationError(
                    "book_total_covers_loans",
                    f"Book {book_id} has {on_loan} copies on loan; total cannot drop to {new_total}",
                )
            held = count_held_copies(db, book_id)
            if new_total - on_loan < held:
                raise IntegrityViolationError(
                    "book_total_covers_holds",
                    f"Book {book_id} has {on_loan} copies on loan and {held} held for pickup; "
                    f"total cannot drop to {new_total}",
                )
            db_book.total_copies = new_total
            db_book.available_copies = new_total - on_loan
            promote_waiting_reservations(db, db_book)

    db.refresh(db_book)
    logger.info(f"Book {book_id} updated ({db_book.available_copies}/{db_book.total_copies} available).")
    return db_book


def add_author_to_book(db: Session, book_id: int, author_id: int) -> Book:
    db_book = get_book(db, book_id)
    db_author = get_or_raise(db, Author, author_id)
    if db_author not in db_book.authors:
        db_book.authors.append(db_author)
        commit(db, f"link author {author_id} to book {book_id}")
        db.refresh(db_book)
    return db_book


def remove_author_from_book(db: Session, book_id: int, author_id: int) -> Book:
    db_book = get_book(db, book_id, include_deleted=True)
    db_author = get_or_raise(db, Author, author_id, include_deleted=True)
    if db_author in db_book.authors:
        db_book.authors.remove(db_author)
        commit(db, f"unlink author {author_id} from book {book_id}")
        db.refresh(db_book)
    return db_book


def _count_references(db: Session, book_id: int, open_only: bool) -> tuple[int, int]:
    loans = select(func.count(Loan.id)).where(Loan.book_id == book_id)
    reservations = select(func.count(Reservation.id)).where(Reservation.book_id == book_id)
    if open_only:
        loans = loans.where(Loan.status == LoanStatus.ACTIVE)
        reservations = reservations.where(Reservation.status.in_(OPEN_RESERVATION_STATUSES))
    return db.scalar(loans) or 0, db.scalar(reservations) or 0


def _block_if_referenced(db: Session, book_id: int, open_only: bool) -> None:
    loan_count, reservation_count = _count_references(db, book_id, open_only)
    if loan_count or reservation_count:
        logger.warning(
            f"Refusing to delete book {book_id}: {loan_count} loan(s), "
            f"{reservation_count} reservation(s) reference it"
        )
        raise ReferentialBlockError(
            f"Book {book_id} is referenced by {loan_count} loan(s) and {reservation_count} reservation(s)",
            {"entity": "Book", "id": book_id, "loans": loan_count, "reservations": reservation_count},
        )


def soft_delete_book(db: Session, book_id: int) -> Book:
    """Retira un libro del catálogo; se bloquea si tiene préstamos o reservas abiertos."""
    with atomic(db, f"soft delete book {book_id}"):
        db_book = lock_book(db, book_id, include_deleted=True)
        _block_if_referenced(db, book_id, open_only=True)
        db_book.is_deleted = True
    db.refresh(db_book)
    logger.info(f"Book {book_id} soft deleted.")
    return db_book


def restore_book(db: Session, book_id: int) -> Book:
    return set_deleted_flag(db, Book, book_id, False)


def delete_book(db: Session, book_id: int) -> None:
    """
    Borrado definitivo de un libro.

    Se bloquea mientras algún préstamo o reserva (de cualquier estado) lo
    referencie; los enlaces con autores se borran en cascada.

    Raises:
        ReferentialBlockError: Si hay préstamos o reservas del libro.
    """
    with atomic(db, f"delete book {book_id}"):
        db_book = lock_book(db, book_id, include_deleted=True)
        _block_if_referenced(db, book_id, open_only=False)
        db.delete(db_book)
    logger.info(f"Book {book_id} permanently deleted.")
