# tests/crud/test_crud_book.py
import pytest
import datetime
from pydantic import ValidationError
from sqlalchemy import select, func

from librogestion.core.exceptions import (
    ConflictError,
    IntegrityViolationError,
    NotFoundError,
    ReferentialBlockError,
)
from librogestion.crud import (
    create_book,
    get_book,
    get_book_by_isbn,
    get_books,
    search_books,
    update_book,
    add_author_to_book,
    remove_author_from_book,
    soft_delete_book,
    restore_book,
    delete_book,
)
from librogestion.circulation import create_loan, create_reservation, return_loan
from librogestion.models.book import Book, book_authors
from librogestion.models.enums import ReservationStatus
from librogestion.schemas.catalog import BookCreate, BookUpdate, BookSchema
from librogestion.schemas.circulation import LoanCreate, ReservationCreate
from conftest import make_isbn, TODAY

def test_create_book_round_trip(db_session, test_genre, test_publisher, test_author):
    """Inserting and reading back a book returns identical field values."""
    book_in = BookCreate(
        title="The Left Hand of Darkness",
        isbn="978-0-441-47812-5",
        publication_year=1969,
        total_copies=4,
        genre_id=test_genre.id,
        publisher_id=test_publisher.id,
        cover_image_url="https://example.com/cover.jpg",
        description="Genly Ai on Gethen.",
        author_ids=[test_author.id],
    )
    created = create_book(db_session, book_in)
    db_session.expunge_all()

    fetched = get_book(db_session, created.id)
    schema = BookSchema.model_validate(fetched)
    expected = book_in.model_dump(exclude={"author_ids", "available_copies", "total_copies"})
    assert schema.model_dump(include=set(expected)) == expected
    assert fetched.isbn == "9780441478125"
    assert fetched.total_copies == 4
    assert fetched.available_copies == 4
    assert [a.id for a in fetched.authors] == [test_author.id]

def test_create_book_invalid_isbn():
    with pytest.raises(ValidationError):
        BookCreate(title="Bad ISBN", isbn="9780441478126")
    with pytest.raises(ValidationError):
        BookCreate(title="Short ISBN", isbn="12345")

def test_create_book_missing_title():
    with pytest.raises(ValidationError):
        BookCreate(isbn=make_isbn(1))

def test_create_book_available_above_total_rejected():
    with pytest.raises(ValidationError):
        BookCreate(title="Too many", isbn=make_isbn(1), total_copies=1, available_copies=2)

def test_create_book_duplicate_isbn(db_session, make_book):
    make_book(isbn=make_isbn(50))
    with pytest.raises(ConflictError):
        create_book(db_session, BookCreate(title="Copycat", isbn=make_isbn(50)))
    assert db_session.scalar(select(func.count(Book.id))) == 1

def test_create_book_unknown_genre(db_session):
    with pytest.raises(NotFoundError):
        create_book(db_session, BookCreate(title="Orphan", isbn=make_isbn(51), genre_id=999))

def test_get_book_not_found(db_session):
    with pytest.raises(NotFoundError) as exc_info:
        get_book(db_session, 12345)
    assert exc_info.value.entity == "Book"

def test_get_book_by_isbn(db_session, make_book):
    book = make_book(isbn=make_isbn(52))
    assert get_book_by_isbn(db_session, make_isbn(52)).id == book.id
    assert get_book_by_isbn(db_session, make_isbn(53)) is None

def test_search_books(db_session, make_book, test_genre, test_author):
    dune = make_book(title="Dune", genre_id=test_genre.id, author_ids=[test_author.id])
    make_book(title="Emma")

    assert [b.id for b in search_books(db_session, title="dun")] == [dune.id]
    assert [b.id for b in search_books(db_session, author="guin")] == [dune.id]
    assert [b.id for b in search_books(db_session, genre="fiction")] == [dune.id]
    assert {b.title for b in search_books(db_session, query="m")} == {"Emma"}
    assert len(search_books(db_session)) == 2

def test_update_book_fields(db_session, make_book):
    book = make_book(title="Old Title")
    updated = update_book(db_session, book.id, BookUpdate(title="New Title", publication_year=2001))
    assert updated.title == "New Title"
    assert updated.publication_year == 2001

def test_update_book_duplicate_isbn(db_session, make_book):
    make_book(isbn=make_isbn(60))
    other = make_book(isbn=make_isbn(61))
    with pytest.raises(ConflictError):
        update_book(db_session, other.id, BookUpdate(isbn=make_isbn(60)))
    db_session.refresh(other)
    assert other.isbn == make_isbn(61)

def test_update_total_copies_keeps_loans(db_session, make_book, make_member):
    book = make_book(total_copies=2)
    member = make_member()
    create_loan(db_session, LoanCreate(member_id=member.id, book_id=book.id), today=TODAY)

    updated = update_book(db_session, book.id, BookUpdate(total_copies=5))
    assert updated.total_copies == 5
    assert updated.available_copies == 4

    updated = update_book(db_session, book.id, BookUpdate(total_copies=1))
    assert updated.total_copies == 1
    assert updated.available_copies == 0

def test_update_total_copies_below_on_loan(db_session, make_book, make_member):
    book = make_book(total_copies=2)
    create_loan(db_session, LoanCreate(member_id=make_member().id, book_id=book.id), today=TODAY)
    create_loan(db_session, LoanCreate(member_id=make_member().id, book_id=book.id), today=TODAY)

    with pytest.raises(IntegrityViolationError):
        update_book(db_session, book.id, BookUpdate(total_copies=1))
    db_session.refresh(book)
    assert (book.total_copies, book.available_copies) == (2, 0)

def test_update_total_copies_below_held_copies(db_session, make_book, make_member):
    book = make_book(total_copies=2)
    create_loan(db_session, LoanCreate(member_id=make_member().id, book_id=book.id), today=TODAY)
    holder = make_member()
    reservation = create_reservation(db_session, ReservationCreate(member_id=holder.id, book_id=book.id))
    assert reservation.status == ReservationStatus.AVAILABLE

    with pytest.raises(IntegrityViolationError) as exc_info:
        update_book(db_session, book.id, BookUpdate(total_copies=1))
    assert exc_info.value.rule == "book_total_covers_holds"

    db_session.refresh(book)
    db_session.refresh(reservation)
    assert (book.total_copies, book.available_copies) == (2, 1)
    assert reservation.status == ReservationStatus.AVAILABLE

    loan = create_loan(db_session, LoanCreate(member_id=holder.id, book_id=book.id), today=TODAY)
    assert loan.member_id == holder.id

def test_update_total_copies_serves_waiting_reservation(db_session, make_book, make_member):
    book = make_book(total_copies=1)
    create_loan(db_session, LoanCreate(member_id=make_member().id, book_id=book.id), today=TODAY)
    reservation = create_reservation(db_session, ReservationCreate(member_id=make_member().id, book_id=book.id))
    assert reservation.status == ReservationStatus.PENDING

    update_book(db_session, book.id, BookUpdate(total_copies=2))
    db_session.refresh(reservation)
    assert reservation.status == ReservationStatus.AVAILABLE

def test_author_links(db_session, make_book, test_author):
    book = make_book()
    add_author_to_book(db_session, book.id, test_author.id)
    add_author_to_book(db_session, book.id, test_author.id)
    assert [a.id for a in book.authors] == [test_author.id]

    remove_author_from_book(db_session, book.id, test_author.id)
    assert book.authors == []

def test_soft_delete_and_restore_book(db_session, make_book):
    book = make_book()
    soft_delete_book(db_session, book.id)

    with pytest.raises(NotFoundError):
        get_book(db_session, book.id)
    assert get_book(db_session, book.id, include_deleted=True).is_deleted is True
    assert get_books(db_session) == []
    assert len(get_books(db_session, include_deleted=True)) == 1

    restore_book(db_session, book.id)
    assert get_book(db_session, book.id).is_deleted is False

def test_soft_delete_book_with_active_loan_blocked(db_session, make_book, make_member):
    book = make_book()
    create_loan(db_session, LoanCreate(member_id=make_member().id, book_id=book.id), today=TODAY)
    with pytest.raises(ReferentialBlockError):
        soft_delete_book(db_session, book.id)

def test_soft_delete_book_with_pending_reservation_blocked(db_session, make_book, make_member):
    book = make_book()
    create_loan(db_session, LoanCreate(member_id=make_member().id, book_id=book.id), today=TODAY)
    reservation = create_reservation(db_session, ReservationCreate(member_id=make_member().id, book_id=book.id))
    assert reservation.status == ReservationStatus.PENDING

    with pytest.raises(ReferentialBlockError) as exc_info:
        soft_delete_book(db_session, book.id)
    assert exc_info.value.details["reservations"] == 1
    assert get_book(db_session, book.id).is_deleted is False

def test_delete_book_with_active_loan_fails(db_session, make_book, make_member):
    book = make_book()
    create_loan(db_session, LoanCreate(member_id=make_member().id, book_id=book.id), today=TODAY)

    with pytest.raises(ReferentialBlockError) as exc_info:
        delete_book(db_session, book.id)
    assert exc_info.value.details["loans"] == 1
    assert get_book(db_session, book.id) is not None

def test_delete_book_with_returned_loan_still_blocked(db_session, make_book, make_member):
    book = make_book()
    loan = create_loan(db_session, LoanCreate(member_id=make_member().id, book_id=book.id), today=TODAY)
    return_loan(db_session, loan.id, return_date=TODAY)

    with pytest.raises(ReferentialBlockError):
        delete_book(db_session, book.id)

def test_delete_book_with_reservation_blocked(db_session, make_book, make_member):
    book = make_book()
    create_reservation(db_session, ReservationCreate(member_id=make_member().id, book_id=book.id))
    with pytest.raises(ReferentialBlockError):
        delete_book(db_session, book.id)

def test_delete_unreferenced_book_cascades_author_links(db_session, make_book, test_author):
    book = make_book(author_ids=[test_author.id])
    delete_book(db_session, book.id)

    assert db_session.scalar(select(func.count(Book.id))) == 0
    assert db_session.scalar(select(func.count()).select_from(book_authors)) == 0
