# tests/circulation/test_reservations.py
import pytest
import datetime

from librogestion.core.exceptions import ConflictError, InvalidTransitionError, MemberNotActiveError
from librogestion.circulation import (
    create_loan,
    return_loan,
    create_reservation,
    cancel_reservation,
    expire_reservation_holds,
    get_reservation,
    get_reservations_for_book,
    get_reservations_for_member,
    count_held_copies,
)
from librogestion.crud import update_member_status
from librogestion.models.enums import AccountStatus, ReservationStatus
from librogestion.schemas.circulation import LoanCreate, ReservationCreate, ReservationSchema
from conftest import TODAY

def _reserve(db_session, member, book):
    return create_reservation(db_session, ReservationCreate(member_id=member.id, book_id=book.id), today=TODAY)

@pytest.fixture
def lent_out_book(db_session, make_book, make_member):
    """A single-copy book that is currently on loan."""
    book = make_book(total_copies=1)
    loan = create_loan(db_session, LoanCreate(member_id=make_member().id, book_id=book.id), today=TODAY)
    return book, loan

def test_reservation_waits_when_no_copy(db_session, make_member, lent_out_book):
    book, _ = lent_out_book
    reservation = _reserve(db_session, make_member(), book)

    assert reservation.status == ReservationStatus.PENDING
    assert reservation.pickup_date is None
    assert reservation.reservation_date is not None

def test_reservation_available_immediately(db_session, make_book, make_member):
    book = make_book(total_copies=1)
    reservation = _reserve(db_session, make_member(), book)

    assert reservation.status == ReservationStatus.AVAILABLE
    assert reservation.pickup_date == TODAY + datetime.timedelta(days=3)
    assert count_held_copies(db_session, book.id) == 1

def test_duplicate_open_reservation_conflict(db_session, make_member, lent_out_book):
    book, _ = lent_out_book
    member = make_member()
    _reserve(db_session, member, book)

    with pytest.raises(ConflictError):
        _reserve(db_session, member, book)
    assert len(get_reservations_for_member(db_session, member.id)) == 1

def test_reserve_again_after_cancel(db_session, make_member, lent_out_book):
    book, _ = lent_out_book
    member = make_member()
    first = _reserve(db_session, member, book)
    cancel_reservation(db_session, first.id, today=TODAY)

    second = _reserve(db_session, member, book)
    assert second.id != first.id
    assert [r.id for r in get_reservations_for_member(db_session, member.id, open_only=True)] == [second.id]

def test_suspended_member_cannot_reserve(db_session, make_book, make_member):
    member = make_member()
    update_member_status(db_session, member.id, AccountStatus.SUSPENDED)
    with pytest.raises(MemberNotActiveError):
        _reserve(db_session, member, make_book())

def test_queue_order(db_session, make_member, lent_out_book):
    book, loan = lent_out_book
    members = [make_member() for _ in range(3)]
    reservations = [_reserve(db_session, m, book) for m in members]

    queue = get_reservations_for_book(db_session, book.id, status=ReservationStatus.PENDING)
    assert [r.id for r in queue] == [r.id for r in reservations]

    return_loan(db_session, loan.id, return_date=TODAY)
    available = get_reservations_for_book(db_session, book.id, status=ReservationStatus.AVAILABLE)
    assert [r.id for r in available] == [reservations[0].id]

def test_cancel_pending_reservation(db_session, make_member, lent_out_book):
    book, _ = lent_out_book
    reservation = _reserve(db_session, make_member(), book)

    cancelled = cancel_reservation(db_session, reservation.id, today=TODAY)
    assert cancelled.status == ReservationStatus.CANCELLED

    with pytest.raises(InvalidTransitionError):
        cancel_reservation(db_session, reservation.id, today=TODAY)

def test_cancel_available_passes_hold_on(db_session, make_book, make_member):
    book = make_book(total_copies=1)
    held = _reserve(db_session, make_member(), book)
    waiting = _reserve(db_session, make_member(), book)
    assert waiting.status == ReservationStatus.PENDING

    cancel_reservation(db_session, held.id, today=TODAY)

    db_session.refresh(waiting)
    assert waiting.status == ReservationStatus.AVAILABLE
    assert count_held_copies(db_session, book.id) == 1

def test_completed_reservation_cannot_be_cancelled(db_session, make_book, make_member):
    book = make_book(total_copies=1)
    member = make_member()
    reservation = _reserve(db_session, member, book)
    create_loan(db_session, LoanCreate(member_id=member.id, book_id=book.id), today=TODAY)

    assert get_reservation(db_session, reservation.id).status == ReservationStatus.COMPLETED
    with pytest.raises(InvalidTransitionError):
        cancel_reservation(db_session, reservation.id, today=TODAY)

def test_expire_reservation_holds(db_session, make_book, make_member):
    book = make_book(total_copies=1)
    held = _reserve(db_session, make_member(), book)
    waiting = _reserve(db_session, make_member(), book)

    # Still inside the pickup window
    assert expire_reservation_holds(db_session, today=held.pickup_date) == []

    later = held.pickup_date + datetime.timedelta(days=1)
    expired = expire_reservation_holds(db_session, today=later)

    assert [r.id for r in expired] == [held.id]
    db_session.refresh(held)
    db_session.refresh(waiting)
    assert held.status == ReservationStatus.CANCELLED
    assert waiting.status == ReservationStatus.AVAILABLE
    assert waiting.pickup_date == later + datetime.timedelta(days=3)

def test_reservation_schema(db_session, make_book, make_member):
    reservation = _reserve(db_session, make_member(), make_book())
    schema = ReservationSchema.model_validate(reservation)
    assert schema.status == ReservationStatus.AVAILABLE
    assert schema.book_id == reservation.book_id
