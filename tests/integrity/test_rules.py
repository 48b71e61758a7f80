# tests/integrity/test_rules.py
import pytest
import datetime
from decimal import Decimal

from librogestion.core.exceptions import IntegrityViolationError
from librogestion.integrity import check_book_copies, check_loan_dates, check_loan_status
from librogestion.models.book import Book
from librogestion.models.enums import LoanStatus
from librogestion.models.loan import Loan

D = datetime.date

def _loan(**overrides):
    fields = dict(member_id=1, book_id=1, loan_date=D(2024, 3, 1), due_date=D(2024, 3, 15),
                  return_date=None, status=LoanStatus.ACTIVE, fine_amount=Decimal("0"))
    fields.update(overrides)
    return Loan(**fields)

@pytest.mark.parametrize("total, available", [(0, 0), (3, 0), (3, 3)])
def test_book_copies_valid(total, available):
    check_book_copies(Book(isbn="9780345391803", total_copies=total, available_copies=available))

@pytest.mark.parametrize("total, available, rule", [
    (2, 3, "book_available_le_total"),
    (2, -1, "book_copies_unsigned"),
    (-1, 0, "book_copies_unsigned"),
])
def test_book_copies_invalid(total, available, rule):
    with pytest.raises(IntegrityViolationError) as exc_info:
        check_book_copies(Book(isbn="9780345391803", total_copies=total, available_copies=available))
    assert exc_info.value.rule == rule

def test_loan_dates_same_day_is_valid():
    check_loan_dates(_loan(due_date=D(2024, 3, 1)))

def test_loan_due_before_loan():
    with pytest.raises(IntegrityViolationError) as exc_info:
        check_loan_dates(_loan(due_date=D(2024, 2, 28)))
    assert exc_info.value.rule == "loan_due_after_loan"

def test_loan_return_before_loan():
    with pytest.raises(IntegrityViolationError) as exc_info:
        check_loan_dates(_loan(status=LoanStatus.RETURNED, return_date=D(2024, 2, 1)))
    assert exc_info.value.rule == "loan_return_after_loan"

def test_returned_loan_needs_return_date():
    with pytest.raises(IntegrityViolationError) as exc_info:
        check_loan_status(_loan(status=LoanStatus.RETURNED))
    assert exc_info.value.rule == "loan_returned_has_date"

def test_active_loan_cannot_have_return_date():
    with pytest.raises(IntegrityViolationError) as exc_info:
        check_loan_status(_loan(return_date=D(2024, 3, 5)))
    assert exc_info.value.rule == "loan_active_no_return"

def test_negative_fine_rejected():
    with pytest.raises(IntegrityViolationError) as exc_info:
        check_loan_status(_loan(fine_amount=Decimal("-1.00")))
    assert exc_info.value.rule == "loan_fine_nonnegative"

def test_lost_loan_without_return_date_is_valid():
    check_loan_status(_loan(status=LoanStatus.LOST, fine_amount=Decimal("25.00")))

def test_error_payload():
    with pytest.raises(IntegrityViolationError) as exc_info:
        check_loan_status(_loan(status=LoanStatus.OVERDUE))
    payload = exc_info.value.to_dict()
    assert payload["error"] == "INTEGRITY_VIOLATION"
    assert payload["details"] == {"rule": "loan_overdue_not_stored"}
