from .rules import check_book_copies, check_loan_dates, check_loan_status, check_loan
from .listeners import enforce_integrity_rules

__all__ = [
    "check_book_copies",
    "check_loan_dates",
    "check_loan_status",
    "check_loan",
    "enforce_integrity_rules",
]
