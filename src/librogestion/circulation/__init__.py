from .inventory import lock_book, take_copy, release_copy, write_off_copy
from .queue import count_held_copies, promote_waiting_reservations
from .status import (
    derive_loan_status,
    loan_status,
    is_overdue,
    calculate_late_fine,
    accrued_fine,
    loan_to_schema,
)
from .loans import (
    create_loan,
    return_loan,
    mark_loan_lost,
    renew_loan,
    get_loan,
    get_loans_for_member,
    get_loans_for_book,
    get_overdue_loans,
)
from .reservations import (
    create_reservation,
    cancel_reservation,
    expire_reservation_holds,
    get_reservation,
    get_reservations_for_book,
    get_reservations_for_member,
)

__all__ = [
    "lock_book",
    "take_copy",
    "release_copy",
    "write_off_copy",
    "count_held_copies",
    "promote_waiting_reservations",
    "derive_loan_status",
    "loan_status",
    "is_overdue",
    "calculate_late_fine",
    "accrued_fine",
    "loan_to_schema",
    "create_loan",
    "return_loan",
    "mark_loan_lost",
    "renew_loan",
    "get_loan",
    "get_loans_for_member",
    "get_loans_for_book",
    "get_overdue_loans",
    "create_reservation",
    "cancel_reservation",
    "expire_reservation_holds",
    "get_reservation",
    "get_reservations_for_book",
    "get_reservations_for_member",
]
