from enum import Enum


class AccountStatus(str, Enum):
    ACTIVE = "Active"
    SUSPENDED = "Suspended"
    INACTIVE = "Inactive"


class LoanStatus(str, Enum):
    ACTIVE = "Active"
    # Derived on read from the due date, never written to the loans table
    OVERDUE = "Overdue"
    RETURNED = "Returned"
    LOST = "Lost"


class ReservationStatus(str, Enum):
    PENDING = "Pending"
    AVAILABLE = "Available"
    CANCELLED = "Cancelled"
    COMPLETED = "Completed"


OPEN_RESERVATION_STATUSES = (ReservationStatus.PENDING, ReservationStatus.AVAILABLE)
