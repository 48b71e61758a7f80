# Importing every model registers all mappers before relationships are resolved
from .enums import AccountStatus, LoanStatus, ReservationStatus
from .book import Book, book_authors
from .author import Author
from .genre import Genre
from .publisher import Publisher
from .member import Member
from .loan import Loan
from .reservation import Reservation

__all__ = [
    "AccountStatus",
    "LoanStatus",
    "ReservationStatus",
    "Book",
    "book_authors",
    "Author",
    "Genre",
    "Publisher",
    "Member",
    "Loan",
    "Reservation",
]
