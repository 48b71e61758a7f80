"""
Reglas de integridad de libros y préstamos.

Cada regla es una función sobre una instancia ORM que lanza
`IntegrityViolationError` con el nombre de la regla incumplida. El listener
de sesión de `librogestion.integrity.listeners` las ejecuta en cada flush, y
también se pueden llamar directamente antes de modificar una fila.
"""

from decimal import Decimal

from librogestion.core.exceptions import IntegrityViolationError
from librogestion.models.book import Book
from librogestion.models.enums import LoanStatus
from librogestion.models.loan import Loan


def check_book_copies(book: Book) -> None:
    """
    Valida los contadores de ejemplares de un libro: 0 <= disponibles <= total.

    Args:
        book (Book): Libro que se va a escribir.

    Raises:
        IntegrityViolationError: Si algún contador es negativo o los disponibles
            superan el total.
    """
    total = book.total_copies if book.total_copies is not None else 0
    available = book.available_copies if book.available_copies is not None else 0
    if total < 0 or available < 0:
        raise IntegrityViolationError(
            "book_copies_unsigned",
            f"Book {book.isbn}: copy counters cannot be negative (total={total}, available={available})",
        )
    if available > total:
        raise IntegrityViolationError(
            "book_available_le_total",
            f"Book {book.isbn}: available copies ({available}) exceed total copies ({total})",
        )


def check_loan_dates(loan: Loan) -> None:
    """
    Valida las fechas de un préstamo: due_date >= loan_date y, si existe,
    return_date >= loan_date.

    Raises:
        IntegrityViolationError: Si alguna fecha es anterior a la del préstamo.
    """
    if loan.loan_date is None or loan.due_date is None:
        # el NOT NULL lo aplica la base de datos
        return
    if loan.due_date < loan.loan_date:
        raise IntegrityViolationError(
            "loan_due_after_loan",
            f"Loan due date {loan.due_date} is earlier than loan date {loan.loan_date}",
        )
    if loan.return_date is not None and loan.return_date < loan.loan_date:
        raise IntegrityViolationError(
            "loan_return_after_loan",
            f"Loan return date {loan.return_date} is earlier than loan date {loan.loan_date}",
        )


def check_loan_status(loan: Loan) -> None:
    """
    Valida el estado guardado de un préstamo frente al resto de sus campos.

    Overdue se deriva al leer y nunca se guarda. Un préstamo Returned necesita
    fecha de devolución y uno Active no puede tenerla. La multa no es negativa.

    Raises:
        IntegrityViolationError: Si el estado es incoherente.
    """
    status = loan.status
    if status == LoanStatus.OVERDUE:
        raise IntegrityViolationError(
            "loan_overdue_not_stored",
            "Overdue is derived from the due date and cannot be stored",
        )
    if status == LoanStatus.RETURNED and loan.return_date is None:
        raise IntegrityViolationError("loan_returned_has_date", "A returned loan needs a return date")
    if status == LoanStatus.ACTIVE and loan.return_date is not None:
        raise IntegrityViolationError("loan_active_no_return", "An active loan cannot have a return date")
    if loan.fine_amount is not None and Decimal(loan.fine_amount) < 0:
        raise IntegrityViolationError("loan_fine_nonnegative", "Fine amount cannot be negative")


def check_loan(loan: Loan) -> None:
    check_loan_dates(loan)
    check_loan_status(loan)
