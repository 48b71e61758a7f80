"""
Estado efectivo de un préstamo y cálculo de multas.

Overdue no se guarda en la base de datos: es una función pura de la fecha
actual y de los campos del préstamo, así que nunca se desincroniza.
"""

import datetime
from decimal import Decimal
from typing import Optional

from librogestion.core.config import settings
from librogestion.models.enums import LoanStatus
from librogestion.models.loan import Loan
from librogestion.schemas.circulation import LoanSchema


def derive_loan_status(status: LoanStatus, due_date: datetime.date,
                       return_date: Optional[datetime.date], today: datetime.date) -> LoanStatus:
    """
    Calcula el estado efectivo de un préstamo.

    Args:
        status (LoanStatus): Estado guardado (Active, Returned o Lost).
        due_date (datetime.date): Fecha límite de devolución.
        return_date (Optional[datetime.date]): Fecha de devolución, si la hay.
        today (datetime.date): Fecha de referencia.

    Returns:
        LoanStatus: Overdue si el préstamo sigue activo, sin devolver y vencido;
        el estado guardado en cualquier otro caso.
    """
    if status == LoanStatus.ACTIVE and return_date is None and due_date < today:
        return LoanStatus.OVERDUE
    return LoanStatus(status)


def loan_status(loan: Loan, today: Optional[datetime.date] = None) -> LoanStatus:
    return derive_loan_status(loan.status, loan.due_date, loan.return_date, today or datetime.date.today())


def is_overdue(loan: Loan, today: Optional[datetime.date] = None) -> bool:
    return loan_status(loan, today) == LoanStatus.OVERDUE


def calculate_late_fine(due_date: datetime.date, returned_on: datetime.date,
                        fine_per_day: Optional[Decimal] = None) -> Decimal:
    """
    Multa por retraso: días de retraso por la tarifa diaria, nunca negativa.

    Returns:
        Decimal: Importe con dos decimales.
    """
    rate = settings.FINE_PER_DAY if fine_per_day is None else fine_per_day
    days_late = max((returned_on - due_date).days, 0)
    return (Decimal(days_late) * Decimal(rate)).quantize(Decimal("0.01"))


def accrued_fine(loan: Loan, today: Optional[datetime.date] = None) -> Decimal:
    """
    Multa acumulada hasta hoy de un préstamo activo, o la multa ya fijada si está cerrado.
    """
    if loan.status == LoanStatus.ACTIVE:
        return calculate_late_fine(loan.due_date, today or datetime.date.today())
    return Decimal(loan.fine_amount or 0).quantize(Decimal("0.01"))


def loan_to_schema(loan: Loan, today: Optional[datetime.date] = None) -> LoanSchema:
    """Serializa un préstamo con su estado efectivo (Overdue derivado)."""
    schema = LoanSchema.model_validate(loan)
    schema.status = loan_status(loan, today)
    return schema
