"""
Esquemas Pydantic para préstamos y reservas.
"""

from pydantic import BaseModel, ConfigDict, model_validator
import datetime
from decimal import Decimal
from typing import Optional

from librogestion.models.enums import LoanStatus, ReservationStatus

class LoanCreate(BaseModel):
    """
    Esquema para crear un préstamo.

    Atributos:
        member_id (int): Socio que se lleva el libro.
        book_id (int): Libro prestado.
        loan_date (Optional[datetime.date]): Fecha del préstamo; hoy si se omite.
        due_date (Optional[datetime.date]): Fecha de devolución; si se omite se
            calcula con DEFAULT_LOAN_DAYS.
    """
    member_id: int
    book_id: int
    loan_date: Optional[datetime.date] = None
    due_date: Optional[datetime.date] = None

    @model_validator(mode="after")
    def check_dates(self):
        if self.loan_date and self.due_date and self.due_date < self.loan_date:
            raise ValueError("due_date cannot be earlier than loan_date")
        return self

class LoanSchema(BaseModel):
    """
    Esquema de salida para un préstamo.

    `status` es el estado efectivo: un préstamo activo con la fecha de
    devolución vencida se muestra como Overdue.
    """
    id: int
    member_id: int
    book_id: int
    loan_date: datetime.date
    due_date: datetime.date
    return_date: Optional[datetime.date] = None
    status: LoanStatus
    fine_amount: Decimal

    model_config = ConfigDict(from_attributes=True)

class ReservationCreate(BaseModel):
    member_id: int
    book_id: int

class ReservationSchema(BaseModel):
    id: int
    member_id: int
    book_id: int
    reservation_date: datetime.datetime
    status: ReservationStatus
    pickup_date: Optional[datetime.date] = None

    model_config = ConfigDict(from_attributes=True)
