# src/librogestion/models/loan.py
from sqlalchemy import (Column, Integer, Date, Numeric, ForeignKey, DateTime,
                        func, CheckConstraint)
from sqlalchemy.orm import relationship
from sqlalchemy.types import Enum as SAEnum
from librogestion.db.session import Base
from librogestion.models.enums import LoanStatus

class Loan(Base):
    __tablename__ = "loans"

    id = Column(Integer, primary_key=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    book_id = Column(Integer, ForeignKey("books.id", ondelete="RESTRICT"), nullable=False, index=True)
    loan_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    return_date = Column(Date, nullable=True)
    # Only Active, Returned and Lost are stored; Overdue is derived from due_date on read
    status = Column(
        SAEnum(LoanStatus, name="loan_status", native_enum=False,
               values_callable=lambda enum: [e.value for e in enum]),
        default=LoanStatus.ACTIVE,
        nullable=False,
        index=True,
    )
    fine_amount = Column(Numeric(10, 2), nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=func.now(), onupdate=func.now(), nullable=False)

    member = relationship("Member", back_populates="loans")
    book = relationship("Book", back_populates="loans")

    __table_args__ = (
        CheckConstraint('due_date >= loan_date', name='loan_due_after_loan_check'),
        CheckConstraint('return_date IS NULL OR return_date >= loan_date', name='loan_return_after_loan_check'),
        CheckConstraint('fine_amount >= 0', name='loan_fine_nonnegative_check'),
    )

    def __repr__(self):
        return (f"<Loan(id={self.id}, member_id={self.member_id}, book_id={self.book_id}, "
                f"status={self.status}, due={self.due_date})>")
