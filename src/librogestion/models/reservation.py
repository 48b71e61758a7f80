# src/librogestion/models/reservation.py
from sqlalchemy import Column, Integer, Date, ForeignKey, DateTime, func
from sqlalchemy.orm import relationship
from sqlalchemy.types import Enum as SAEnum
from librogestion.db.session import Base
from librogestion.models.enums import ReservationStatus

class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(Integer, primary_key=True)
    member_id = Column(Integer, ForeignKey("members.id", ondelete="CASCADE"), nullable=False, index=True)
    book_id = Column(Integer, ForeignKey("books.id", ondelete="RESTRICT"), nullable=False, index=True)
    # Queue position: the oldest Pending reservation is served first
    reservation_date = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    status = Column(
        SAEnum(ReservationStatus, name="reservation_status", native_enum=False,
               values_callable=lambda enum: [e.value for e in enum]),
        default=ReservationStatus.PENDING,
        nullable=False,
        index=True,
    )
    # Last day to pick up the held copy, set when the reservation becomes Available
    pickup_date = Column(Date, nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=func.now(), onupdate=func.now(), nullable=False)

    member = relationship("Member", back_populates="reservations")
    book = relationship("Book", back_populates="reservations")

    def __repr__(self):
        return (f"<Reservation(id={self.id}, member_id={self.member_id}, book_id={self.book_id}, "
                f"status={self.status})>")
