from sqlalchemy import Column, Integer, String, Boolean, DateTime, func, false
from sqlalchemy.orm import relationship
from librogestion.db.session import Base

class Publisher(Base):
    __tablename__ = "publishers"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), unique=True, index=True, nullable=False)
    address = Column(String(255), nullable=True)
    is_deleted = Column(Boolean, default=False, nullable=False, server_default=false(), index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=func.now(), onupdate=func.now(), nullable=False)

    books = relationship("Book", back_populates="publisher", passive_deletes="all")

    def __repr__(self):
        return f"<Publisher(id={self.id}, name='{self.name}')>"
