from sqlalchemy import Column, Integer, String, Boolean, DateTime, func, false
from sqlalchemy.orm import relationship
from librogestion.db.session import Base

class Genre(Base):
    __tablename__ = "genres"

    id = Column(Integer, primary_key=True)
    name = Column(String(255), unique=True, index=True, nullable=False)
    is_deleted = Column(Boolean, default=False, nullable=False, server_default=false(), index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=func.now(), onupdate=func.now(), nullable=False)

    # passive_deletes="all": the books.genre_id FK restricts the delete instead of nulling it
    books = relationship("Book", back_populates="genre", passive_deletes="all")

    def __repr__(self):
        return f"<Genre(id={self.id}, name='{self.name}')>"
