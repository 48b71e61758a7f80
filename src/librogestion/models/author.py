"""
Modelo ORM para la entidad Author en la base de datos de LibroGestion.
Define los campos principales de un autor y su relación muchos-a-muchos con los libros.
"""

from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, func, false
from sqlalchemy.orm import relationship
from librogestion.db.session import Base
from librogestion.models.book import book_authors

class Author(Base):
    """
    Representa un autor del catálogo.

    Atributos:
        id (int): Identificador primario del autor.
        first_name (str): Nombre del autor.
        last_name (str): Apellido del autor (indexado para búsquedas).
        biography (str): Biografía opcional.
        is_deleted (bool): Marca de borrado lógico.
        books (List[Book]): Libros escritos por el autor.
    """
    __tablename__ = "authors"

    id = Column(Integer, primary_key=True)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False, index=True)
    biography = Column(Text, nullable=True)
    is_deleted = Column(Boolean, default=False, nullable=False, server_default=false(), index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=func.now(), onupdate=func.now(), nullable=False)

    # Deleting an author removes its book_authors rows, never the books
    books = relationship("Book", secondary=book_authors, back_populates="authors")

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    def __repr__(self) -> str:
        return f"<Author(id={self.id}, name='{self.full_name}')>"
