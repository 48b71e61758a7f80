"""
Modelo ORM para la entidad Book en la base de datos de LibroGestion.
Define los campos de un libro, su inventario de ejemplares y sus relaciones
con autores, género, editorial, préstamos y reservas.
"""

from sqlalchemy import (Column, Integer, SmallInteger, String, Text, Boolean, DateTime,
                        ForeignKey, Table, CheckConstraint, func, false)
from sqlalchemy.orm import relationship
from librogestion.db.session import Base

# Tabla de unión Book <-> Author; borrar cualquiera de los dos lados borra el enlace
book_authors = Table(
    "book_authors",
    Base.metadata,
    Column("book_id", Integer, ForeignKey("books.id", ondelete="CASCADE"), primary_key=True),
    Column("author_id", Integer, ForeignKey("authors.id", ondelete="CASCADE"), primary_key=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now(), nullable=False),
)

class Book(Base):
    """
    Representa un título del catálogo y su inventario de ejemplares.

    Atributos:
        id (int): Identificador primario del libro.
        title (str): Título del libro.
        isbn (str): ISBN-13 normalizado (solo dígitos), único.
        publication_year (int): Año de publicación.
        total_copies (int): Número de ejemplares que posee la biblioteca.
        available_copies (int): Ejemplares que no están prestados.
        genre_id (int): Género del libro.
        publisher_id (int): Editorial del libro.
        cover_image_url (str): URL de la imagen de portada.
        description (str): Descripción o sinopsis.
        is_deleted (bool): Marca de borrado lógico.
        authors (List[Author]): Autores del libro.
        loans (List[Loan]): Préstamos del libro.
        reservations (List[Reservation]): Reservas del libro.
    """
    __tablename__ = "books"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), index=True, nullable=False)
    isbn = Column(String(13), unique=True, index=True, nullable=False)
    publication_year = Column(SmallInteger, nullable=True)
    total_copies = Column(Integer, nullable=False, default=1)
    available_copies = Column(Integer, nullable=False, default=1)
    genre_id = Column(Integer, ForeignKey("genres.id", ondelete="RESTRICT"), nullable=True, index=True)
    publisher_id = Column(Integer, ForeignKey("publishers.id", ondelete="RESTRICT"), nullable=True, index=True)
    cover_image_url = Column(String(2048), nullable=True)
    description = Column(Text, nullable=True)
    is_deleted = Column(Boolean, default=False, nullable=False, server_default=false(), index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), default=func.now(), onupdate=func.now(), nullable=False)

    authors = relationship("Author", secondary=book_authors, back_populates="books")
    genre = relationship("Genre", back_populates="books")
    publisher = relationship("Publisher", back_populates="books")

    # Loans and reservations restrict the delete of a book; the ORM must not null their book_id
    loans = relationship("Loan", back_populates="book", passive_deletes="all")
    reservations = relationship("Reservation", back_populates="book", passive_deletes="all")

    __table_args__ = (
        CheckConstraint('total_copies >= 0', name='book_total_copies_check'),
        CheckConstraint('available_copies >= 0', name='book_available_copies_check'),
        CheckConstraint('available_copies <= total_copies', name='book_available_le_total_check'),
    )

    @property
    def copies_on_loan(self) -> int:
        return self.total_copies - self.available_copies

    def __repr__(self) -> str:
        """
        Representación legible del objeto Book para depuración.

        Returns:
            str: Cadena representando el libro.
        """
        return (f"<Book(id={self.id}, title='{self.title[:30]}...', isbn='{self.isbn}', "
                f"available={self.available_copies}/{self.total_copies})>")
