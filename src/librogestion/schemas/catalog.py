"""
Esquemas Pydantic para las entidades del catálogo (Author, Genre, Publisher, Book).
Define los modelos de entrada y salida para validación y serialización.

La validación ocurre al construir el esquema, antes de abrir ninguna transacción.
"""

from pydantic import BaseModel, Field, ConfigDict, field_validator, model_validator
import datetime
from typing import List, Optional


def normalize_isbn(value: str) -> str:
    """
    Normaliza y valida un ISBN-13.

    Se eliminan guiones y espacios; el resultado debe tener 13 dígitos y un
    dígito de control correcto.

    Args:
        value (str): ISBN tal como lo introduce el usuario.

    Returns:
        str: ISBN de 13 dígitos.

    Raises:
        ValueError: Si el ISBN no es un ISBN-13 válido.
    """
    digits = value.replace("-", "").replace(" ", "")
    if len(digits) != 13 or not digits.isdigit():
        raise ValueError("ISBN must contain exactly 13 digits")
    total = sum(int(d) * (1 if i % 2 == 0 else 3) for i, d in enumerate(digits[:12]))
    if (10 - total % 10) % 10 != int(digits[12]):
        raise ValueError("ISBN check digit is invalid")
    return digits


# --- Author ---

class AuthorBase(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=255)
    last_name: str = Field(..., min_length=1, max_length=255)
    biography: Optional[str] = None

class AuthorCreate(AuthorBase):
    pass

class AuthorUpdate(BaseModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=255)
    last_name: Optional[str] = Field(None, min_length=1, max_length=255)
    biography: Optional[str] = None

class AuthorSchema(AuthorBase):
    id: int
    is_deleted: bool

    model_config = ConfigDict(from_attributes=True)


# --- Genre ---

class GenreCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)

class GenreUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)

class GenreSchema(GenreCreate):
    id: int
    is_deleted: bool

    model_config = ConfigDict(from_attributes=True)


# --- Publisher ---

class PublisherCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    address: Optional[str] = Field(None, max_length=255)

class PublisherUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    address: Optional[str] = Field(None, max_length=255)

class PublisherSchema(PublisherCreate):
    id: int
    is_deleted: bool

    model_config = ConfigDict(from_attributes=True)


# --- Book ---

class BookBase(BaseModel):
    """
    Campos comunes de un libro.

    Atributos:
        title (str): Título del libro.
        isbn (str): ISBN-13; se aceptan guiones y espacios.
        publication_year (Optional[int]): Año de publicación.
        genre_id (Optional[int]): ID del género.
        publisher_id (Optional[int]): ID de la editorial.
        cover_image_url (Optional[str]): URL de la portada.
        description (Optional[str]): Sinopsis.
    """
    title: str = Field(..., min_length=1, max_length=255)
    isbn: str
    publication_year: Optional[int] = Field(None, ge=0, le=9999)
    genre_id: Optional[int] = None
    publisher_id: Optional[int] = None
    cover_image_url: Optional[str] = Field(None, max_length=2048)
    description: Optional[str] = None

    @field_validator("isbn")
    @classmethod
    def validate_isbn(cls, value: str) -> str:
        return normalize_isbn(value)

class BookCreate(BookBase):
    """
    Esquema para dar de alta un libro.

    Si no se indica `available_copies`, todos los ejemplares están disponibles.
    """
    total_copies: int = Field(1, ge=0)
    available_copies: Optional[int] = Field(None, ge=0)
    author_ids: List[int] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_copies(self):
        if self.available_copies is None:
            self.available_copies = self.total_copies
        if self.available_copies > self.total_copies:
            raise ValueError("available_copies cannot exceed total_copies")
        return self

class BookUpdate(BaseModel):
    """Actualización parcial; solo se aplican los campos enviados."""
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    isbn: Optional[str] = None
    publication_year: Optional[int] = Field(None, ge=0, le=9999)
    genre_id: Optional[int] = None
    publisher_id: Optional[int] = None
    cover_image_url: Optional[str] = Field(None, max_length=2048)
    description: Optional[str] = None
    total_copies: Optional[int] = Field(None, ge=0)

    @field_validator("isbn")
    @classmethod
    def validate_isbn(cls, value: Optional[str]) -> Optional[str]:
        return normalize_isbn(value) if value is not None else None

class BookSchema(BookBase):
    id: int
    total_copies: int
    available_copies: int
    is_deleted: bool
    created_at: datetime.datetime

    model_config = ConfigDict(from_attributes=True)
