"""
Operaciones CRUD para el modelo Genre en la base de datos.
El nombre es único; el borrado definitivo se bloquea mientras algún libro
referencie el género.
"""

from sqlalchemy.orm import Session
from sqlalchemy import func, select
from typing import List, Optional
import logging

from ..core.exceptions import ConflictError, ReferentialBlockError
from ..models.book import Book
from ..models.genre import Genre
from ..schemas.catalog import GenreCreate, GenreUpdate
from .base import commit, get_or_raise, list_rows, set_deleted_flag, find_by, apply_update

logger = logging.getLogger(__name__)


def get_genre_by_name(db: Session, name: str) -> Optional[Genre]:
    return find_by(db, Genre, Genre.name == name)


def create_genre(db: Session, genre: GenreCreate) -> Genre:
    if get_genre_by_name(db, genre.name):
        raise ConflictError(f"Genre '{genre.name}' already exists", {"field": "name"})
    db_genre = Genre(name=genre.name)
    db.add(db_genre)
    commit(db, f"create genre '{genre.name}'")
    db.refresh(db_genre)
    logger.info(f"Genre {db_genre.id} '{db_genre.name}' created.")
    return db_genre


def get_genre(db: Session, genre_id: int, include_deleted: bool = False) -> Genre:
    return get_or_raise(db, Genre, genre_id, include_deleted)


def get_genres(db: Session, skip: int = 0, limit: int = 100, include_deleted: bool = False) -> List[Genre]:
    return list_rows(db, Genre, [Genre.name], skip, limit, include_deleted)


def update_genre(db: Session, genre_id: int, genre: GenreUpdate) -> Genre:
    db_genre = get_genre(db, genre_id)
    changes = genre.model_dump(exclude_unset=True, exclude_none=True)
    if "name" in changes and changes["name"] != db_genre.name and get_genre_by_name(db, changes["name"]):
        raise ConflictError(f"Genre '{changes['name']}' already exists", {"field": "name"})
    apply_update(db_genre, changes)
    commit(db, f"update genre {genre_id}")
    db.refresh(db_genre)
    return db_genre


def soft_delete_genre(db: Session, genre_id: int) -> Genre:
    return set_deleted_flag(db, Genre, genre_id, True)


def restore_genre(db: Session, genre_id: int) -> Genre:
    return set_deleted_flag(db, Genre, genre_id, False)


def delete_genre(db: Session, genre_id: int) -> None:
    """Borrado definitivo; se bloquea mientras haya libros de este género."""
    db_genre = get_genre(db, genre_id, include_deleted=True)
    book_count = db.scalar(select(func.count(Book.id)).where(Book.genre_id == genre_id))
    if book_count:
        logger.warning(f"Refusing to delete genre {genre_id}: {book_count} book(s) reference it")
        raise ReferentialBlockError(
            f"Genre {genre_id} is referenced by {book_count} book(s)",
            {"entity": "Genre", "id": genre_id, "books": book_count},
        )
    db.delete(db_genre)
    commit(db, f"delete genre {genre_id}")
    logger.info(f"Genre {genre_id} permanently deleted.")
