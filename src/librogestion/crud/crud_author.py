"""
Operaciones CRUD para el modelo Author.
El borrado definitivo de un autor elimina sus enlaces con libros (book_authors),
nunca los libros.
"""

from sqlalchemy.orm import Session
from typing import List
import logging

from ..models.author import Author
from ..schemas.catalog import AuthorCreate, AuthorUpdate
from .base import commit, get_or_raise, list_rows, set_deleted_flag, apply_update

logger = logging.getLogger(__name__)


def create_author(db: Session, author: AuthorCreate) -> Author:
    db_author = Author(**author.model_dump())
    db.add(db_author)
    commit(db, f"create author {author.first_name} {author.last_name}")
    db.refresh(db_author)
    logger.info(f"Author {db_author.id} '{db_author.full_name}' created.")
    return db_author


def get_author(db: Session, author_id: int, include_deleted: bool = False) -> Author:
    return get_or_raise(db, Author, author_id, include_deleted)


def get_authors(db: Session, skip: int = 0, limit: int = 100, include_deleted: bool = False) -> List[Author]:
    return list_rows(db, Author, [Author.last_name, Author.first_name], skip, limit, include_deleted)


def update_author(db: Session, author_id: int, author: AuthorUpdate) -> Author:
    db_author = get_author(db, author_id)
    changes = author.model_dump(exclude_unset=True)
    # Required name fields cannot be cleared
    for field in ("first_name", "last_name"):
        if field in changes and changes[field] is None:
            changes.pop(field)
    apply_update(db_author, changes)
    commit(db, f"update author {author_id}")
    db.refresh(db_author)
    return db_author


def soft_delete_author(db: Session, author_id: int) -> Author:
    return set_deleted_flag(db, Author, author_id, True)


def restore_author(db: Session, author_id: int) -> Author:
    return set_deleted_flag(db, Author, author_id, False)


def delete_author(db: Session, author_id: int) -> None:
    db_author = get_author(db, author_id, include_deleted=True)
    db.delete(db_author)
    commit(db, f"delete author {author_id}")
    logger.info(f"Author {author_id} permanently deleted; book links removed.")
