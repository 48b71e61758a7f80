"""
Operaciones CRUD para el modelo Publisher en la base de datos.
Incluye alta, búsqueda por nombre, actualización y borrado lógico o definitivo;
este último se bloquea mientras algún libro referencie la editorial.
"""

from sqlalchemy.orm import Session
from sqlalchemy import func, select
from typing import List, Optional
import logging

from ..core.exceptions import ConflictError, ReferentialBlockError
from ..models.book import Book
from ..models.publisher import Publisher
from ..schemas.catalog import PublisherCreate, PublisherUpdate
from .base import commit, get_or_raise, list_rows, set_deleted_flag, find_by, apply_update

logger = logging.getLogger(__name__)


def get_publisher_by_name(db: Session, name: str) -> Optional[Publisher]:
    return find_by(db, Publisher, Publisher.name == name)


def create_publisher(db: Session, publisher: PublisherCreate) -> Publisher:
    if get_publisher_by_name(db, publisher.name):
        raise ConflictError(f"Publisher '{publisher.name}' already exists", {"field": "name"})
    db_publisher = Publisher(**publisher.model_dump())
    db.add(db_publisher)
    commit(db, f"create publisher '{publisher.name}'")
    db.refresh(db_publisher)
    logger.info(f"Publisher {db_publisher.id} '{db_publisher.name}' created.")
    return db_publisher


def get_publisher(db: Session, publisher_id: int, include_deleted: bool = False) -> Publisher:
    return get_or_raise(db, Publisher, publisher_id, include_deleted)


def get_publishers(db: Session, skip: int = 0, limit: int = 100, include_deleted: bool = False) -> List[Publisher]:
    return list_rows(db, Publisher, [Publisher.name], skip, limit, include_deleted)


def update_publisher(db: Session, publisher_id: int, publisher: PublisherUpdate) -> Publisher:
    db_publisher = get_publisher(db, publisher_id)
    changes = publisher.model_dump(exclude_unset=True)
    new_name = changes.get("name")
    if new_name is None:
        changes.pop("name", None)
    elif new_name != db_publisher.name and get_publisher_by_name(db, new_name):
        raise ConflictError(f"Publisher '{new_name}' already exists", {"field": "name"})
    apply_update(db_publisher, changes)
    commit(db, f"update publisher {publisher_id}")
    db.refresh(db_publisher)
    return db_publisher


def soft_delete_publisher(db: Session, publisher_id: int) -> Publisher:
    return set_deleted_flag(db, Publisher, publisher_id, True)


def restore_publisher(db: Session, publisher_id: int) -> Publisher:
    return set_deleted_flag(db, Publisher, publisher_id, False)


def delete_publisher(db: Session, publisher_id: int) -> None:
    """Borrado definitivo; se bloquea mientras haya libros de esta editorial."""
    db_publisher = get_publisher(db, publisher_id, include_deleted=True)
    book_count = db.scalar(select(func.count(Book.id)).where(Book.publisher_id == publisher_id))
    if book_count:
        logger.warning(f"Refusing to delete publisher {publisher_id}: {book_count} book(s) reference it")
        raise ReferentialBlockError(
            f"Publisher {publisher_id} is referenced by {book_count} book(s)",
            {"entity": "Publisher", "id": publisher_id, "books": book_count},
        )
    db.delete(db_publisher)
    commit(db, f"delete publisher {publisher_id}")
    logger.info(f"Publisher {publisher_id} permanently deleted.")
