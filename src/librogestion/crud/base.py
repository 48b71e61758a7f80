"""
Utilidades compartidas por las operaciones CRUD: confirmación de transacciones
con rollback, traducción de errores de integridad de la base de datos a errores
de dominio, y lectura/borrado lógico genéricos.
"""

import logging
from contextlib import contextmanager
from typing import Any, List, Optional, Type

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

import librogestion.integrity  # noqa: F401  (registers the before_flush rules)
from ..core.exceptions import (
    ConflictError,
    IntegrityViolationError,
    LibraryError,
    NotFoundError,
    ReferentialBlockError,
)

logger = logging.getLogger(__name__)


def translate_integrity_error(err: IntegrityError) -> LibraryError:
    """
    Convierte un IntegrityError de SQLAlchemy en el error de dominio equivalente.

    Args:
        err (IntegrityError): Error devuelto por el driver al confirmar.

    Returns:
        LibraryError: ConflictError, ReferentialBlockError o IntegrityViolationError.
    """
    message = str(getattr(err, "orig", err))
    lower_msg = message.lower()
    if "unique" in lower_msg or "duplicate" in lower_msg:
        return ConflictError("Unique constraint violated", {"db_error": message})
    if "foreign key" in lower_msg:
        return ReferentialBlockError("Foreign key constraint failed", {"db_error": message})
    return IntegrityViolationError("database_constraint", message)


def commit(db: Session, action: str) -> None:
    """
    Confirma la transacción en curso; ante cualquier error hace rollback y relanza.

    Los IntegrityError de la base de datos se relanzan como errores de dominio.

    Args:
        db (Session): Sesión de base de datos SQLAlchemy.
        action (str): Descripción de la operación, para el log.
    """
    try:
        db.commit()
    except IntegrityError as e:
        logger.warning(f"Integrity error while committing '{action}': {e.orig}")
        db.rollback()
        raise translate_integrity_error(e) from e
    except LibraryError:
        db.rollback()
        raise
    except Exception as e:
        logger.exception(f"Error committing '{action}': {e}")
        db.rollback()
        raise


def get_or_raise(db: Session, model: Type[Any], obj_id: int, include_deleted: bool = False) -> Any:
    """
    Recupera una fila por su clave primaria.

    Args:
        db (Session): Sesión de base de datos SQLAlchemy.
        model (Type): Clase ORM.
        obj_id (int): Clave primaria.
        include_deleted (bool): Si es True, también devuelve filas con borrado lógico.

    Returns:
        La instancia encontrada.

    Raises:
        NotFoundError: Si no existe o está borrada lógicamente.
    """
    obj = db.get(model, obj_id)
    if obj is None or (not include_deleted and getattr(obj, "is_deleted", False)):
        logger.warning(f"{model.__name__} {obj_id} not found")
        raise NotFoundError(model.__name__, obj_id)
    return obj


def list_rows(db: Session, model: Type[Any], order_by, skip: int = 0, limit: int = 100,
              include_deleted: bool = False) -> List[Any]:
    stmt = select(model)
    if not include_deleted:
        stmt = stmt.where(model.is_deleted == False)  # noqa: E712
    stmt = stmt.order_by(*order_by).offset(skip).limit(limit)
    return list(db.execute(stmt).scalars().all())


def set_deleted_flag(db: Session, model: Type[Any], obj_id: int, deleted: bool) -> Any:
    """Marca o desmarca una fila como borrada lógicamente y confirma."""
    obj = get_or_raise(db, model, obj_id, include_deleted=True)
    if obj.is_deleted == deleted:
        logger.info(f"{model.__name__} {obj_id} already has is_deleted={deleted}. No action taken.")
        return obj
    obj.is_deleted = deleted
    commit(db, f"set is_deleted={deleted} on {model.__name__} {obj_id}")
    db.refresh(obj)
    logger.info(f"{model.__name__} {obj_id} {'soft deleted' if deleted else 'restored'}.")
    return obj


def apply_update(obj: Any, changes: dict) -> None:
    for field, value in changes.items():
        setattr(obj, field, value)


def find_by(db: Session, model: Type[Any], *criteria) -> Optional[Any]:
    return db.execute(select(model).where(*criteria)).scalars().first()


@contextmanager
def atomic(db: Session, action: str):
    """
    Agrupa varios cambios en una sola transacción.

    Si el bloque termina sin errores se confirma; si falla (incluido el commit)
    se hace rollback y se relanza el error, así no queda ninguna escritura parcial.

    Args:
        db (Session): Sesión de base de datos SQLAlchemy.
        action (str): Descripción de la operación, para el log.
    """
    try:
        yield
    except LibraryError:
        db.rollback()
        raise
    except IntegrityError as e:
        logger.warning(f"Integrity error during '{action}': {e.orig}")
        db.rollback()
        raise translate_integrity_error(e) from e
    except Exception as e:
        logger.exception(f"Error during '{action}': {e}")
        db.rollback()
        raise
    commit(db, action)
