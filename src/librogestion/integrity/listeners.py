"""
Listener de sesión que aplica las reglas de integridad dentro de la transacción
que hace el flush.

Se registra sobre la clase `Session`, así que cubre las sesiones de cualquier
sessionmaker. Una violación aborta el flush antes de emitir SQL; el llamador
deshace la transacción.
"""

import logging

from sqlalchemy import event
from sqlalchemy.orm import Session

from librogestion.core.exceptions import IntegrityViolationError
from librogestion.models.book import Book
from librogestion.models.loan import Loan
from librogestion.integrity.rules import check_book_copies, check_loan

logger = logging.getLogger(__name__)


@event.listens_for(Session, "before_flush")
def enforce_integrity_rules(session, flush_context, instances):
    for obj in list(session.new) + list(session.dirty):
        try:
            if isinstance(obj, Book):
                check_book_copies(obj)
            elif isinstance(obj, Loan):
                check_loan(obj)
        except IntegrityViolationError:
            logger.warning(f"Integrity rule rejected flush of {type(obj).__name__} id={obj.id}")
            raise
