"""
Crea todas las tablas de LibroGestion en la base de datos de DATABASE_URL.

Uso:
    python scripts/init_db.py
"""

import logging

from librogestion.core.config import settings
from librogestion.db.session import Base, engine
import librogestion.models  # noqa: F401

logging.basicConfig(level=settings.LOG_LEVEL, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


def init_db() -> None:
    logger.info(f"Entorno: {settings.ENVIRONMENT}")
    logger.info(f"Creando tablas en {engine.url.render_as_string(hide_password=True)}...")
    Base.metadata.create_all(bind=engine)
    logger.info(f"Tablas listas: {', '.join(sorted(Base.metadata.tables))}")


if __name__ == "__main__":
    init_db()
