"""
Configuración y utilidades para la gestión de la sesión de base de datos SQLAlchemy en LibroGestion.
Incluye la creación del motor, la fábrica de sesiones y la clase base para los modelos ORM.
Proporciona una función de dependencia para obtener y cerrar sesiones de base de datos de forma segura.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from librogestion.core.config import settings


def enable_sqlite_foreign_keys(engine: Engine) -> Engine:
    """
    Activa la comprobación de claves foráneas en cada conexión SQLite.

    SQLite ignora ON DELETE CASCADE / RESTRICT si no se ejecuta
    `PRAGMA foreign_keys=ON` en cada conexión nueva.

    Args:
        engine (Engine): Motor SQLAlchemy.

    Returns:
        Engine: El mismo motor, para poder encadenar la llamada.
    """
    if engine.url.get_backend_name() == "sqlite":
        @event.listens_for(engine, "connect")
        def _set_sqlite_pragma(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    return engine


engine = enable_sqlite_foreign_keys(
    create_engine(settings.DATABASE_URL, pool_pre_ping=True, echo=settings.SQL_ECHO)
)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()

def get_db():
    """
    Proporciona una sesión de base de datos para su uso en dependencias.

    Yields:
        Session: Sesión de base de datos SQLAlchemy.

    Ensures:
        La sesión se cierra correctamente después de su uso.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
