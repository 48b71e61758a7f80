"""
Script para generación de datos falsos en la base de datos de LibroGestion.

Crea géneros, editoriales, autores, libros y socios con Faker, y después pone
en circulación parte del catálogo: préstamos (algunos ya devueltos) y reservas
en cola. Todo pasa por las funciones CRUD y de circulación del proyecto, así
que los contadores de ejemplares quedan coherentes.

Uso:
    Ejecutar directamente este script tras `scripts/init_db.py`.

Nota:
    - Los préstamos rechazados por falta de ejemplares se registran y se
      ignoran; es lo esperado con un catálogo pequeño.
"""

import random
import logging
import sys
import datetime
from faker import Faker
from sqlalchemy.orm import Session
from typing import List, Optional

try:
    from librogestion.core.config import settings
    from librogestion.core.exceptions import LibraryError
    from librogestion.db.session import SessionLocal
    from librogestion.schemas.catalog import AuthorCreate, BookCreate, GenreCreate, PublisherCreate
    from librogestion.schemas.member import MemberCreate
    from librogestion.schemas.circulation import LoanCreate, ReservationCreate
    from librogestion.crud import create_author, create_book, create_genre, create_member, create_publisher
    from librogestion.circulation import create_loan, create_reservation, return_loan
except ImportError as e:
    print(f"Error importando módulos: {e}. Asegúrate de haber ejecutado 'pip install -e .'")
    sys.exit(1)

logging.basicConfig(level=settings.LOG_LEVEL, format='%(asctime)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)

GENRES: List[str] = ["Novela", "Ciencia ficción", "Fantasía", "Historia", "Biografía", "Poesía", "Ensayo"]
NUM_PUBLISHERS: int = 6
NUM_AUTHORS: int = 25
NUM_BOOKS: int = 60
NUM_MEMBERS: int = 40
NUM_LOANS: int = 80
NUM_RESERVATIONS: int = 25
RETURN_PROBABILITY: float = 0.6

fake = Faker(['es_ES', 'en_US'])


def fake_isbn() -> str:
    """ISBN-13 aleatorio con prefijo 978 y dígito de control válido."""
    body = "978" + "".join(str(random.randint(0, 9)) for _ in range(9))
    total = sum(int(d) * (1 if i % 2 == 0 else 3) for i, d in enumerate(body))
    return body + str((10 - total % 10) % 10)


def create_catalog(db: Session) -> List[int]:
    """Crea géneros, editoriales, autores y libros. Devuelve los IDs de libro."""
    genre_ids = [create_genre(db, GenreCreate(name=name)).id for name in GENRES]
    publisher_ids = [
        create_publisher(db, PublisherCreate(name=fake.unique.company(), address=fake.city())).id
        for _ in range(NUM_PUBLISHERS)
    ]
    author_ids = [
        create_author(db, AuthorCreate(
            first_name=fake.first_name(),
            last_name=fake.last_name(),
            biography=fake.paragraph(nb_sentences=3) if random.random() < 0.5 else None,
        )).id
        for _ in range(NUM_AUTHORS)
    ]

    book_ids: List[int] = []
    for i in range(NUM_BOOKS):
        book_in = BookCreate(
            title=fake.sentence(nb_words=random.randint(2, 6)).rstrip("."),
            isbn=fake_isbn(),
            publication_year=random.randint(1900, datetime.date.today().year),
            total_copies=random.randint(1, 4),
            genre_id=random.choice(genre_ids),
            publisher_id=random.choice(publisher_ids),
            description=fake.paragraph(nb_sentences=4),
            author_ids=random.sample(author_ids, random.randint(1, 2)),
        )
        try:
            book_ids.append(create_book(db, book_in).id)
        except LibraryError as e:
            logger.warning(f"  ({i+1}/{NUM_BOOKS}) Libro no creado: {e.message}")
    return book_ids


def create_members(db: Session) -> List[int]:
    member_ids: List[int] = []
    for i in range(NUM_MEMBERS):
        member_in = MemberCreate(
            first_name=fake.first_name(),
            last_name=fake.last_name(),
            email=fake.unique.safe_email(),
            phone=fake.numerify("###-###-####"),
            address=fake.street_address(),
            membership_date=fake.date_between(start_date="-3y", end_date="today"),
            date_of_birth=fake.date_of_birth(minimum_age=12, maximum_age=90),
        )
        try:
            member_ids.append(create_member(db, member_in).id)
        except LibraryError as e:
            logger.warning(f"  ({i+1}/{NUM_MEMBERS}) Socio no creado: {e.message}")
    return member_ids


def create_circulation(db: Session, book_ids: List[int], member_ids: List[int]) -> None:
    """Genera préstamos (devolviendo algunos) y reservas en cola."""
    today = datetime.date.today()
    loans_created = loans_returned = reservations_created = 0

    for _ in range(NUM_LOANS):
        loan_date = fake.date_between(start_date="-60d", end_date="today")
        loan_in = LoanCreate(member_id=random.choice(member_ids), book_id=random.choice(book_ids),
                             loan_date=loan_date)
        try:
            loan = create_loan(db, loan_in, today=today)
            loans_created += 1
            if random.random() < RETURN_PROBABILITY:
                returned_on = loan_date + datetime.timedelta(days=random.randint(0, 25))
                return_loan(db, loan.id, return_date=min(returned_on, today))
                loans_returned += 1
        except LibraryError as e:
            logger.info(f"  Préstamo omitido: {e.message}")

    for _ in range(NUM_RESERVATIONS):
        reservation_in = ReservationCreate(member_id=random.choice(member_ids), book_id=random.choice(book_ids))
        try:
            create_reservation(db, reservation_in, today=today)
            reservations_created += 1
        except LibraryError as e:
            logger.info(f"  Reserva omitida: {e.message}")

    logger.info(
        f"Préstamos creados: {loans_created} ({loans_returned} devueltos). "
        f"Reservas creadas: {reservations_created}."
    )


def generate_data() -> None:
    """
    Puebla la base de datos configurada en DATABASE_URL con datos falsos.

    Returns:
        None
    """
    logger.info("=============================================")
    logger.info(" Iniciando script de generación de datos falsos")
    logger.info("=============================================")

    db: Optional[Session] = None
    try:
        db = SessionLocal()

        logger.info("--- Fase 1: Catálogo ---")
        book_ids = create_catalog(db)
        logger.info(f"--- Fase 1 Completada: {len(book_ids)} libros. ---")

        logger.info("--- Fase 2: Socios ---")
        member_ids = create_members(db)
        logger.info(f"--- Fase 2 Completada: {len(member_ids)} socios. ---")

        if not book_ids or not member_ids:
            logger.error("Sin libros o sin socios no se puede generar circulación. Abortando.")
            return

        logger.info("--- Fase 3: Préstamos y reservas ---")
        create_circulation(db, book_ids, member_ids)
        logger.info("--- Fase 3 Completada. ---")
    except Exception as e:
        logger.exception(f"Error CRÍTICO durante la generación de datos: {e}")
        if db:
            db.rollback()
        raise
    finally:
        if db:
            logger.info("Cerrando sesión de base de datos.")
            db.close()


if __name__ == "__main__":
    generate_data()
    logger.info("============================================")
    logger.info(" Script de Generación de Datos Finalizado")
    logger.info("============================================")
