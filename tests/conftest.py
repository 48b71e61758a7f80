# tests/conftest.py
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
import datetime
import os
import sys

# Add the src directory to the Python path to allow imports without installing
project_root = os.path.abspath(os.path.join(os.path.dirname(__file__), '..'))
src_path = os.path.join(project_root, 'src')
if src_path not in sys.path:
    sys.path.insert(0, src_path)

from librogestion.db.session import Base, enable_sqlite_foreign_keys
# Registers every model with Base and the integrity listener with Session
import librogestion.models  # noqa: F401
import librogestion.integrity  # noqa: F401
from librogestion.crud import create_book, create_member, create_genre, create_publisher, create_author
from librogestion.schemas.catalog import BookCreate, GenreCreate, PublisherCreate, AuthorCreate
from librogestion.schemas.member import MemberCreate

# --- Test Database Setup ---
# A fresh in-memory SQLite database per test. The workflow commits and rolls
# back on its own, so tests cannot share one outer transaction.
TEST_DATABASE_URL = "sqlite:///:memory:"

TODAY = datetime.date(2024, 3, 1)


def make_isbn(seed: int) -> str:
    """Builds a valid ISBN-13 (978 prefix) from an integer seed."""
    body = f"978{seed:09d}"
    total = sum(int(d) * (1 if i % 2 == 0 else 3) for i, d in enumerate(body))
    return body + str((10 - total % 10) % 10)


@pytest.fixture(scope="function")
def db_engine():
    engine = enable_sqlite_foreign_keys(
        create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session_factory(db_engine):
    """Returns a SQLAlchemy session factory bound to the test engine."""
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture(scope="function")
def db_session(db_session_factory):
    session = db_session_factory()
    try:
        yield session
    finally:
        session.close()


# --- Factory Fixtures ---

@pytest.fixture
def make_book(db_session):
    counter = {"n": 0}

    def _make_book(total_copies: int = 1, title: str = None, **kwargs):
        counter["n"] += 1
        book_in = BookCreate(
            title=title or f"Test Book {counter['n']}",
            isbn=kwargs.pop("isbn", make_isbn(counter["n"])),
            total_copies=total_copies,
            **kwargs,
        )
        return create_book(db_session, book_in)

    return _make_book


@pytest.fixture
def make_member(db_session):
    counter = {"n": 0}

    def _make_member(email: str = None, **kwargs):
        counter["n"] += 1
        member_in = MemberCreate(
            first_name=kwargs.pop("first_name", "Member"),
            last_name=kwargs.pop("last_name", f"Number{counter['n']}"),
            email=email or f"member{counter['n']}@example.com",
            **kwargs,
        )
        return create_member(db_session, member_in)

    return _make_member


@pytest.fixture
def test_genre(db_session):
    return create_genre(db_session, GenreCreate(name="Science Fiction"))


@pytest.fixture
def test_publisher(db_session):
    return create_publisher(db_session, PublisherCreate(name="Del Rey", address="New York"))


@pytest.fixture
def test_author(db_session):
    return create_author(db_session, AuthorCreate(first_name="Ursula", last_name="Le Guin"))
