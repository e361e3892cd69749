# tests/conftest.py
import uuid
import pytest
from sqlalchemy import delete

from flock.sa.database import Database
from flock.sa.models import Book, Author, Source, UserBook
from flock.subjects import SubjectClassifier, SubjectTable
from tests.utils import make_jpeg

@pytest.fixture(scope="session")
def database(tmp_path_factory):
    """One sqlite file shared by the whole run"""
    path = tmp_path_factory.mktemp("flock") / "flock_test.db"
    db = Database(f"sqlite:///{path}")
    db.create_tables()
    yield db
    db.dispose()

@pytest.fixture
def db_session(database):
    session = database.get_session()
    yield session
    session.rollback()
    session.close()

@pytest.fixture(autouse=True)
def empty_tables(db_session):
    # Children first
    for model in (UserBook, Book, Author):
        db_session.execute(delete(model))
    db_session.commit()

@pytest.fixture(scope="session")
def subject_table():
    return SubjectTable.load()

@pytest.fixture
def classifier(subject_table):
    return SubjectClassifier(subject_table)

@pytest.fixture
def sample_author(db_session):
    """Frank Herbert, already classified"""
    author = Author(
        olid="OL1A",
        name="Frank Herbert",
        subjects="SCIENCE_FICTION",
        source=Source.OPEN_LIBRARY.value
    )
    db_session.add(author)
    db_session.commit()
    return author

@pytest.fixture
def sample_book(db_session, sample_author):
    """A complete, enriched book row"""
    book = Book(
        id=str(uuid.uuid4()),
        isbn="9780441013593",
        olid="OL893415W",
        name="Dune",
        description="Desert planet",
        subjects="SCIENCE_FICTION",
        cover="covers/dune.jpg",
        good_cover=True,
        source=Source.NY_TIMES.value,
        priority=4,
        author_id=sample_author.id
    )
    db_session.add(book)
    db_session.commit()
    return book

@pytest.fixture
def placeholder_book(db_session):
    """A row created with only an olid and a name, waiting for population"""
    book = Book(
        id=str(uuid.uuid4()),
        olid="OL123W",
        name="Placeholder",
        source=Source.FLOCK.value
    )
    db_session.add(book)
    db_session.commit()
    return book

@pytest.fixture(scope="session")
def jpeg_bytes():
    return make_jpeg()
