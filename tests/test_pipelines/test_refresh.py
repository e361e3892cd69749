import uuid
import pytest

from flock.pipelines.refresh import RefreshPipeline
from flock.resolvers.book_creator import ItemState
from flock.sa.models import Book
from flock.utils.image import CoverResult, CoverStatus

@pytest.fixture
def bad_cover_books(db_session):
    books = [
        Book(id=str(uuid.uuid4()), name='Fixable', isbn='9780000000011', cover='http://old/1.jpg', priority=4),
        Book(id=str(uuid.uuid4()), name='No image', isbn='9780000000012', priority=0),
    ]
    db_session.add_all(books)
    db_session.commit()
    return books

@pytest.fixture
def pipeline(db_session, isbndb, cover_uploader):
    return RefreshPipeline(db_session, isbndb, cover_uploader)

def test_refresh_fixes_covers(pipeline, db_session, bad_cover_books, isbndb):
    fixable, missing = bad_cover_books
    isbndb.fetch_image.side_effect = lambda isbn: 'https://isbndb/1.jpg' if isbn == fixable.isbn else None

    result = pipeline.run()

    assert [(item.item_id, item.state) for item in result.items] == [
        (fixable.id, ItemState.UPDATED),
        (missing.id, ItemState.REJECTED),
    ]
    book = db_session.get(Book, fixable.id)
    assert book.good_cover is True
    assert book.cover == f'covers/{fixable.id}.jpg'
    assert db_session.get(Book, missing.id).good_cover is False

def test_still_bad_cover_stays_flagged(pipeline, db_session, bad_cover_books, isbndb, cover_uploader):
    isbndb.fetch_image.return_value = 'https://isbndb/small.jpg'
    cover_uploader.acquire_cover.side_effect = None
    cover_uploader.acquire_cover.return_value = CoverResult(CoverStatus.BAD_QUALITY, size=10)

    result = pipeline.run(limit=1)

    assert result.items[0].state == ItemState.REJECTED
    assert result.items[0].reason == 'bad_quality'
    assert db_session.get(Book, bad_cover_books[0].id).good_cover is False
