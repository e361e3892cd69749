import pytest

from flock.pipelines.base import QueueMessage
from flock.pipelines.population import PopulationPipeline, parse_book_ids
from flock.providers.base import ProviderResult
from flock.resolvers.book_creator import ItemState
from flock.sa.models import Book, UserBook
from tests.utils import add_user_book, ol_record, sns_message

@pytest.fixture
def pipeline(db_session, resolver, creator):
    return PopulationPipeline(db_session, resolver, creator)

def test_parse_single_id():
    assert parse_book_ids(sns_message('m1', 'abc')) == ['abc']

def test_parse_id_list():
    assert parse_book_ids(sns_message('m1', '["a", "b"]')) == ['a', 'b']

def test_parse_bad_body():
    with pytest.raises(ValueError):
        parse_book_ids(QueueMessage('m1', 'not json'))

def test_populates_placeholder(pipeline, db_session, placeholder_book, open_library):
    open_library.resolve_work.return_value = ProviderResult.ok(
        ol_record('The Real Title', placeholder_book.olid, isbn='9780000000007', author_olid='OL55A')
    )

    result = pipeline.run([sns_message('m1', placeholder_book.id)])

    assert not result.partial
    assert [item.state for item in result.items] == [ItemState.UPDATED]
    book = db_session.get(Book, placeholder_book.id)
    assert book.name == 'Placeholder'
    assert book.isbn == '9780000000007'
    assert book.subjects == 'FANTASY'
    assert book.author.olid == 'OL55A'

def test_placeholder_merged_into_existing(pipeline, db_session, placeholder_book, sample_book, open_library):
    add_user_book(db_session, 'user-1', placeholder_book)
    open_library.resolve_work.return_value = ProviderResult.ok(
        ol_record('Dune', placeholder_book.olid, isbn=sample_book.isbn)
    )

    result = pipeline.run([sns_message('m1', [placeholder_book.id])])

    assert result.items[0].state == ItemState.DUPLICATE_MERGED
    assert result.items[0].book_id == sample_book.id
    assert db_session.query(UserBook).one().book_id == sample_book.id
    assert db_session.query(Book).count() == 1

def test_unknown_book_and_unreadable_message(pipeline):
    result = pipeline.run([sns_message('m1', 'missing-id'), QueueMessage('m2', '{}')])

    assert [item.state for item in result.items] == [ItemState.REJECTED, ItemState.REJECTED]
    assert result.items[0].reason == 'book not found'
    assert not result.partial
    assert result.to_dict()['batchItemFailures'] == []

def test_unresolvable_book_is_rejected(pipeline, placeholder_book):
    result = pipeline.run([sns_message('m1', placeholder_book.id)])
    assert result.items[0].state == ItemState.REJECTED

def test_fatal_error_stops_batch(pipeline, db_session, placeholder_book, open_library):
    open_library.resolve_work.side_effect = RuntimeError('database went away')

    result = pipeline.run([
        sns_message('m1', 'missing-id'),
        sns_message('m2', placeholder_book.id),
        sns_message('m3', 'another-id'),
    ])

    assert result.partial
    assert 'database went away' in result.error
    assert len(result.items) == 1
    assert result.to_dict()['batchItemFailures'] == [{'itemIdentifier': 'm2'}, {'itemIdentifier': 'm3'}]
