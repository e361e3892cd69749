import json
import uuid
import pytest
from unittest.mock import Mock, patch

from flock.config import Settings
from flock.handlers import (
    population_handler, queue_messages, recommendation_handler, refresh_handler, sync_handler
)
from flock.providers import NyTimesProvider
from flock.sa.database import Database
from flock.sa.models import Book

@pytest.fixture
def settings(tmp_path):
    url = f"sqlite:///{tmp_path / 'handler.db'}"
    db = Database(url)
    db.create_tables()
    db.dispose()
    return Settings(database_url=url, rate_limit=False, log_level='DEBUG')

def sqs_event(*bodies):
    return {'Records': [
        {'messageId': f'msg-{index}', 'body': json.dumps({'Message': body})}
        for index, body in enumerate(bodies)
    ]}

def test_queue_messages():
    messages = queue_messages(sqs_event('a', 'b'))
    assert [m.message_id for m in messages] == ['msg-0', 'msg-1']
    assert queue_messages({}) == []
    assert queue_messages(None) == []

def test_population_handler_reports_items(settings):
    response = population_handler(sqs_event('missing-id'), None, settings=settings)

    assert response['pipeline'] == 'population'
    assert response['partial'] is False
    assert response['items'][0]['state'] == 'REJECTED'
    assert response['items'][0]['reason'] == 'book not found'
    assert response['batchItemFailures'] == []

def test_population_handler_partial_batch(settings):
    book_id = str(uuid.uuid4())
    with Database(settings.database_url).invocation() as session:
        session.add(Book(id=book_id, olid='OL1W', name='Placeholder'))
        session.commit()

    resolver = Mock()
    resolver.resolve_placeholder.side_effect = RuntimeError('connection reset')
    with patch('flock.handlers.build_resolver', return_value=resolver):
        response = population_handler(sqs_event(book_id, 'other-id'), None, settings=settings)

    assert response['partial'] is True
    assert response['batchItemFailures'] == [{'itemIdentifier': 'msg-0'}, {'itemIdentifier': 'msg-1'}]

def test_sync_handler(settings):
    ny_times = Mock(spec=NyTimesProvider)
    ny_times.list_bestsellers.return_value = []
    with patch('flock.handlers.build_ny_times', return_value=ny_times):
        response = sync_handler({}, None, settings=settings)

    assert response['pipeline'] == 'sync'
    assert response['items'] == []
    ny_times.list_bestsellers.assert_called_once()

def test_refresh_handler_with_nothing_to_do(settings):
    response = refresh_handler({'limit': 5}, None, settings=settings)
    assert response['pipeline'] == 'refresh'
    assert response['summary'] == {}

def test_recommendation_handler_rejects_bad_payload(settings):
    response = recommendation_handler(sqs_event(json.dumps({'users': ['alice']})), None, settings=settings)
    assert response['items'][0]['reason'] == 'need two users'
