import json
import pytest
from unittest.mock import Mock

from flock.exceptions import ProviderError
from flock.providers.recommendations import RecommendationProvider
from flock.utils.http import JsonDownloader, JsonResponse

def completion(content):
    return {'choices': [{'message': {'role': 'assistant', 'content': content}}]}

def make_provider(response):
    downloader = Mock(spec=JsonDownloader)
    downloader.post_json.return_value = response
    provider = RecommendationProvider('https://api.openai.com/v1', 'sk-test', organization='org-1',
                                      project='proj-1', downloader=downloader)
    return provider, downloader

def test_suggest_parses_structured_output():
    books = {'books': [{'title': 'Hyperion', 'author': 'Dan Simmons'},
                       {'title': 'Foundation', 'author': 'Isaac Asimov'}]}
    provider, downloader = make_provider(JsonResponse(True, 200, completion(json.dumps(books))))

    suggestions = provider.suggest('Dune', 'Frank Herbert')

    assert [s.title for s in suggestions] == ['Hyperion', 'Foundation']
    url, payload, headers = downloader.post_json.call_args.args
    assert url == 'https://api.openai.com/v1/chat/completions'
    assert payload['model'] == 'gpt-4o-mini'
    assert payload['messages'][1]['content'] == 'recommend me 5 similar books to "Dune" by "Frank Herbert"'
    assert payload['response_format']['json_schema']['name'] == 'books'
    assert headers['Authorization'] == 'Bearer sk-test'
    assert headers['OpenAI-Organization'] == 'org-1'
    assert headers['OpenAI-Project'] == 'proj-1'

def test_http_failure_is_empty():
    provider, _ = make_provider(JsonResponse(False, 500, None))
    assert provider.suggest('Dune', None) == []

def test_unparseable_content_is_empty():
    provider, _ = make_provider(JsonResponse(True, 200, completion('not json')))
    assert provider.suggest('Dune', None) == []

def test_missing_api_key_raises():
    provider = RecommendationProvider('https://api.openai.com/v1', None, downloader=Mock(spec=JsonDownloader))
    with pytest.raises(ProviderError):
        provider.suggest('Dune', None)
