from flock.providers.base import ProviderStatus
from flock.providers.google_books import GoogleBooksProvider, clean_thumbnail
from tests.utils import mock_downloader

BASE = 'https://www.googleapis.com/books/v1'

SEARCH = {
    'totalItems': 1,
    'items': [{
        'id': 'vol1',
        'volumeInfo': {
            'title': 'Dune',
            'authors': ['Frank Herbert'],
            'description': 'Search <b>description</b>',
            'categories': ['Fiction'],
        },
    }],
}

VOLUME = {
    'id': 'vol1',
    'volumeInfo': {
        'title': 'Dune (Deluxe)',
        'authors': ['Frank Herbert'],
        'description': 'Volume description',
        'categories': ['Fiction / Science Fiction / Space Opera'],
        'imageLinks': {'thumbnail': 'http://books.google.com/content?id=vol1&edge=curl&zoom=1'},
    },
}

def make_provider(routes):
    downloader = mock_downloader(routes)
    return GoogleBooksProvider(BASE, downloader=downloader), downloader.get_json.side_effect

def test_search_url_is_not_percent_encoded():
    provider = GoogleBooksProvider(BASE, downloader=mock_downloader())
    assert provider.search_url("Ender's Game", 'Orson Scott Card') == (
        f'{BASE}/volumes?q=intitle:enders+game+inauthor:orson+scott+card&projection=full&langRestrict=en'
    )

def test_search_uses_volume_details_and_search_description():
    provider, router = make_provider({'/volumes?': SEARCH, '/volumes/vol1': VOLUME})

    result = provider.search('Dune', 'Frank Herbert')

    assert result.status == ProviderStatus.OK
    record = result.record
    assert record.title == 'Dune (Deluxe)'
    assert record.description == 'Search description'
    assert record.raw_subjects == ['Fiction / Science Fiction / Space Opera']
    assert record.cover_url == 'http://books.google.com/content?id=vol1&zoom=1'
    assert router.called('/volumes/vol1') == 1

def test_top_hit_without_categories_is_not_found():
    search = {'items': [{'id': 'vol1', 'volumeInfo': {'title': 'Dune'}}]}
    provider, router = make_provider({'/volumes?': search, '/volumes/vol1': VOLUME})

    assert provider.search('Dune').status == ProviderStatus.NOT_FOUND
    assert router.called('/volumes/vol1') == 0

def test_no_items():
    provider, _ = make_provider({'/volumes?': {'totalItems': 0}})
    assert provider.search('Dune').status == ProviderStatus.NOT_FOUND

def test_clean_thumbnail():
    assert clean_thumbnail('http://x/?id=1&edge=curl') == 'http://x/?id=1'
    assert clean_thumbnail(None) is None
