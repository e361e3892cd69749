# tests/test_pipelines/conftest.py
import pytest
from unittest.mock import Mock

from flock.providers import GoogleBooksProvider, IsbndbProvider, OpenLibraryProvider
from flock.providers.base import ProviderResult
from flock.resolvers.book_creator import BookCreator
from flock.resolvers.book_resolver import BookResolver
from flock.utils.image import CoverResult, CoverStatus, CoverUploader, cover_key

@pytest.fixture
def isbndb():
    provider = Mock(spec=IsbndbProvider)
    provider.fetch_by_isbn.return_value = ProviderResult.not_found()
    provider.search_by_author_title.return_value = ProviderResult.not_found()
    provider.fetch_image.return_value = None
    return provider

@pytest.fixture
def open_library():
    provider = Mock(spec=OpenLibraryProvider)
    provider.resolve_by_isbn.return_value = ProviderResult.not_found()
    provider.resolve_work.return_value = ProviderResult.not_found()
    provider.search_work.return_value = ProviderResult.not_found()
    return provider

@pytest.fixture
def google_books():
    provider = Mock(spec=GoogleBooksProvider)
    provider.search.return_value = ProviderResult.not_found()
    return provider

@pytest.fixture
def cover_uploader():
    uploader = Mock(spec=CoverUploader)
    uploader.acquire_cover.side_effect = lambda url, book_id: (
        CoverResult(CoverStatus.UPLOADED, key=cover_key(book_id), size=20000)
        if url else CoverResult(CoverStatus.NOT_FOUND)
    )
    return uploader

@pytest.fixture
def resolver(classifier, isbndb, open_library, google_books):
    return BookResolver(classifier, isbndb=isbndb, open_library=open_library, google_books=google_books)

@pytest.fixture
def creator(db_session, cover_uploader):
    return BookCreator(db_session, cover_uploader=cover_uploader)
