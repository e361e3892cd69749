# flock/factory.py
from typing import Optional

from sqlalchemy.orm import Session

from .config import Settings
from .providers import (
    GoogleBooksProvider, IsbndbProvider, NyTimesProvider, OpenLibraryProvider, RecommendationProvider
)
from .resolvers.book_creator import BookCreator
from .resolvers.book_resolver import BookResolver
from .subjects import SubjectClassifier, SubjectTable
from .utils.http import JsonDownloader
from .utils.image import CoverUploader


def build_downloader(settings: Settings) -> JsonDownloader:
    return JsonDownloader(timeout=settings.http_timeout, rate_limit=settings.rate_limit)


def build_isbndb(settings: Settings, downloader: JsonDownloader) -> IsbndbProvider:
    return IsbndbProvider(
        settings.isbndb_api_url, settings.isbndb_api_key,
        downloader=downloader, box_set_terms=settings.box_set_terms
    )


def build_resolver(settings: Settings, table: SubjectTable,
                   downloader: Optional[JsonDownloader] = None) -> BookResolver:
    downloader = downloader or build_downloader(settings)
    return BookResolver(
        SubjectClassifier(table),
        isbndb=build_isbndb(settings, downloader),
        open_library=OpenLibraryProvider(settings.open_library_url, downloader=downloader),
        google_books=GoogleBooksProvider(settings.google_books_url, downloader=downloader)
    )


def build_cover_uploader(settings: Settings, downloader: Optional[JsonDownloader] = None,
                         s3_client=None) -> CoverUploader:
    return CoverUploader(
        settings.images_bucket,
        s3_client=s3_client,
        downloader=downloader or build_downloader(settings),
        min_bytes=settings.cover_min_bytes,
        width=settings.cover_width
    )


def build_creator(session: Session, settings: Settings,
                  cover_uploader: Optional[CoverUploader] = None) -> BookCreator:
    return BookCreator(session, cover_uploader=cover_uploader, box_set_terms=settings.box_set_terms)


def build_ny_times(settings: Settings, downloader: Optional[JsonDownloader] = None) -> NyTimesProvider:
    return NyTimesProvider(settings.ny_times_api_url, settings.ny_times_api_key,
                           downloader=downloader or build_downloader(settings))


def build_recommender(settings: Settings, downloader: Optional[JsonDownloader] = None) -> RecommendationProvider:
    return RecommendationProvider(
        settings.open_ai_api_url,
        settings.open_ai_api_key,
        model=settings.open_ai_model,
        organization=settings.open_ai_organization,
        project=settings.open_ai_project,
        downloader=downloader or build_downloader(settings)
    )
