# flock/providers/ny_times.py

from typing import List, Optional

from pydantic import Field

from .base import BaseProvider, ProviderModel, ProviderRecord
from ..utils.http import JsonDownloader, build_url
from ..utils.text import normalize_isbn


class NyTimesBook(ProviderModel):
    title: Optional[str] = None
    author: Optional[str] = None
    description: Optional[str] = None
    book_image: Optional[str] = None
    primary_isbn13: Optional[str] = None


class NyTimesList(ProviderModel):
    list_name: Optional[str] = None
    books: List[NyTimesBook] = Field(default_factory=list)


class NyTimesResults(ProviderModel):
    lists: List[NyTimesList] = Field(default_factory=list)


class NyTimesOverview(ProviderModel):
    results: Optional[NyTimesResults] = None


class NyTimesProvider(BaseProvider):
    """
    Bestseller listing. Entries are provisional: title, author, cover and
    ISBN still have to be resolved through ISBNdb and OpenLibrary before
    anything is stored.
    """

    name = 'ny_times'

    def __init__(self, api_url: str, api_key: Optional[str],
                 downloader: Optional[JsonDownloader] = None):
        super().__init__(downloader)
        self.api_url = api_url.rstrip('/')
        self.api_key = api_key

    def list_bestsellers(self) -> List[ProviderRecord]:
        url = build_url(f"{self.api_url}/lists/full-overview.json", {'api-key': self.api_key or ''})
        overview, failure = self.fetch(url, NyTimesOverview)
        if failure:
            self.logger.warning(f"Bestseller overview unavailable: {failure.reason}")
            return []
        if overview.results is None:
            return []

        entries = []
        seen = set()
        for book_list in overview.results.lists:
            for book in book_list.books:
                if not book.title:
                    continue
                isbn = normalize_isbn(book.primary_isbn13)
                # The same title shows up on several lists
                key = isbn or (book.title.lower(), (book.author or '').lower())
                if key in seen:
                    continue
                seen.add(key)
                entries.append(ProviderRecord(
                    title=book.title,
                    author_name=book.author,
                    isbn=isbn,
                    cover_url=book.book_image,
                    description=book.description or '',
                ))
        self.logger.info(f"Found {len(entries)} bestseller entries")
        return entries
