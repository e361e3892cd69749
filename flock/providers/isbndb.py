# flock/providers/isbndb.py

from typing import Iterable, List, Optional, Union

from .base import BaseProvider, ProviderModel, ProviderRecord, ProviderResult, ProviderStatus
from ..exceptions import ProviderError
from ..exclusions import get_exclusion_reason
from ..subjects import ISBNDB_DELIMITER
from ..utils.http import JsonDownloader, build_url
from ..utils.text import sanitize, url_encode, normalize_isbn


class IsbndbBook(ProviderModel):
    title: Optional[str] = None
    title_long: Optional[str] = None
    isbn: Optional[str] = None
    isbn13: Optional[str] = None
    edition: Optional[Union[str, int, float]] = None
    synopsis: Optional[str] = None
    overview: Optional[str] = None
    subjects: Optional[List[str]] = None
    image: Optional[str] = None
    authors: Optional[List[str]] = None
    language: Optional[str] = None


class IsbndbBookResponse(ProviderModel):
    book: Optional[IsbndbBook] = None


class IsbndbSearchResponse(ProviderModel):
    total: Optional[int] = None
    books: Optional[List[IsbndbBook]] = None


class IsbndbProvider(BaseProvider):
    """
    ISBNdb adapter.

    A candidate is usable only with isbn13, synopsis, title, subjects, image
    and at least one author. Box sets, collections and study guides are
    rejected by title or edition whatever else they carry.
    """

    name = 'isbndb'
    REQUIRED_FIELDS = ('isbn13', 'synopsis', 'title', 'subjects', 'image', 'authors')

    def __init__(self, api_url: str, api_key: Optional[str],
                 downloader: Optional[JsonDownloader] = None,
                 box_set_terms: Optional[Iterable[str]] = None):
        super().__init__(downloader)
        self.api_url = api_url.rstrip('/')
        self.api_key = api_key
        self.box_set_terms = list(box_set_terms) if box_set_terms is not None else None

    @property
    def headers(self) -> dict:
        if not self.api_key:
            raise ProviderError(self.name, 'ISBNDB_API_KEY is not set')
        return {'Authorization': self.api_key}

    def fetch_by_isbn(self, isbn: str) -> ProviderResult:
        """GET /book/{isbn}"""
        if not isbn:
            return ProviderResult.not_found('no isbn')

        response, failure = self.fetch(f"{self.api_url}/book/{isbn}", IsbndbBookResponse, self.headers)
        if failure:
            self.logger.info(f"ISBNdb lookup for {isbn}: {failure.status.value} ({failure.reason})")
            return failure
        if response.book is None:
            return ProviderResult.not_found(f"no book for isbn {isbn}")

        return self.to_result(response.book)

    def fetch_image(self, isbn: str) -> Optional[str]:
        """Cover URL for an ISBN without the completeness checks (cover refresh)"""
        if not isbn:
            return None
        response, failure = self.fetch(f"{self.api_url}/book/{isbn}", IsbndbBookResponse, self.headers)
        if failure or response.book is None:
            return None
        return response.book.image or None

    def search_by_author_title(self, author: str, title: str) -> ProviderResult:
        """GET /books/{query}; first usable, non-excluded candidate wins"""
        if not title:
            return ProviderResult.not_found('no title')

        query = url_encode(f"{title} {author}" if author else title)
        url = build_url(f"{self.api_url}/books/{query}", {'page': 1, 'pageSize': 20})
        response, failure = self.fetch(url, IsbndbSearchResponse, self.headers)
        if failure:
            self.logger.info(f"ISBNdb search for {title!r}: {failure.status.value} ({failure.reason})")
            return failure

        candidates = response.books or []
        rejections = []
        for candidate in candidates:
            result = self.to_result(candidate)
            if result.is_ok:
                return result
            if result.status == ProviderStatus.REJECTED:
                rejections.append(result)

        # Only a box set when nothing but box sets came back
        if candidates and len(rejections) == len(candidates):
            return rejections[0]
        return ProviderResult.not_found(f"no usable results for {title!r}")

    def to_result(self, book: IsbndbBook) -> ProviderResult:
        """Apply the quality filters and normalize to a ProviderRecord"""
        edition = str(book.edition) if book.edition is not None else None
        exclusion = get_exclusion_reason(book.title, edition, self.box_set_terms)
        if exclusion is None and book.title_long:
            exclusion = get_exclusion_reason(book.title_long, None, self.box_set_terms)
        if exclusion:
            self.logger.info(f"Rejected ISBNdb candidate {book.isbn13 or book.isbn}: {exclusion.reason}")
            return ProviderResult.rejected(exclusion.reason)

        missing = [field for field in self.REQUIRED_FIELDS if not getattr(book, field)]
        if missing:
            self.logger.info(f"ISBNdb candidate {book.isbn13 or book.title!r} missing {', '.join(missing)}")
            return ProviderResult.not_found(f"missing {', '.join(missing)}")

        return ProviderResult.ok(ProviderRecord(
            title=book.title,
            author_name=book.authors[0],
            isbn=normalize_isbn(book.isbn13),
            cover_url=book.image,
            description=sanitize(book.synopsis),
            raw_subjects=list(book.subjects),
            subject_delimiter=ISBNDB_DELIMITER,
        ))
