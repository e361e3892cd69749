# flock/resolvers/book_resolver.py

import logging
from typing import FrozenSet, NamedTuple, Optional

from ..providers.base import ProviderRecord, ProviderResult, ProviderStatus
from ..providers.google_books import GoogleBooksProvider
from ..providers.isbndb import IsbndbProvider
from ..providers.open_library import OpenLibraryProvider
from ..sa.models import Book
from ..subjects import SubjectClassifier
from ..utils.text import normalize_isbn

logger = logging.getLogger(__name__)


class ResolvedBook(NamedTuple):
    """A merged record plus the subject tags classified from every provider"""
    status: ProviderStatus
    record: Optional[ProviderRecord] = None
    subjects: FrozenSet[str] = frozenset()
    reason: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == ProviderStatus.OK

    @classmethod
    def failed(cls, result: ProviderResult) -> 'ResolvedBook':
        return cls(result.status, None, frozenset(), result.reason)


def first(*values):
    """First truthy value, else None"""
    for value in values:
        if value:
            return value
    return None


def record_of(result: Optional[ProviderResult]) -> ProviderRecord:
    if result is not None and result.is_ok:
        return result.record
    return ProviderRecord()


class BookResolver:
    def __init__(
        self,
        classifier: SubjectClassifier,
        isbndb: Optional[IsbndbProvider] = None,
        open_library: Optional[OpenLibraryProvider] = None,
        google_books: Optional[GoogleBooksProvider] = None
    ):
        self.classifier = classifier
        self.isbndb = isbndb
        self.open_library = open_library
        self.google_books = google_books

    def classify(self, *results: Optional[ProviderResult]) -> FrozenSet[str]:
        """Union of subject tags over every usable provider record"""
        tags = set()
        for result in results:
            if result is None or not result.is_ok:
                continue
            tags |= self.classifier.classify_all(result.record.raw_subjects, result.record.subject_delimiter)
        return frozenset(tags)

    def resolve(
        self,
        isbn: Optional[str] = None,
        title: Optional[str] = None,
        author: Optional[str] = None
    ) -> ResolvedBook:
        """
        Resolve a book from an ISBN and/or a title+author pair.

        Steps:
          1. ISBNdb by ISBN, falling back to author+title search.
             A box-set rejection here rejects the whole item.
          2. OpenLibrary by the (ISBNdb-confirmed) ISBN for work and author
             olids, falling back to a title+author work search.
          3. Google Books categories, title and description.

        Returns:
            ResolvedBook; NOT_FOUND when no provider knew the book.
        """
        isbn = normalize_isbn(isbn)

        isbndb_result = None
        if self.isbndb:
            if isbn:
                isbndb_result = self.isbndb.fetch_by_isbn(isbn)
            if isbndb_result is not None and isbndb_result.status == ProviderStatus.REJECTED:
                return ResolvedBook.failed(isbndb_result)
            if (isbndb_result is None or not isbndb_result.is_ok) and title:
                isbndb_result = self.isbndb.search_by_author_title(author, title)
                if isbndb_result.status == ProviderStatus.REJECTED:
                    return ResolvedBook.failed(isbndb_result)

        isbndb_record = record_of(isbndb_result)
        isbn = first(isbndb_record.isbn, isbn)
        title = first(isbndb_record.title, title)
        author = first(author, isbndb_record.author_name)

        ol_result = None
        if self.open_library:
            if isbn:
                ol_result = self.open_library.resolve_by_isbn(isbn, author_name=author)
            if (ol_result is None or not ol_result.is_ok) and title:
                ol_result = self.open_library.search_work(title, author)
        ol_record = record_of(ol_result)

        google_result = None
        if self.google_books and title:
            google_result = self.google_books.search(title, first(author, ol_record.author_name))
        google_record = record_of(google_result)

        results = [r for r in (isbndb_result, ol_result, google_result) if r is not None]
        if not any(r.is_ok for r in results):
            if results and all(r.status == ProviderStatus.MALFORMED for r in results):
                return ResolvedBook(ProviderStatus.MALFORMED, reason='every provider returned malformed data')
            return ResolvedBook(ProviderStatus.NOT_FOUND, reason=f"no provider data for {isbn or title!r}")

        record = ProviderRecord(
            title=first(isbndb_record.title, google_record.title, ol_record.title, title),
            author_name=first(ol_record.author_name, isbndb_record.author_name, google_record.author_name, author),
            author_olid=ol_record.author_olid,
            isbn=first(isbndb_record.isbn, ol_record.isbn, isbn),
            olid=ol_record.olid,
            cover_url=first(isbndb_record.cover_url, google_record.cover_url, ol_record.cover_url),
            description=first(isbndb_record.description, google_record.description, ol_record.description) or '',
            raw_subjects=[],
        )
        subjects = self.classify(isbndb_result, ol_result, google_result)
        logger.info(f"Resolved {record.title!r}: olid={record.olid} isbn={record.isbn} "
                    f"author_olid={record.author_olid} subjects={sorted(subjects)}")
        return ResolvedBook(ProviderStatus.OK, record, subjects)

    def resolve_placeholder(self, book: Book) -> ResolvedBook:
        """
        Enrich an existing row created with only an olid/ISBN and a name.

        OpenLibrary (with edition scan) supplies olid, author and subjects,
        Google Books supplies categories, title, description and cover.
        """
        ol_result = None
        if self.open_library:
            if book.olid:
                ol_result = self.open_library.resolve_work(book.olid)
            elif book.isbn:
                ol_result = self.open_library.resolve_by_isbn(book.isbn)
        ol_record = record_of(ol_result)

        isbndb_result = None
        if self.isbndb and book.isbn:
            isbndb_result = self.isbndb.fetch_by_isbn(book.isbn)
            if not isbndb_result.is_ok:
                logger.info(f"Ignoring ISBNdb for {book.id}: {isbndb_result.reason}")
                isbndb_result = None
        isbndb_record = record_of(isbndb_result)

        title = first(book.name, ol_record.title, isbndb_record.title)
        author = first(ol_record.author_name, isbndb_record.author_name)

        google_result = None
        if self.google_books and title:
            google_result = self.google_books.search(title, author)
        google_record = record_of(google_result)

        results = [r for r in (ol_result, isbndb_result, google_result) if r is not None]
        if not any(r.is_ok for r in results):
            return ResolvedBook(ProviderStatus.NOT_FOUND, reason=f"no provider data for book {book.id}")

        record = ProviderRecord(
            title=first(google_record.title, book.name, ol_record.title, isbndb_record.title),
            author_name=author,
            author_olid=ol_record.author_olid,
            isbn=first(book.isbn, isbndb_record.isbn, ol_record.isbn),
            olid=first(book.olid, ol_record.olid),
            cover_url=first(google_record.cover_url, isbndb_record.cover_url, ol_record.cover_url),
            description=first(google_record.description, isbndb_record.description, ol_record.description) or '',
            raw_subjects=[],
        )
        return ResolvedBook(ProviderStatus.OK, record, self.classify(ol_result, isbndb_result, google_result))
