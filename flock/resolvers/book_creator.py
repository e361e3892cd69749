# flock/resolvers/book_creator.py
import logging
import uuid
from enum import Enum
from typing import Iterable, NamedTuple, Optional
from sqlalchemy.orm import Session
from ..exceptions import StoreConflict
from ..exclusions import get_exclusion_reason
from ..providers.base import ProviderRecord
from ..sa.models import Author, Book, Source
from ..sa.repositories import AuthorRepository, BookRepository
from ..subjects import join_subjects
from ..utils.image import CoverResult, CoverStatus, CoverUploader

logger = logging.getLogger(__name__)

class ItemState(str, Enum):
    FETCHED = "FETCHED"
    CLASSIFIED = "CLASSIFIED"
    DUPLICATE_MERGED = "DUPLICATE_MERGED"   # Matched an existing row; nothing inserted
    INSERTED = "INSERTED"                   # New Book row
    UPDATED = "UPDATED"                     # Placeholder row enriched in place
    REJECTED = "REJECTED"                   # Terminal for this run

class ReconcileResult(NamedTuple):
    state: ItemState
    book: Optional[Book] = None
    reason: Optional[str] = None
    cover: Optional[CoverResult] = None

class BookCreator:
    """Decides whether a resolved record is a new book, a duplicate or an update,
    and applies that decision to the store."""

    def __init__(
        self,
        session: Session,
        cover_uploader: Optional[CoverUploader] = None,
        box_set_terms: Optional[Iterable[str]] = None
    ):
        """
        Initialize the book creator.

        Args:
            session: SQLAlchemy session
            cover_uploader: Cover pipeline; covers are skipped when None
            box_set_terms: Title terms that mark a multi-book product
        """
        self.session = session
        self.book_repository = BookRepository(session)
        self.author_repository = AuthorRepository(session)
        self.cover_uploader = cover_uploader
        self.box_set_terms = list(box_set_terms) if box_set_terms is not None else None

    def reconcile(
        self,
        record: ProviderRecord,
        subjects: Iterable[str],
        source: str,
        priority: int = 0,
        author_source: Optional[str] = None,
        candidate: Optional[Book] = None
    ) -> ReconcileResult:
        """
        Apply a classified record to the store.

        Identity is an exact olid match first, then an exact ISBN match.

        Args:
            record: Merged provider record
            subjects: Internal subject tags classified for this record
            source: Books.source for a new row
            priority: Books.priority for a new row
            author_source: Authors.source for a new author (defaults to source)
            candidate: Existing placeholder row being enriched, if any

        Returns:
            ReconcileResult with the surviving/inserted book
        """
        subjects = set(subjects)
        author_source = author_source or source

        existing = self.book_repository.find_by_olid_or_isbn(
            record.olid, record.isbn,
            exclude_id=candidate.id if candidate else None
        )
        if existing:
            return self._merge_duplicate(existing, record, candidate)

        if candidate:
            return self._update_candidate(candidate, record, subjects, author_source)

        return self._insert(record, subjects, source, priority, author_source)

    def rejection_reason(self, record: ProviderRecord, subjects: Iterable[str]) -> Optional[str]:
        """Why a new book cannot be created from this record, if it can't"""
        if not record.title:
            return 'no title'
        exclusion = get_exclusion_reason(record.title, None, self.box_set_terms)
        if exclusion:
            return exclusion.reason
        if not subjects:
            return 'no subjects'
        if not record.author_name and not record.author_olid:
            return 'no author'
        return None

    def _insert(self, record: ProviderRecord, subjects: set, source: str,
                priority: int, author_source: str) -> ReconcileResult:
        reason = self.rejection_reason(record, subjects)
        if reason:
            logger.info(f"Rejected {record.title!r}: {reason}")
            return ReconcileResult(ItemState.REJECTED, reason=reason)

        author = self.get_or_create_author(record.author_olid, record.author_name, subjects, author_source)

        book = Book(
            id=str(uuid.uuid4()),
            name=record.title,
            description=record.description or '',
            subjects=join_subjects(subjects),
            isbn=record.isbn,
            olid=record.olid,
            good_cover=False,
            source=source,
            priority=priority,
            author_id=author.id if author else None
        )

        try:
            self.book_repository.insert(book)
        except StoreConflict:
            # Another invocation inserted the same olid/ISBN first
            winner = self.book_repository.find_by_olid_or_isbn(record.olid, record.isbn)
            if winner is None:
                raise
            logger.info(f"Lost insert race for {record.title!r}, using {winner.id}")
            return self._merge_duplicate(winner, record, None)

        cover = self._acquire_cover(book, record.cover_url)
        return ReconcileResult(ItemState.INSERTED, book=book, cover=cover)

    def _merge_duplicate(self, existing: Book, record: ProviderRecord,
                         candidate: Optional[Book]) -> ReconcileResult:
        """Keep the existing row: move the candidate's references onto it and
        refresh its cover when it has a bad one."""
        logger.info(f"Duplicate of {existing.id} (olid={existing.olid} isbn={existing.isbn}) "
                    f"for {record.title!r}")

        if candidate is not None and candidate.id != existing.id:
            self.book_repository.redirect(candidate.id, existing.id)

        cover = None
        if not existing.good_cover and record.cover_url:
            cover = self._acquire_cover(existing, record.cover_url, only_if_good=True)

        return ReconcileResult(ItemState.DUPLICATE_MERGED, book=existing, cover=cover)

    def _update_candidate(self, candidate: Book, record: ProviderRecord,
                          subjects: set, author_source: str) -> ReconcileResult:
        """Enrich a placeholder row in place"""
        author = self.get_or_create_author(record.author_olid, record.author_name, subjects, author_source)

        candidate.name = record.title or candidate.name
        candidate.description = record.description or candidate.description or ''
        if subjects:
            candidate.subjects = join_subjects(subjects)
        if author:
            candidate.author_id = author.id
        candidate.olid = candidate.olid or record.olid
        candidate.isbn = candidate.isbn or record.isbn

        try:
            self.book_repository.save(candidate)
        except StoreConflict:
            winner = self.book_repository.find_by_olid_or_isbn(record.olid, record.isbn, exclude_id=candidate.id)
            if winner is None:
                raise
            self.session.refresh(candidate)
            return self._merge_duplicate(winner, record, candidate)

        cover = self._acquire_cover(candidate, record.cover_url)
        return ReconcileResult(ItemState.UPDATED, book=candidate, cover=cover)

    def _acquire_cover(self, book: Book, cover_url: Optional[str],
                       only_if_good: bool = False) -> Optional[CoverResult]:
        """Run the cover pipeline and set goodCover from its verdict.

        With only_if_good the flag is written only when the upload succeeded.
        """
        if self.cover_uploader is None:
            return None

        cover = self.cover_uploader.acquire_cover(cover_url, book.id)
        logger.info(f"Cover for {book.id}: {cover.status.value}")

        if cover.status == CoverStatus.UPLOADED:
            book.cover = cover.key
        if cover.good_cover or not only_if_good:
            self.book_repository.mark_cover_quality(book.id, cover.good_cover)
            book.good_cover = cover.good_cover
        return cover

    def get_or_create_author(
        self,
        olid: Optional[str],
        name: Optional[str],
        subjects: Iterable[str] = (),
        source: Optional[str] = Source.FLOCK.value
    ) -> Optional[Author]:
        """
        Lookup-or-create by OpenLibrary author id. Never matches on name.

        Returns:
            The Author, or None when there is no olid (the book stays authorless)
        """
        if not olid:
            logger.info(f"No OpenLibrary id for author {name!r}; storing book without author")
            return None

        author = self.author_repository.get_by_olid(olid)
        if author:
            self.author_repository.merge_subjects(author, subjects)
            return author

        try:
            return self.author_repository.insert(
                olid=olid,
                name=name or olid,
                subjects=join_subjects(subjects),
                source=source
            )
        except StoreConflict:
            author = self.author_repository.get_by_olid(olid)
            if author is None:
                raise
            logger.info(f"Author {olid} was inserted concurrently, reusing {author.id}")
            self.author_repository.merge_subjects(author, subjects)
            return author
