# flock/pipelines/refresh.py
import logging
from typing import Optional

from sqlalchemy.orm import Session

from .base import BatchResult, ItemResult
from ..providers.isbndb import IsbndbProvider
from ..resolvers.book_creator import ItemState
from ..sa.models import Book
from ..sa.repositories import BookRepository
from ..utils.image import CoverStatus, CoverUploader

logger = logging.getLogger(__name__)


class RefreshPipeline:
    """Retries the cover of every book whose cover failed the quality gate,
    using the ISBNdb image for its ISBN."""

    name = 'refresh'

    def __init__(self, session: Session, isbndb: IsbndbProvider, cover_uploader: CoverUploader):
        self.session = session
        self.isbndb = isbndb
        self.cover_uploader = cover_uploader
        self.book_repository = BookRepository(session)

    def run(self, limit: Optional[int] = None) -> BatchResult:
        result = BatchResult(self.name)
        books = self.book_repository.get_books_with_bad_covers(limit)
        logger.info(f"Refreshing covers for {len(books)} books")

        for book in books:
            try:
                result.add(self.refresh_book(book))
            except Exception as e:
                self.session.rollback()
                result.abort(e)
                break

        return result

    def refresh_book(self, book: Book) -> ItemResult:
        image_url = self.isbndb.fetch_image(book.isbn)
        if not image_url:
            return ItemResult.rejected(book.id, 'no image')

        cover = self.cover_uploader.acquire_cover(image_url, book.id)
        if cover.status != CoverStatus.UPLOADED:
            return ItemResult.rejected(book.id, cover.status.value.lower())

        book.cover = cover.key
        self.book_repository.mark_cover_quality(book.id, True)
        return ItemResult(book.id, ItemState.UPDATED, book.id)
