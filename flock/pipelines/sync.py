# flock/pipelines/sync.py
import logging

from sqlalchemy.orm import Session

from .base import BatchResult, ItemResult
from ..providers.base import ProviderRecord
from ..providers.ny_times import NyTimesProvider
from ..resolvers.book_creator import BookCreator
from ..resolvers.book_resolver import BookResolver, first
from ..sa.models import PRIORITY_NY_TIMES, Source
from ..sa.repositories import BookRepository
from ..utils.text import sanitize

logger = logging.getLogger(__name__)


class SyncPipeline:
    """Imports the current NY Times bestsellers."""

    name = 'sync'

    def __init__(self, session: Session, ny_times: NyTimesProvider,
                 resolver: BookResolver, creator: BookCreator):
        self.session = session
        self.ny_times = ny_times
        self.resolver = resolver
        self.creator = creator
        self.book_repository = BookRepository(session)

    def run(self, limit: int = None) -> BatchResult:
        result = BatchResult(self.name)
        entries = self.ny_times.list_bestsellers()
        if limit:
            entries = entries[:limit]

        for entry in entries:
            try:
                result.add(self.process_entry(entry))
            except Exception as e:
                self.session.rollback()
                result.abort(e)
                break

        logger.info(f"Sync finished: {result.summary()}")
        return result

    def process_entry(self, entry: ProviderRecord) -> ItemResult:
        item_id = entry.isbn or entry.title
        if entry.isbn and self.book_repository.get_by_isbn(entry.isbn):
            return ItemResult.rejected(item_id, 'already in library')

        resolved = self.resolver.resolve(isbn=entry.isbn, title=entry.title, author=entry.author_name)
        if not resolved.ok:
            return ItemResult.rejected(item_id, resolved.reason or resolved.status.value)

        # Bestseller blurbs and covers fill gaps the providers left
        record = resolved.record.model_copy(update={
            'description': first(resolved.record.description, sanitize(entry.description)) or '',
            'cover_url': first(resolved.record.cover_url, entry.cover_url),
        })

        reconciled = self.creator.reconcile(
            record,
            resolved.subjects,
            source=Source.NY_TIMES.value,
            priority=PRIORITY_NY_TIMES,
            author_source=Source.NY_TIMES.value
        )
        return ItemResult.from_reconcile(item_id, reconciled)
