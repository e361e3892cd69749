# flock/pipelines/population.py
import json
import logging
from typing import List

from sqlalchemy.orm import Session

from .base import BatchResult, ItemResult, QueueMessage
from ..resolvers.book_creator import BookCreator, ItemState
from ..resolvers.book_resolver import BookResolver
from ..sa.models import Source
from ..sa.repositories import BookRepository

logger = logging.getLogger(__name__)


def parse_book_ids(message: QueueMessage) -> List[str]:
    """
    Book ids carried by a population message.

    The payload is either a single id or a JSON-encoded list of ids:
        {"Message": "<uuid>"}
        {"Message": "[\"<uuid>\", \"<uuid>\"]"}
    """
    payload = message.payload()
    if isinstance(payload, list):
        return [str(book_id) for book_id in payload if book_id]
    payload = str(payload).strip()
    if payload.startswith('['):
        return [str(book_id) for book_id in json.loads(payload) if book_id]
    return [payload] if payload else []


class PopulationPipeline:
    """Enriches placeholder book rows with provider data."""

    name = 'population'

    def __init__(self, session: Session, resolver: BookResolver, creator: BookCreator):
        self.session = session
        self.resolver = resolver
        self.creator = creator
        self.book_repository = BookRepository(session)

    def run(self, messages: List[QueueMessage]) -> BatchResult:
        result = BatchResult(self.name)

        for index, message in enumerate(messages):
            try:
                book_ids = parse_book_ids(message)
            except (ValueError, KeyError, TypeError) as e:
                result.add(ItemResult.rejected(message.message_id, f"unreadable message: {e}"))
                continue

            try:
                for book_id in book_ids:
                    result.add(self.process_book(book_id))
            except Exception as e:
                self.session.rollback()
                result.abort(e, [m.message_id for m in messages[index:]])
                break

        logger.info(f"Population finished: {result.summary()}")
        return result

    def process_book(self, book_id: str) -> ItemResult:
        book = self.book_repository.get_by_id(book_id)
        if book is None:
            return ItemResult.rejected(book_id, 'book not found')

        logger.info(f"Populating {book_id} ({book.name!r}, olid={book.olid}, isbn={book.isbn})")
        resolved = self.resolver.resolve_placeholder(book)
        if not resolved.ok:
            return ItemResult.rejected(book_id, resolved.reason or resolved.status.value)

        logger.debug(f"{book_id}: {ItemState.CLASSIFIED.value} subjects={sorted(resolved.subjects)}")
        reconciled = self.creator.reconcile(
            resolved.record,
            resolved.subjects,
            source=book.source or Source.FLOCK.value,
            priority=book.priority or 0,
            author_source=Source.OPEN_LIBRARY.value,
            candidate=book
        )
        return ItemResult.from_reconcile(book_id, reconciled)
