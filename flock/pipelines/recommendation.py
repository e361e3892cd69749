# flock/pipelines/recommendation.py
import json
import logging
from typing import List, Optional, Set

from sqlalchemy.orm import Session

from .base import BatchResult, ItemResult, QueueMessage
from ..providers.recommendations import RecommendationProvider, Suggestion
from ..resolvers.book_creator import BookCreator
from ..resolvers.book_resolver import BookResolver
from ..sa.models import PRIORITY_RECOMMENDATION, Source
from ..sa.repositories import BookRepository
from ..utils.text import normalize_title

logger = logging.getLogger(__name__)


def parse_users(message: QueueMessage) -> List[str]:
    """{"Message": "{\"users\": [\"<id>\", \"<id>\"]}"} -> user ids"""
    payload = message.payload()
    if isinstance(payload, str):
        payload = json.loads(payload)
    users = payload['users']
    if not isinstance(users, list):
        raise TypeError('users must be a list')
    return [str(user) for user in users if user]


class RecommendationPipeline:
    """
    Turns two users' shared books into new candidate books.

    Each shared book seeds a handful of suggestions; suggestion titles are
    deduplicated over the whole invocation before any lookup is made.
    """

    name = 'recommendation'

    def __init__(self, session: Session, recommender: RecommendationProvider,
                 resolver: BookResolver, creator: BookCreator):
        self.session = session
        self.recommender = recommender
        self.resolver = resolver
        self.creator = creator
        self.book_repository = BookRepository(session)

    def run(self, messages: List[QueueMessage]) -> BatchResult:
        result = BatchResult(self.name)
        seen: Set[str] = set()

        for index, message in enumerate(messages):
            try:
                users = parse_users(message)
            except (ValueError, KeyError, TypeError) as e:
                result.add(ItemResult.rejected(message.message_id, f"unreadable message: {e}"))
                continue

            if len(users) < 2:
                result.add(ItemResult.rejected(message.message_id, 'need two users'))
                continue

            try:
                for suggestion in self.collect_suggestions(users[0], users[1]):
                    result.add(self.process_suggestion(suggestion, seen))
            except Exception as e:
                self.session.rollback()
                result.abort(e, [m.message_id for m in messages[index:]])
                break

        logger.info(f"Recommendation finished: {result.summary()}")
        return result

    def collect_suggestions(self, user_a: str, user_b: str) -> List[Suggestion]:
        shared = self.book_repository.get_shared_books(user_a, user_b)
        logger.info(f"{len(shared)} shared books for users {user_a} and {user_b}")

        suggestions = []
        for book in shared:
            author = book.author.name if book.author else None
            suggestions.extend(self.recommender.suggest(book.name, author))
        return suggestions

    def process_suggestion(self, suggestion: Suggestion, seen: Optional[Set[str]] = None) -> ItemResult:
        seen = set() if seen is None else seen
        key = normalize_title(suggestion.title)
        if not key:
            return ItemResult.rejected(suggestion.title or '', 'no title')
        if key in seen:
            return ItemResult.rejected(suggestion.title, 'already suggested')
        seen.add(key)

        resolved = self.resolver.resolve(title=suggestion.title, author=suggestion.author)
        if not resolved.ok:
            return ItemResult.rejected(suggestion.title, resolved.reason or resolved.status.value)

        reconciled = self.creator.reconcile(
            resolved.record,
            resolved.subjects,
            source=Source.CHAT_GPT_RECOMMENDATION.value,
            priority=PRIORITY_RECOMMENDATION,
            author_source=Source.FLOCK.value
        )
        return ItemResult.from_reconcile(suggestion.title, reconciled)
