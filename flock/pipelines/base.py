# flock/pipelines/base.py
import json
import logging
from typing import Any, Dict, List, NamedTuple, Optional

from ..resolvers.book_creator import ItemState, ReconcileResult

logger = logging.getLogger(__name__)


class QueueMessage(NamedTuple):
    message_id: str
    body: str

    def payload(self) -> Any:
        """The SNS-wrapped payload: json(body)["Message"]. Raises ValueError/KeyError/TypeError."""
        return json.loads(self.body)['Message']


class ItemResult(NamedTuple):
    item_id: str
    state: ItemState
    book_id: Optional[str] = None
    reason: Optional[str] = None

    @classmethod
    def from_reconcile(cls, item_id: str, result: ReconcileResult) -> 'ItemResult':
        return cls(item_id, result.state, result.book.id if result.book else None, result.reason)

    @classmethod
    def rejected(cls, item_id: str, reason: str) -> 'ItemResult':
        return cls(item_id, ItemState.REJECTED, None, reason)


class BatchResult:
    """Tracks what happened to each item of one invocation.

    A fatal error marks the batch partial; the messages that were not fully
    processed are reported back so the queue can redeliver them.
    """

    def __init__(self, name: str):
        self.name = name
        self.items: List[ItemResult] = []
        self.failed_message_ids: List[str] = []
        self.partial = False
        self.error: Optional[str] = None

    def add(self, item: ItemResult) -> ItemResult:
        self.items.append(item)
        if item.state == ItemState.REJECTED:
            logger.info(f"[{self.name}] skipped {item.item_id}: {item.reason}")
        else:
            logger.info(f"[{self.name}] {item.item_id}: {item.state.value} (book {item.book_id})")
        return item

    def abort(self, error: Exception, message_ids: Optional[List[str]] = None) -> None:
        self.partial = True
        self.error = f"{type(error).__name__}: {error}"
        for message_id in message_ids or []:
            if message_id not in self.failed_message_ids:
                self.failed_message_ids.append(message_id)
        logger.error(f"[{self.name}] aborted after {len(self.items)} items: {self.error}", exc_info=error)

    def count(self, state: ItemState) -> int:
        return sum(1 for item in self.items if item.state == state)

    @property
    def inserted(self) -> int:
        return self.count(ItemState.INSERTED)

    @property
    def rejected(self) -> int:
        return self.count(ItemState.REJECTED)

    def summary(self) -> Dict[str, int]:
        return {state.value: self.count(state) for state in ItemState if self.count(state)}

    def to_dict(self) -> Dict[str, Any]:
        return {
            'pipeline': self.name,
            'partial': self.partial,
            'error': self.error,
            'summary': self.summary(),
            'items': [
                {
                    'id': item.item_id,
                    'state': item.state.value,
                    'bookId': item.book_id,
                    'reason': item.reason,
                }
                for item in self.items
            ],
            'batchItemFailures': [
                {'itemIdentifier': message_id} for message_id in self.failed_message_ids
            ],
        }
