# flock/providers/base.py

import logging
from enum import Enum
from typing import Any, List, NamedTuple, Optional, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ..utils.http import JsonDownloader, JsonResponse

T = TypeVar('T', bound=BaseModel)


class ProviderRecord(BaseModel):
    """Partial book/author data normalized from one provider response"""
    model_config = ConfigDict(frozen=True)

    title: Optional[str] = None
    author_name: Optional[str] = None
    author_olid: Optional[str] = None
    isbn: Optional[str] = None
    olid: Optional[str] = None
    cover_url: Optional[str] = None
    description: str = ''
    raw_subjects: List[str] = Field(default_factory=list)
    subject_delimiter: str = ' / '


class ProviderStatus(str, Enum):
    OK = "OK"
    NOT_FOUND = "NOT_FOUND"
    MALFORMED = "MALFORMED"
    REJECTED = "REJECTED"   # Usable data that fails a content-quality filter


class ProviderResult(NamedTuple):
    status: ProviderStatus
    record: Optional[ProviderRecord] = None
    reason: Optional[str] = None

    @classmethod
    def ok(cls, record: ProviderRecord) -> 'ProviderResult':
        return cls(ProviderStatus.OK, record)

    @classmethod
    def not_found(cls, reason: str = 'not found') -> 'ProviderResult':
        return cls(ProviderStatus.NOT_FOUND, None, reason)

    @classmethod
    def malformed(cls, reason: str) -> 'ProviderResult':
        return cls(ProviderStatus.MALFORMED, None, reason)

    @classmethod
    def rejected(cls, reason: str) -> 'ProviderResult':
        return cls(ProviderStatus.REJECTED, None, reason)

    @property
    def is_ok(self) -> bool:
        return self.status == ProviderStatus.OK


class ProviderModel(BaseModel):
    """Base for provider response schemas; unknown fields are ignored"""
    model_config = ConfigDict(extra='ignore')


class BaseProvider:
    """Base class for provider adapters providing common functionality."""

    name = 'provider'

    def __init__(self, downloader: Optional[JsonDownloader] = None):
        """
        Initialize the adapter.

        Args:
            downloader: Shared HTTP client; a default one is created if omitted
        """
        self.downloader = downloader or JsonDownloader()
        self._setup_logging()

    def _setup_logging(self):
        """Set up logging for the adapter."""
        self.logger = logging.getLogger(self.__class__.__name__)

    def get(self, url: str, headers: Optional[dict] = None) -> JsonResponse:
        return self.downloader.get_json(url, headers=headers)

    def parse(self, model: Type[T], data: Any) -> Optional[T]:
        """
        Validate a JSON payload against a response schema.

        Args:
            model: The pydantic schema for this response
            data: Decoded JSON

        Returns:
            The parsed model, or None if the payload does not fit the schema.
        """
        if data is None:
            return None
        try:
            return model.model_validate(data)
        except ValidationError as e:
            self.logger.warning(f"{self.name} response did not match {model.__name__}: {e.error_count()} errors")
            return None

    def fetch(self, url: str, model: Type[T], headers: Optional[dict] = None):
        """GET + parse. Returns (parsed, ProviderResult-on-failure)."""
        response = self.get(url, headers=headers)
        if response.malformed:
            return None, ProviderResult.malformed(f"invalid JSON from {url}")
        if not response.success:
            return None, ProviderResult.not_found(f"status {response.status_code} for {url}")
        parsed = self.parse(model, response.data)
        if parsed is None:
            return None, ProviderResult.malformed(f"unexpected shape from {url}")
        return parsed, None
