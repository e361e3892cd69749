# tests/utils.py
import json
from io import BytesIO
from typing import Any, Dict, Optional
from unittest.mock import Mock

from PIL import Image

from flock.pipelines.base import QueueMessage
from flock.providers.base import ProviderRecord
from flock.sa.models import UserBook
from flock.subjects import ISBNDB_DELIMITER
from flock.utils.http import JsonDownloader, JsonResponse

class Router:
    """Stands in for JsonDownloader.get_json: the first route whose key occurs
    in the URL answers; anything else is a 404."""

    def __init__(self, routes: Optional[Dict[str, Any]] = None):
        self.routes = dict(routes or {})
        self.calls = []

    def __call__(self, url: str, headers: Optional[dict] = None) -> JsonResponse:
        self.calls.append(url)
        for key, data in self.routes.items():
            if key in url:
                if isinstance(data, JsonResponse):
                    return data
                return JsonResponse(True, 200, data)
        return JsonResponse(False, 404, None)

    def called(self, fragment: str) -> int:
        return sum(1 for url in self.calls if fragment in url)

def mock_downloader(routes: Optional[Dict[str, Any]] = None, images: Optional[Dict[str, bytes]] = None) -> Mock:
    """A JsonDownloader mock with get_json routed by URL fragment"""
    downloader = Mock(spec=JsonDownloader)
    downloader.get_json.side_effect = Router(routes)
    images = images or {}
    downloader.get_bytes.side_effect = lambda url: images.get(url)
    return downloader

def add_user_book(session, user_id: str, book) -> UserBook:
    user_book = UserBook(user_id=user_id, book_id=book.id)
    session.add(user_book)
    session.commit()
    return user_book

def make_jpeg(width: int = 600, height: int = 900) -> bytes:
    """A noisy JPEG, well above the cover size threshold"""
    img = Image.effect_noise((width, height), 64).convert('RGB')
    output = BytesIO()
    img.save(output, format='JPEG', quality=95)
    return output.getvalue()

def sns_message(message_id, payload):
    """An SQS record body carrying an SNS notification"""
    if not isinstance(payload, str):
        payload = json.dumps(payload)
    return QueueMessage(message_id, json.dumps({'Message': payload}))

def isbndb_record(title, isbn, author='Frank Herbert'):
    return ProviderRecord(
        title=title, author_name=author, isbn=isbn,
        cover_url=f'https://images.isbndb.com/{isbn}.jpg', description=f'{title} synopsis',
        raw_subjects=['Fiction -> Fantasy'], subject_delimiter=ISBNDB_DELIMITER,
    )

def ol_record(title, olid, isbn=None, author='Frank Herbert', author_olid='OL1A'):
    return ProviderRecord(
        title=title, olid=olid, isbn=isbn, author_name=author, author_olid=author_olid,
        raw_subjects=['Fantasy'],
    )

