import logging
from typing import Any, Dict, NamedTuple, Optional

import requests

from flock.utils.rate_limit import RateLimiter

logger = logging.getLogger(__name__)


class JsonResponse(NamedTuple):
    """Outcome of a GET. status_code is 0 when the request never completed."""
    success: bool
    status_code: int
    data: Any

    @property
    def malformed(self) -> bool:
        return self.status_code == 200 and not self.success


def build_url(base: str, params: Dict[str, Any]) -> str:
    """
    Join already-encoded query parameters onto a base URL.

    Values are used verbatim so provider queries built with url_encode()
    keep their '+' separators.
    """
    if not params:
        return base
    query = '&'.join(f"{key}={value}" for key, value in params.items())
    return f"{base}?{query}"


class JsonDownloader:
    def __init__(self, timeout: float = 10.0, rate_limit: bool = True,
                 session: Optional[requests.Session] = None):
        self.timeout = timeout
        self.session = session or requests.Session()
        self.rate_limiter = RateLimiter() if rate_limit else None

    def get_json(self, url: str, headers: Optional[Dict[str, str]] = None) -> JsonResponse:
        """
        GET a URL and decode the JSON body.

        Network errors and non-200 statuses come back as unsuccessful
        responses; they are never raised.
        """
        if self.rate_limiter:
            self.rate_limiter.wait(url)

        try:
            response = self.session.get(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"Request failed for {url}: {e}")
            return JsonResponse(False, 0, None)

        if response.status_code != 200:
            logger.info(f"Status {response.status_code} for {url}")
            return JsonResponse(False, response.status_code, None)

        try:
            return JsonResponse(True, response.status_code, response.json())
        except ValueError:
            logger.warning(f"Invalid JSON response from {url}")
            return JsonResponse(False, response.status_code, None)

    def get_bytes(self, url: str) -> Optional[bytes]:
        """Download raw bytes (cover images). None on any failure"""
        try:
            response = self.session.get(url, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"Download failed for {url}: {e}")
            return None

        if not response.ok:
            logger.info(f"Status {response.status_code} downloading {url}")
            return None
        return response.content

    def post_json(self, url: str, payload: Dict[str, Any],
                  headers: Optional[Dict[str, str]] = None) -> JsonResponse:
        try:
            response = self.session.post(url, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning(f"POST failed for {url}: {e}")
            return JsonResponse(False, 0, None)

        if response.status_code != 200:
            logger.warning(f"Status {response.status_code} for POST {url}")
            return JsonResponse(False, response.status_code, None)

        try:
            return JsonResponse(True, response.status_code, response.json())
        except ValueError:
            logger.warning(f"Invalid JSON response from {url}")
            return JsonResponse(False, response.status_code, None)
