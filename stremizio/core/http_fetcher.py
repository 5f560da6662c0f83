"""
HTTP Fetcher
Single-attempt GET with a hard timeout and a uniform "unavailable" result
"""
from typing import Any, Optional
import logging
import random
import threading

import requests

from .errors import SourceUnavailable

logger = logging.getLogger(__name__)


USER_AGENTS = [
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/123.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/605.1.15 "
    "(KHTML, like Gecko) Version/17.2 Safari/605.1.15",
]


class HttpFetcher:
    """
    Bounded fetcher used by every source.

    get() never raises: a non-2xx status, a network error, a timeout or an
    undecodable JSON body all come back as None so callers treat "down" and
    "slow" the same way.
    """

    def __init__(self, timeout: float = 4.0, session: Optional[requests.Session] = None):
        self.timeout = float(timeout)
        self.session = session or requests.Session()
        self.session.headers.update({
            "Accept": "text/html,application/xhtml+xml,application/xml,application/json;q=0.9,*/*;q=0.8",
            "Accept-Language": "it-IT,it;q=0.9,en;q=0.8",
        })
        self._lock = threading.Lock()
        self.requests = 0
        self.failures = 0

    def get(self, url: str, as_json: bool = False) -> Optional[Any]:
        """Fetch url once; return text (or decoded JSON) or None when unavailable."""
        with self._lock:
            self.requests += 1
        try:
            return self._request(url, as_json)
        except SourceUnavailable as e:
            with self._lock:
                self.failures += 1
            logger.debug("Fetch unavailable (%s): %s", url, e)
            return None

    def _request(self, url: str, as_json: bool) -> Any:
        headers = {"User-Agent": random.choice(USER_AGENTS)}
        try:
            response = self.session.get(url, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            raise SourceUnavailable(str(e)) from e

        if not 200 <= response.status_code < 300:
            raise SourceUnavailable(f"Status {response.status_code}")

        if not as_json:
            return response.text
        try:
            return response.json()
        except ValueError as e:
            raise SourceUnavailable(f"Invalid JSON: {e}") from e

    def stats(self):
        with self._lock:
            return {"requests": self.requests, "failures": self.failures}
