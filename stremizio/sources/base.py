"""
Source SDK
Base interface for stream search sources.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, List, Optional, Sequence, TypeVar
import logging
import threading

from ..core.http_fetcher import HttpFetcher
from ..models.search_request import MediaType
from ..models.stream_result import Candidate
from ..utils.text_utils import is_localized

logger = logging.getLogger(__name__)

T = TypeVar("T")
R = TypeVar("R")


class BaseSource(ABC):
    """
    Stable source contract for built-in implementations.

    search() must never raise; a source that is down, slow or returns
    garbage contributes an empty list and sets last_error.
    """
    name = "UnnamedSource"
    # Sources whose index is not curated for Italian releases filter by title.
    requires_localization = True
    max_results = 10
    max_detail_fetches = 10

    def __init__(self, settings=None, fetcher: Optional[HttpFetcher] = None):
        self.settings = settings
        self.fetcher = fetcher or HttpFetcher()
        self._call_state = threading.local()

    @property
    def last_error(self) -> str:
        """Warning left by the last search() on the calling thread."""
        return getattr(self._call_state, "last_error", "")

    @last_error.setter
    def last_error(self, value: str) -> None:
        self._call_state.last_error = value or ""

    @abstractmethod
    def search(self, query: str, media_type: MediaType, year_hint: Optional[str] = None) -> List[Candidate]:
        """Return candidates for a cleaned query."""
        raise NotImplementedError

    def reload_from_settings(self) -> None:
        """Re-read base URL and caps; adapters call it from __init__."""
        return None

    def _setting(self, key: str, default):
        if self.settings is None:
            return default
        value = self.settings.get(key, default)
        return default if value is None else value

    def _localized_only(self, items: Sequence[T], title_of: Callable[[T], str]) -> List[T]:
        if not self.requires_localization:
            return list(items)
        return [item for item in items if is_localized(title_of(item))]

    def _fetch_details(self, items: Sequence[T], worker: Callable[[T], Optional[R]]) -> List[R]:
        """
        Run worker over items in parallel, one detail page each.

        Results keep the order of items regardless of completion order;
        None results (failed fetch, no magnet) are dropped.
        """
        if not items:
            return []

        def _safe(item: T) -> Optional[R]:
            try:
                return worker(item)
            except Exception as e:
                logger.debug("%s detail lookup failed: %s", self.name, e)
                return None

        workers = max(1, min(len(items), int(self.max_detail_fetches)))
        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(_safe, items))
        return [r for r in results if r is not None]
