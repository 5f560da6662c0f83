"""
ApiBay Search Source
ThePirateBay JSON dump: magnets are synthesized from the infohash, no detail pages
"""
from typing import List, Optional
from urllib.parse import quote
import logging

from ..core.errors import MalformedContent
from ..models.search_request import MediaType
from ..models.stream_result import Candidate
from ..utils.text_utils import DEFAULT_TRACKERS, format_size, synthesize_magnet
from .base import BaseSource

logger = logging.getLogger(__name__)

NO_RESULTS_NAME = "No results returned"
ZERO_HASH = "0" * 40
VIDEO_CATEGORY = 200


class ApiBaySource(BaseSource):
    """ThePirateBay API (apibay.org)"""

    name = "ApiBay"
    API_URL = "https://apibay.org/q.php"

    def __init__(self, settings=None, fetcher=None):
        super().__init__(settings, fetcher)
        self.api_url = self.API_URL
        self.trackers = list(DEFAULT_TRACKERS)
        self.reload_from_settings()

    def reload_from_settings(self):
        self.api_url = str(self._setting("apibay_api_url", self.API_URL))
        self.max_results = int(self._setting("apibay_max_results", 10))
        self.trackers = list(self._setting("trackers", DEFAULT_TRACKERS) or DEFAULT_TRACKERS)

    def search(self, query: str, media_type: MediaType, year_hint: Optional[str] = None) -> List[Candidate]:
        self.last_error = ""
        url = f"{self.api_url}?q={quote(query)}&cat={VIDEO_CATEGORY}"
        rows = self.fetcher.get(url, as_json=True)
        if not isinstance(rows, list):
            if rows is None:
                self.last_error = "API unavailable."
                logger.debug("%s API unavailable: %s", self.name, url)
            return []
        if not rows or (isinstance(rows[0], dict) and rows[0].get("name") == NO_RESULTS_NAME):
            return []

        rows = self._localized_only(
            [r for r in rows if isinstance(r, dict)],
            lambda r: str(r.get("name") or ""),
        )

        results: List[Candidate] = []
        for row in rows[: self.max_results]:
            try:
                results.append(self._parse_api_row(row))
            except MalformedContent:
                continue
        return results

    def _parse_api_row(self, row: dict) -> Candidate:
        name = str(row.get("name") or "").strip()
        infohash = str(row.get("info_hash") or "").strip().upper()
        if not name or not infohash or infohash == ZERO_HASH:
            raise MalformedContent("row without name or infohash")
        try:
            size = int(row.get("size") or 0)
            seeds = int(row.get("seeders") or 0)
        except (TypeError, ValueError) as e:
            raise MalformedContent(str(e)) from e

        return Candidate(
            provider_name=self.name,
            display_title=name,
            magnet_or_detail_ref=synthesize_magnet(infohash, name, self.trackers),
            size_text=format_size(size),
            seeder_count=seeds,
        )
