"""
Knaben Search Source
Meta-index whose result rows already carry magnet links
"""
from typing import List, Optional
from urllib.parse import quote
import logging

from bs4 import BeautifulSoup

from ..core.errors import MalformedContent
from ..models.search_request import MediaType
from ..models.stream_result import Candidate
from ..utils.text_utils import clean_title
from .base import BaseSource

logger = logging.getLogger(__name__)


class KnabenSource(BaseSource):
    """Knaben torrent meta-search, sorted by seeders"""

    name = "Knaben"
    BASE_URL = "https://knaben.org"

    def __init__(self, settings=None, fetcher=None):
        super().__init__(settings, fetcher)
        self.base_url = self.BASE_URL
        self.reload_from_settings()

    def reload_from_settings(self):
        self.base_url = str(self._setting("knaben_base_url", self.BASE_URL)).rstrip("/")
        self.max_results = int(self._setting("knaben_max_results", 10))

    def search(self, query: str, media_type: MediaType, year_hint: Optional[str] = None) -> List[Candidate]:
        self.last_error = ""
        url = f"{self.base_url}/search/{quote(query)}/0/1/seeders"
        html = self.fetcher.get(url)
        if not html:
            self.last_error = "Search page unavailable."
            logger.debug("%s search page unavailable: %s", self.name, url)
            return []

        soup = BeautifulSoup(html, "html.parser")
        results: List[Candidate] = []
        for row in soup.select("table tbody tr"):
            if len(results) >= self.max_results:
                break
            try:
                candidate = self._parse_row(row)
            except MalformedContent:
                continue
            if self._localized_only([candidate], lambda c: c.display_title):
                results.append(candidate)
        return results

    def _parse_row(self, row) -> Candidate:
        title_elem = row.select_one("td:nth-of-type(2) a")
        title = clean_title(title_elem.get_text()) if title_elem else ""
        magnet_elem = row.select_one('a[href^="magnet:"]')
        if not title or not magnet_elem:
            raise MalformedContent("row without title or magnet")

        cells = row.find_all("td")
        size = cells[2].get_text(strip=True) if len(cells) > 2 else ""
        seeds = 0
        if len(cells) > 4:
            try:
                seeds = int(cells[4].get_text(strip=True).replace(",", ""))
            except ValueError:
                seeds = 0

        return Candidate(
            provider_name=self.name,
            display_title=title,
            magnet_or_detail_ref=magnet_elem["href"],
            size_text=size,
            seeder_count=seeds,
        )
