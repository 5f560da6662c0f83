"""
1337x Search Source
Category search with Italian-title filter, magnets pulled from detail pages
"""
from typing import Dict, List, Optional
from urllib.parse import quote, urljoin
import logging

from bs4 import BeautifulSoup

from ..core.errors import MalformedContent
from ..models.search_request import MediaType
from ..models.stream_result import Candidate
from ..utils.text_utils import clean_title
from .base import BaseSource

logger = logging.getLogger(__name__)


class X1337Source(BaseSource):
    """1337x torrent search source"""

    name = "1337x"
    BASE_URL = "https://1337x.to"

    def __init__(self, settings=None, fetcher=None):
        super().__init__(settings, fetcher)
        self.base_url = self.BASE_URL
        self.reload_from_settings()

    def reload_from_settings(self):
        self.base_url = str(self._setting("x1337_base_url", self.BASE_URL)).rstrip("/")
        self.max_results = int(self._setting("x1337_max_results", 8))
        self.max_detail_fetches = int(self._setting("x1337_max_detail_fetches", self.max_results))

    def search(self, query: str, media_type: MediaType, year_hint: Optional[str] = None) -> List[Candidate]:
        """
        Search 1337x for torrents

        1. Category search (Movies/TV), year appended for disambiguation
        2. Keep only Italian-tagged rows before touching detail pages
        3. Extract magnet links directly from detail pages, in parallel
        """
        self.last_error = ""
        q = query
        if year_hint and year_hint not in query:
            q = f"{query} {year_hint}"
        category = "Movies" if media_type == MediaType.MOVIE else "TV"
        url = f"{self.base_url}/category-search/{quote(q)}/{category}/1/"

        html = self.fetcher.get(url)
        if not html:
            self.last_error = "Search page unavailable."
            logger.debug("%s search page unavailable: %s", self.name, url)
            return []

        soup = BeautifulSoup(html, "html.parser")
        rows = []
        for row in soup.select("table.table-list tbody tr")[: self.max_results]:
            try:
                rows.append(self._parse_listing_row(row))
            except MalformedContent:
                continue

        rows = self._localized_only(rows, lambda r: r["title"])
        return self._fetch_details(rows, self._build_candidate)

    def _parse_listing_row(self, row) -> Dict:
        """Parse metadata from one search-row and return a detail-page candidate."""
        name_elem = row.select_one("a[href^='/torrent/']")
        if not name_elem or not name_elem.get("href"):
            raise MalformedContent("row without torrent link")

        seeds = 0
        seeds_elem = row.select_one(".coll-2")
        if seeds_elem:
            try:
                seeds = int(seeds_elem.get_text(strip=True))
            except ValueError:
                seeds = 0

        size_elem = row.select_one(".coll-4")
        # The size cell carries the uploader count in a nested span.
        size_text = ""
        if size_elem:
            for span in size_elem.find_all("span"):
                span.decompose()
            size_text = size_elem.get_text(strip=True)

        return {
            "title": clean_title(name_elem.get_text()),
            "href": name_elem["href"],
            "seeds": seeds,
            "size": size_text,
        }

    def _build_candidate(self, row: Dict) -> Optional[Candidate]:
        magnet = self._get_magnet_link(urljoin(self.base_url + "/", row["href"]))
        if not magnet:
            return None
        return Candidate(
            provider_name=self.name,
            display_title=row["title"],
            magnet_or_detail_ref=magnet,
            size_text=row["size"],
            seeder_count=row["seeds"],
        )

    def _get_magnet_link(self, detail_url: str) -> str:
        html = self.fetcher.get(detail_url)
        if not html:
            return ""
        soup = BeautifulSoup(html, "html.parser")
        magnet_elem = soup.select_one("a[href^='magnet:']")
        if magnet_elem:
            return magnet_elem["href"]
        return ""
