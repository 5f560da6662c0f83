"""
Il Corsaro Nero Search Source
Italian-curated index: listing page, then parallel detail pages for magnets
"""
from typing import Dict, List, Optional
from urllib.parse import quote, urljoin
import logging

from bs4 import BeautifulSoup

from ..core.errors import MalformedContent
from ..models.search_request import MediaType
from ..models.stream_result import Candidate
from ..utils.text_utils import clean_title, season_query
from .base import BaseSource

logger = logging.getLogger(__name__)


class CorsaroNeroSource(BaseSource):
    """Il Corsaro Nero - every release is Italian, so no language filter"""

    name = "CorsaroNero"
    BASE_URL = "https://ilcorsaronero.link"
    requires_localization = False

    def __init__(self, settings=None, fetcher=None):
        super().__init__(settings, fetcher)
        self.base_url = self.BASE_URL
        self.reload_from_settings()

    def reload_from_settings(self):
        self.base_url = str(self._setting("corsaro_base_url", self.BASE_URL)).rstrip("/")
        self.max_results = int(self._setting("corsaro_max_results", 10))
        self.max_detail_fetches = int(self._setting("corsaro_max_detail_fetches", self.max_results))

    def search(self, query: str, media_type: MediaType, year_hint: Optional[str] = None) -> List[Candidate]:
        """
        Search Il Corsaro Nero

        1. Series queries use the site's "Stagione N" grammar
        2. Parse the listing table (title, detail link, size, seeds)
        3. Fetch all detail pages concurrently to recover magnets
        """
        self.last_error = ""
        q = season_query(query) if media_type == MediaType.SERIES else query
        category = "film" if media_type == MediaType.MOVIE else "serie-tv"
        url = f"{self.base_url}/search?q={quote(q)}&cat={category}"

        html = self.fetcher.get(url)
        if not html:
            self.last_error = "Listing page unavailable."
            logger.debug("%s listing unavailable: %s", self.name, url)
            return []

        soup = BeautifulSoup(html, "html.parser")
        rows = []
        for row in soup.select("tbody tr")[: self.max_results]:
            try:
                rows.append(self._parse_listing_row(row))
            except MalformedContent:
                continue

        return self._fetch_details(rows, self._build_candidate)

    def _parse_listing_row(self, row) -> Dict:
        link = row.select_one("a.tab")
        href = link.get("href", "") if link else ""
        if not href:
            raise MalformedContent("row without detail link")

        cells = row.find_all("td")
        size = cells[3].get_text(strip=True) if len(cells) > 3 else ""
        seeds_elem = row.select_one(".text-green-500")
        seeds = 0
        if seeds_elem:
            try:
                seeds = int(seeds_elem.get_text(strip=True))
            except ValueError:
                seeds = 0

        return {
            "title": clean_title(link.get_text()),
            "href": href,
            "size": size,
            "seeds": seeds,
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
        magnet_elem = soup.select_one('a[href^="magnet:"]')
        if magnet_elem:
            return magnet_elem["href"]
        # Older layout keeps the magnet button in the second full-width block.
        fallback = soup.select_one("div.w-full:nth-of-type(2) a")
        if fallback and fallback.get("href"):
            return fallback["href"]
        return ""
