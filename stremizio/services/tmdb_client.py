"""
TMDB Client
Turns a Stremio id (tt1234567 or tt1234567:1:2) into a searchable title
"""
import logging
import re
from typing import Optional, Tuple

import requests

from ..models.search_request import MediaMeta, MediaType

logger = logging.getLogger(__name__)

_IMDB_ID_RE = re.compile(r"^tt\d+$")


class TmdbClient:
    """Single-call TMDB /find wrapper; every failure falls back to the raw id"""

    BASE_URL = "https://api.themoviedb.org/3"

    def __init__(self, settings=None):
        self.settings = settings

    def _setting(self, key: str, default):
        if self.settings is None:
            return default
        value = self.settings.get(key, default)
        return default if value in (None, "") else value

    def _timeout(self) -> float:
        try:
            return float(self._setting("source_request_timeout_seconds", 4.0))
        except (TypeError, ValueError):
            return 4.0

    @staticmethod
    def split_id(media_type: MediaType, raw_id: str) -> Tuple[str, Optional[int], Optional[int]]:
        """Split "tt123:1:2" into ("tt123", 1, 2) for series; movies keep the id whole."""
        raw_id = str(raw_id or "").strip()
        if media_type != MediaType.SERIES or ":" not in raw_id:
            return raw_id, None, None
        parts = raw_id.split(":")
        season = episode = None
        try:
            if len(parts) > 1:
                season = int(parts[1])
            if len(parts) > 2:
                episode = int(parts[2])
        except ValueError:
            return raw_id, None, None
        return parts[0], season, episode

    def resolve(self, media_type: MediaType, raw_id: str, api_key: Optional[str] = None) -> MediaMeta:
        """
        Resolve an id to title/year (+ season/episode for series).

        Without an API key, or on any TMDB failure, the bare id is used as the
        title so the search still runs (reduced functionality, not an error).
        """
        base_id, season, episode = self.split_id(media_type, raw_id)
        fallback = MediaMeta(title=base_id, season=season, episode=episode)

        api_key = (api_key or self._setting("tmdb_api_key", "") or "").strip()
        if not _IMDB_ID_RE.match(base_id):
            return fallback
        if not api_key:
            logger.info("No TMDB key configured; searching by raw id %s", base_id)
            return fallback

        base_url = str(self._setting("tmdb_api_url", self.BASE_URL)).rstrip("/")
        try:
            response = requests.get(
                f"{base_url}/find/{base_id}",
                params={
                    "api_key": api_key,
                    "external_source": "imdb_id",
                    "language": self._setting("tmdb_language", "it-IT"),
                },
                timeout=self._timeout(),
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("TMDB lookup failed for %s: %s", base_id, e)
            return fallback

        key, title_field, date_field = ("movie_results", "title", "release_date")
        if media_type == MediaType.SERIES:
            key, title_field, date_field = ("tv_results", "name", "first_air_date")
        rows = data.get(key) if isinstance(data, dict) else None
        if not rows:
            return fallback

        first = rows[0] or {}
        title = str(first.get(title_field) or "").strip()
        if not title:
            return fallback
        date = str(first.get(date_field) or "")
        year = date[:4] if len(date) >= 4 and date[:4].isdigit() else None
        return MediaMeta(title=title, year=year, season=season, episode=episode)
