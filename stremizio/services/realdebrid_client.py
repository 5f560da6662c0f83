"""
RealDebrid Client
Resolves a magnet to a direct playable URL using a user's API token
"""
import logging
import time
from typing import Any, Dict, List

import requests

from ..core.errors import DebridError
from ..utils.text_utils import DEFAULT_TRACKERS, synthesize_magnet

logger = logging.getLogger(__name__)


class RealDebridClient:
    """RealDebrid REST client authenticated with a personal API token"""

    BASE_URL = "https://api.real-debrid.com/rest/1.0"

    def __init__(self, api_key: str, settings=None):
        self.api_key = str(api_key or "").strip()
        self.settings = settings

    def _setting(self, key: str, default):
        if self.settings is None:
            return default
        value = self.settings.get(key, default)
        return default if value in (None, "") else value

    def _timeout(self) -> float:
        try:
            return float(self._setting("rd_request_timeout_seconds", 12.0))
        except (TypeError, ValueError):
            return 12.0

    def is_authenticated(self) -> bool:
        return bool(self.api_key)

    def _api_request(self, method: str, endpoint: str, **kwargs) -> requests.Response:
        """
        Make authenticated API request
        """
        if not self.is_authenticated():
            raise DebridError("Not authenticated")

        headers = kwargs.pop("headers", {})
        headers["Authorization"] = f"Bearer {self.api_key}"
        timeout = kwargs.pop("timeout", self._timeout())
        base_url = str(self._setting("rd_api_url", self.BASE_URL)).rstrip("/")

        try:
            response = requests.request(method, f"{base_url}/{endpoint}", headers=headers, timeout=timeout, **kwargs)
        except requests.RequestException as e:
            raise DebridError(f"RealDebrid request failed: {e}") from e
        if response.status_code >= 400:
            raise DebridError(f"RealDebrid {endpoint} failed ({response.status_code})")
        return response

    def _json(self, response: requests.Response) -> Dict[str, Any]:
        if response.status_code == 204:
            return {}
        try:
            data = response.json()
        except ValueError as e:
            raise DebridError(f"RealDebrid returned invalid JSON: {e}") from e
        return data if isinstance(data, dict) else {}

    def resolve_magnet(self, magnet: str) -> str:
        """
        Resolve magnet link to a direct download URL

        1. Add the magnet
        2. Select all files
        3. Poll until RealDebrid exposes links
        4. Unrestrict the first link
        """
        torrent = self._json(self._api_request("POST", "torrents/addMagnet", data={"magnet": magnet}))
        torrent_id = torrent.get("id")
        if not torrent_id:
            raise DebridError("Failed to add magnet")

        self._api_request("POST", f"torrents/selectFiles/{torrent_id}", data={"files": "all"})

        links = self._wait_for_links(torrent_id)
        if not links:
            raise DebridError("No download links available yet")

        unrestricted = self._json(self._api_request("POST", "unrestrict/link", data={"link": links[0]}))
        download_url = unrestricted.get("download")
        if not download_url:
            raise DebridError("Unrestrict returned no download URL")
        return download_url

    def _wait_for_links(self, torrent_id: str) -> List[str]:
        attempts = max(1, int(self._setting("rd_poll_attempts", 5)))
        interval = max(0.0, float(self._setting("rd_poll_interval_seconds", 1.0)))
        for attempt in range(attempts):
            info = self._json(self._api_request("GET", f"torrents/info/{torrent_id}"))
            status = info.get("status", "")
            if status in {"error", "magnet_error", "virus", "dead"}:
                raise DebridError(f"RealDebrid torrent status: {status}")
            links = [link for link in (info.get("links") or []) if link]
            if links:
                return links
            if attempt < attempts - 1:
                time.sleep(interval)
        logger.info("RealDebrid torrent %s has no links after %d polls", torrent_id, attempts)
        return []

    def resolve_hash(self, content_hash: str) -> str:
        """Resolve a bare infohash by wrapping it in a magnet with the default trackers."""
        return self.resolve_magnet(synthesize_magnet(content_hash, content_hash, DEFAULT_TRACKERS))
