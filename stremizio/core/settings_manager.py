"""
Settings Manager
Loads server-side add-on settings from the data directory
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional
import threading

from ..utils.text_utils import DEFAULT_TRACKERS

logger = logging.getLogger(__name__)


class SettingsManager:
    """Read-only view of settings.json merged over the defaults"""

    DEFAULT_SETTINGS = {
        # Sources, in dispatch order
        "enabled_sources": {
            "CorsaroNero": True,
            "1337x": True,
            "ApiBay": True,
            "Knaben": True,
        },
        "corsaro_base_url": "https://ilcorsaronero.link",
        "corsaro_max_results": 10,
        "x1337_base_url": "https://1337x.to",
        "x1337_max_results": 8,
        "apibay_api_url": "https://apibay.org/q.php",
        "apibay_max_results": 10,
        "knaben_base_url": "https://knaben.org",
        "knaben_max_results": 10,
        "trackers": list(DEFAULT_TRACKERS),

        # Timeouts
        "source_request_timeout_seconds": 4.0,
        "search_timeout_seconds": 9.0,

        # Ranking
        "trusted_provider": "CorsaroNero",
        "score_trusted_bonus": 50,
        "score_quality_bonus_4k": 40,
        "score_quality_bonus_1080p": 30,
        "score_seeder_cap": 50,

        # Output
        "binge_group_namespace": "stremizio",

        # External services
        "tmdb_api_url": "https://api.themoviedb.org/3",
        "tmdb_language": "it-IT",
        "tmdb_api_key": "",
        "rd_api_url": "https://api.real-debrid.com/rest/1.0",
        "rd_request_timeout_seconds": 12.0,
        "rd_poll_attempts": 5,
        "rd_poll_interval_seconds": 1.0,
    }

    def __init__(self, settings_dir: Optional[Path] = None):
        if settings_dir is None:
            data_dir = str(os.environ.get("STREMIZIO_DATA_DIR", "") or "").strip()
            settings_dir = Path(data_dir).expanduser() if data_dir else (Path.home() / ".stremizio")
        self.settings_dir = Path(settings_dir)
        self.settings_file = self.settings_dir / "settings.json"

        self._lock = threading.RLock()
        self._settings: Dict[str, Any] = {}
        self._load()

    def _defaults(self) -> Dict[str, Any]:
        return json.loads(json.dumps(self.DEFAULT_SETTINGS))

    def _load(self):
        """Load settings from file"""
        with self._lock:
            self._settings = self._defaults()
            if not self.settings_file.exists():
                return
            try:
                with open(self.settings_file, "r", encoding="utf-8") as f:
                    loaded = json.load(f)
            except (OSError, ValueError) as e:
                logger.warning("Error loading settings from %s: %s", self.settings_file, e)
                return
            if not isinstance(loaded, dict):
                logger.warning("Ignoring settings file %s: not a JSON object", self.settings_file)
                return
            self._settings.update(loaded)
            # Deep-merge source flags so new sources get default states.
            default_sources = self.DEFAULT_SETTINGS["enabled_sources"]
            loaded_sources = loaded.get("enabled_sources", {})
            if not isinstance(loaded_sources, dict):
                loaded_sources = {}
            self._settings["enabled_sources"] = {**default_sources, **loaded_sources}

    def get(self, key: str, default=None) -> Any:
        """Get a setting value"""
        with self._lock:
            return self._settings.get(key, default)
