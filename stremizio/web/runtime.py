"""Runtime bootstrap for the Stremizio web API."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import os
from typing import Optional

from ..core.event_bus import EventBus
from ..core.http_fetcher import HttpFetcher
from ..core.search_stats import SearchStats
from ..core.settings_manager import SettingsManager
from ..core.stream_manager import ScoreWeights, StreamManager
from ..services.tmdb_client import TmdbClient
from ..sources.apibay import ApiBaySource
from ..sources.corsaro import CorsaroNeroSource
from ..sources.knaben import KnabenSource
from ..sources.x1337 import X1337Source

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass
class StremizioRuntime:
    """Shared service graph used by web endpoints."""

    settings: SettingsManager
    event_bus: EventBus
    fetcher: HttpFetcher
    stream_manager: StreamManager
    tmdb: TmdbClient
    search_stats: SearchStats


def configure_logging(level: Optional[str] = None) -> None:
    level_name = str(level or os.environ.get("STREMIZIO_LOG_LEVEL", "INFO") or "INFO").upper()
    logging.basicConfig(level=getattr(logging, level_name, logging.INFO), format=LOG_FORMAT)


def build_runtime(settings: Optional[SettingsManager] = None) -> StremizioRuntime:
    """Create and wire core services; sources are dispatched in registration order."""

    configure_logging()
    settings = settings or SettingsManager()
    event_bus = EventBus()
    fetcher = HttpFetcher(timeout=float(settings.get("source_request_timeout_seconds", 4.0) or 4.0))
    options = {
        "search_timeout_seconds": float(settings.get("search_timeout_seconds", 9.0) or 9.0),
        "trusted_provider": settings.get("trusted_provider", "CorsaroNero"),
        "binge_group_namespace": settings.get("binge_group_namespace", "stremizio"),
    }
    stream_manager = StreamManager(event_bus, options=options, weights=ScoreWeights.from_settings(settings))

    stream_manager.register(CorsaroNeroSource(settings, fetcher))
    stream_manager.register(X1337Source(settings, fetcher))
    stream_manager.register(ApiBaySource(settings, fetcher))
    stream_manager.register(KnabenSource(settings, fetcher))

    enabled_sources = settings.get("enabled_sources", {})
    if enabled_sources:
        for source_name, enabled in enabled_sources.items():
            stream_manager.enable_source(source_name, enabled)
    logger.info("Sources enabled: %s", ", ".join(stream_manager.get_enabled_sources()) or "none")

    return StremizioRuntime(
        settings=settings,
        event_bus=event_bus,
        fetcher=fetcher,
        stream_manager=stream_manager,
        tmdb=TmdbClient(settings),
        search_stats=SearchStats(event_bus),
    )
