"""
Stream Manager
Fans a search out to every source, then dedupes, scores and ranks the results
"""
from typing import Any, Dict, List, Optional, Tuple, Union
from dataclasses import dataclass
from concurrent.futures import ThreadPoolExecutor, wait
import logging
import threading
import time

from ..models.addon_config import AddonConfig
from ..models.search_request import MediaType, SearchRequest
from ..models.stream_result import Candidate, ResolvedItem
from ..sources.base import BaseSource
from ..utils.text_utils import QUALITY_1080P, QUALITY_4K, extract_content_hash
from .event_bus import EventBus, Events

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ScoreWeights:
    """Ranking weights; only their relative order is meaningful"""
    trusted_bonus: int = 50
    quality_bonus_4k: int = 40
    quality_bonus_1080p: int = 30
    seeder_cap: int = 50

    def __post_init__(self):
        if not self.trusted_bonus > self.quality_bonus_4k > self.quality_bonus_1080p > 0:
            raise ValueError(
                "Score weights must satisfy trusted_bonus > quality_bonus_4k > quality_bonus_1080p > 0"
            )
        if self.seeder_cap < 0:
            raise ValueError("seeder_cap must be >= 0")

    @classmethod
    def from_settings(cls, settings) -> "ScoreWeights":
        default = cls()
        return cls(
            trusted_bonus=int(settings.get("score_trusted_bonus", default.trusted_bonus)),
            quality_bonus_4k=int(settings.get("score_quality_bonus_4k", default.quality_bonus_4k)),
            quality_bonus_1080p=int(settings.get("score_quality_bonus_1080p", default.quality_bonus_1080p)),
            seeder_cap=int(settings.get("score_seeder_cap", default.seeder_cap)),
        )


@dataclass
class SourceHealth:
    attempts: int = 0
    successes: int = 0
    failures: int = 0
    empty_results: int = 0
    last_error: str = ""
    last_latency_ms: float = 0.0
    last_result_count: int = 0
    last_attempt_at: float = 0.0
    last_success_at: float = 0.0


class StreamManager:
    """Manages stream sources with concurrent search"""

    def __init__(
        self,
        event_bus: EventBus,
        options: Optional[Dict[str, Any]] = None,
        weights: Optional[ScoreWeights] = None,
    ):
        self.event_bus = event_bus
        self._sources: Dict[str, BaseSource] = {}
        self._enabled: Dict[str, bool] = {}
        self._lock = threading.RLock()
        self._health: Dict[str, SourceHealth] = {}

        options = options or {}
        self._search_timeout_seconds = float(options.get("search_timeout_seconds", 9.0))
        self.trusted_provider = str(options.get("trusted_provider", "CorsaroNero") or "")
        self.binge_namespace = str(options.get("binge_group_namespace", "stremizio") or "stremizio")
        self.weights = weights or ScoreWeights()

    def register(self, source):
        """Register a search source; dispatch order follows registration order"""
        if not isinstance(source, BaseSource):
            raise TypeError(f"Invalid source type for register(): {type(source)}. Expected BaseSource.")
        if not getattr(source, "name", ""):
            raise ValueError("Source must define non-empty 'name'.")
        with self._lock:
            self._sources[source.name] = source
            self._enabled[source.name] = True
            self._health.setdefault(source.name, SourceHealth())

    def enable_source(self, source_name: str, enabled: bool = True):
        """Enable or disable a source"""
        with self._lock:
            if source_name in self._enabled:
                self._enabled[source_name] = bool(enabled)

    def get_enabled_sources(self) -> List[str]:
        """Get enabled source names in dispatch order"""
        with self._lock:
            return [name for name, enabled in self._enabled.items() if enabled]

    def get_source_health_snapshot(self) -> Dict[str, Dict]:
        with self._lock:
            out = {}
            for name, h in self._health.items():
                out[name] = {
                    "enabled": bool(self._enabled.get(name, False)),
                    "attempts": h.attempts,
                    "successes": h.successes,
                    "failures": h.failures,
                    "empty_results": h.empty_results,
                    "last_error": h.last_error,
                    "last_latency_ms": round(h.last_latency_ms, 2),
                    "last_result_count": h.last_result_count,
                    "last_attempt_at": h.last_attempt_at,
                    "last_success_at": h.last_success_at,
                }
            return out

    def get_streams(
        self,
        query: str,
        media_type: Union[MediaType, str],
        config: Optional[AddonConfig] = None,
    ) -> List[Dict[str, Any]]:
        """
        Search every source and return Stremio stream objects, best first.
        An empty list is a normal outcome (no matches or every source down).
        """
        if not isinstance(media_type, MediaType):
            media_type = MediaType.parse(media_type)
        config = config or AddonConfig()
        ranked = self.search(SearchRequest(raw_query=query, media_type=media_type))
        if config.no_4k:
            ranked = self.filter_no_4k(ranked)
        return [
            item.to_stream(trusted_provider=self.trusted_provider, binge_namespace=self.binge_namespace)
            for item in ranked
        ]

    def search(self, request: SearchRequest) -> List[ResolvedItem]:
        """
        Concurrent multi-source search with deduplication

        1. Dispatch every enabled source at once on a pool owned by this call
        2. Wait for all to settle, bounded by the search timeout
        3. Flatten candidates in dispatch order
        4. Keep the first candidate per content hash, drop hash-less ones
        5. Score and sort (ties keep discovery order)
        """
        query = request.clean_query
        if not query:
            return []

        with self._lock:
            sources = [self._sources[name] for name in self.get_enabled_sources()]

        started = time.perf_counter()
        self.event_bus.emit(Events.SEARCH_STARTED, {
            "query": query,
            "media_type": request.media_type.value,
            "sources": [s.name for s in sources],
        })
        logger.info("Searching: %s [%s]", query, request.media_type.value)

        source_warnings: Dict[str, str] = {}
        per_source: List[List[Candidate]] = []
        if sources:
            # One worker per source; pools are never shared between searches.
            pool = ThreadPoolExecutor(max_workers=len(sources), thread_name_prefix="stremizio-source")
            try:
                submitted = [
                    (source.name, pool.submit(self._safe_search, source, query, request.media_type, request.year_hint))
                    for source in sources
                ]
                wait([f for _, f in submitted], timeout=max(0.1, self._search_timeout_seconds))
            finally:
                pool.shutdown(wait=False)

            for source_name, future in submitted:
                if future.done():
                    candidates, warning, latency_ms, ok = future.result()
                else:
                    candidates, latency_ms, ok = [], self._search_timeout_seconds * 1000.0, False
                    warning = (
                        f"{source_name} timed out after {self._search_timeout_seconds:g}s; "
                        "results from this source were skipped."
                    )
                if warning:
                    source_warnings[source_name] = warning
                self._record_source_outcome(source_name, ok, warning or "", latency_ms, len(candidates))
                per_source.append(candidates)

        flattened = [candidate for candidates in per_source for candidate in candidates]
        unique = self._deduplicate(flattened)
        for item in unique:
            item.score = self.score(item)
        ranked = self._sort_results(unique)

        elapsed_ms = (time.perf_counter() - started) * 1000.0
        logger.info(
            "Search %r: %d candidates, %d unique in %.0f ms, warnings=%s",
            query, len(flattened), len(ranked), elapsed_ms, sorted(source_warnings),
        )
        self.event_bus.emit(Events.SEARCH_COMPLETED, {
            "query": query,
            "media_type": request.media_type.value,
            "count": len(ranked),
            "candidates": len(flattened),
            "elapsed_ms": round(elapsed_ms, 2),
            "source_warnings": source_warnings,
        })
        return ranked

    def _safe_search(
        self,
        source: BaseSource,
        query: str,
        media_type: MediaType,
        year_hint: Optional[str],
    ) -> Tuple[List[Candidate], Optional[str], float, bool]:
        """
        Execute one source search exactly once.
        Returns: candidates, warning, latency_ms, ok
        """
        start = time.perf_counter()
        try:
            candidates = list(source.search(query, media_type, year_hint) or [])
        except Exception as e:
            latency_ms = (time.perf_counter() - start) * 1000.0
            logger.warning("Source %s failed: %s", source.name, e)
            return [], str(e) or type(e).__name__, latency_ms, False
        latency_ms = (time.perf_counter() - start) * 1000.0
        # last_error is per thread, so this reads this call's outcome only.
        warning = source.last_error
        ok = not (warning and not candidates)
        return candidates, (warning or None), latency_ms, ok

    def _record_source_outcome(self, source_name: str, ok: bool, error_message: str, latency_ms: float, count: int):
        with self._lock:
            h = self._health.setdefault(source_name, SourceHealth())
            h.attempts += 1
            h.last_attempt_at = time.time()
            h.last_latency_ms = float(latency_ms or 0.0)
            h.last_result_count = count
            if ok:
                h.successes += 1
                h.last_error = ""
                h.last_success_at = h.last_attempt_at
                if count == 0:
                    h.empty_results += 1
            else:
                h.failures += 1
                h.last_error = error_message

    def _deduplicate(self, candidates: List[Candidate]) -> List[ResolvedItem]:
        """
        Deduplicate by content hash; the first candidate seen wins outright.
        Candidates without a resolvable hash are dropped.
        """
        unique: Dict[str, ResolvedItem] = {}
        for index, candidate in enumerate(candidates):
            content_hash = extract_content_hash(candidate.magnet_or_detail_ref)
            if not content_hash or content_hash in unique:
                continue
            unique[content_hash] = ResolvedItem.from_candidate(candidate, content_hash, index)
        return list(unique.values())

    def score(self, item: ResolvedItem) -> int:
        """Trust bonus, then quality bonus, then capped seeders."""
        w = self.weights
        score = 0
        if self.trusted_provider and item.provider_name == self.trusted_provider:
            score += w.trusted_bonus
        quality = item.quality
        if quality == QUALITY_4K:
            score += w.quality_bonus_4k
        elif quality == QUALITY_1080P:
            score += w.quality_bonus_1080p
        score += min(max(0, item.seeder_count), w.seeder_cap)
        return score

    def _sort_results(self, results: List[ResolvedItem]) -> List[ResolvedItem]:
        """Descending score; equal scores keep discovery order."""
        return sorted(results, key=lambda r: (-r.score, r.discovery_index))

    @staticmethod
    def filter_no_4k(results: List[ResolvedItem]) -> List[ResolvedItem]:
        return [r for r in results if r.quality != QUALITY_4K]
