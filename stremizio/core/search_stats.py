"""
Search Stats
Event-bus listener that keeps a short history of searches for /health
"""
from collections import deque
from typing import Any, Deque, Dict
import threading
import time

from .event_bus import EventBus, Events


class SearchStats:
    """Counts searches in flight and remembers the most recent outcomes"""

    def __init__(self, event_bus: EventBus, history: int = 20):
        self._lock = threading.Lock()
        self._recent: Deque[Dict[str, Any]] = deque(maxlen=max(1, int(history)))
        self.total = 0
        self.in_flight = 0
        self.empty = 0
        event_bus.subscribe(Events.SEARCH_STARTED, self._on_started)
        event_bus.subscribe(Events.SEARCH_COMPLETED, self._on_completed)

    def _on_started(self, payload: Dict[str, Any]):
        with self._lock:
            self.total += 1
            self.in_flight += 1

    def _on_completed(self, payload: Dict[str, Any]):
        entry = {
            "query": payload.get("query", ""),
            "media_type": payload.get("media_type", ""),
            "count": int(payload.get("count", 0)),
            "elapsed_ms": payload.get("elapsed_ms", 0.0),
            "warnings": sorted(payload.get("source_warnings") or {}),
            "at": time.time(),
        }
        with self._lock:
            self.in_flight = max(0, self.in_flight - 1)
            if entry["count"] == 0:
                self.empty += 1
            self._recent.appendleft(entry)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "total": self.total,
                "in_flight": self.in_flight,
                "empty": self.empty,
                "recent": list(self._recent),
            }
