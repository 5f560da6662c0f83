"""
Event Bus
Synchronous fan-out of search lifecycle events to in-process listeners
"""
from collections import defaultdict
from typing import Any, Callable, DefaultDict, Dict, List, Optional
import logging
import threading

logger = logging.getLogger(__name__)

Handler = Callable[[Dict[str, Any]], None]


class Events:
    SEARCH_STARTED = "search_started"
    SEARCH_COMPLETED = "search_completed"


class EventBus:
    """Handlers run on the emitting thread; a failing handler never reaches the emitter"""

    def __init__(self):
        self._handlers: DefaultDict[str, List[Handler]] = defaultdict(list)
        self._lock = threading.Lock()

    def subscribe(self, event_type: str, handler: Handler):
        with self._lock:
            if handler not in self._handlers[event_type]:
                self._handlers[event_type].append(handler)

    def emit(self, event_type: str, payload: Optional[Dict[str, Any]] = None) -> int:
        """Deliver payload to every handler; returns how many ran without error."""
        with self._lock:
            handlers = list(self._handlers.get(event_type, ()))
        delivered = 0
        for handler in handlers:
            try:
                handler(dict(payload or {}))
            except Exception:
                logger.exception("Handler %r failed on %s", handler, event_type)
                continue
            delivered += 1
        return delivered
