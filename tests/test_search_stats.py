import unittest

from stremizio.core.event_bus import EventBus, Events
from stremizio.core.search_stats import SearchStats


class TestEventBus(unittest.TestCase):
    def test_failing_handler_does_not_stop_delivery(self):
        bus = EventBus()
        seen = []

        def _broken(payload):
            raise RuntimeError("handler bug")

        bus.subscribe(Events.SEARCH_COMPLETED, _broken)
        bus.subscribe(Events.SEARCH_COMPLETED, seen.append)
        bus.subscribe(Events.SEARCH_COMPLETED, seen.append)

        delivered = bus.emit(Events.SEARCH_COMPLETED, {"count": 3})

        self.assertEqual(delivered, 1)
        self.assertEqual(seen, [{"count": 3}])

    def test_emit_without_subscribers(self):
        self.assertEqual(EventBus().emit(Events.SEARCH_STARTED), 0)


class TestSearchStats(unittest.TestCase):
    def test_tracks_in_flight_and_recent_searches(self):
        bus = EventBus()
        stats = SearchStats(bus, history=2)

        bus.emit(Events.SEARCH_STARTED, {"query": "Dune"})
        self.assertEqual(stats.snapshot()["in_flight"], 1)

        bus.emit(Events.SEARCH_COMPLETED, {
            "query": "Dune",
            "media_type": "movie",
            "count": 0,
            "elapsed_ms": 12.5,
            "source_warnings": {"Knaben": "down", "ApiBay": "down"},
        })
        for query in ("Alien", "Heat"):
            bus.emit(Events.SEARCH_STARTED, {"query": query})
            bus.emit(Events.SEARCH_COMPLETED, {"query": query, "count": 4})

        snapshot = stats.snapshot()
        self.assertEqual(snapshot["total"], 3)
        self.assertEqual(snapshot["in_flight"], 0)
        self.assertEqual(snapshot["empty"], 1)
        self.assertEqual([entry["query"] for entry in snapshot["recent"]], ["Heat", "Alien"])

    def test_warnings_are_listed_by_source(self):
        bus = EventBus()
        stats = SearchStats(bus)
        bus.emit(Events.SEARCH_COMPLETED, {"query": "Dune", "source_warnings": {"Knaben": "x", "ApiBay": "y"}})
        self.assertEqual(stats.snapshot()["recent"][0]["warnings"], ["ApiBay", "Knaben"])


if __name__ == "__main__":
    unittest.main()
