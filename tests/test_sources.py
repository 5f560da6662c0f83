import threading
import time
import unittest

from stremizio.models.search_request import MediaType
from stremizio.sources.apibay import ApiBaySource
from stremizio.sources.corsaro import CorsaroNeroSource
from stremizio.sources.knaben import KnabenSource
from stremizio.sources.x1337 import X1337Source


HASH_1 = "1" * 40
HASH_2 = "2" * 40
HASH_3 = "C" * 40


class _FakeFetcher:
    """URL -> canned body; anything not listed behaves like an unreachable page."""

    def __init__(self, pages, delays=None):
        self.pages = dict(pages)
        self.delays = dict(delays or {})
        self.calls = []
        self._lock = threading.Lock()

    def get(self, url, as_json=False):
        with self._lock:
            self.calls.append(url)
        delay = self.delays.get(url)
        if delay:
            time.sleep(delay)
        return self.pages.get(url)


class _Settings:
    def __init__(self, values):
        self.values = dict(values)

    def get(self, key, default=None):
        return self.values.get(key, default)


def _magnet_page(info_hash):
    return f'<html><body><a class="btn" href="magnet:?xt=urn:btih:{info_hash}&dn=x">Magnet</a></body></html>'


CORSARO_LISTING = """
<table><tbody>
<tr><td>Film</td><td><a class="tab" href="/torrent/1/dune">Dune (2021) iTA 1080p</a></td><td>x</td>
    <td>2.3 GB</td><td><span class="text-green-500">120</span></td></tr>
<tr><td>Film</td><td><a class="tab" href="/torrent/2/dune-4k">Dune 2021 2160p</a></td><td>x</td>
    <td>15 GB</td><td><span class="text-green-500">40</span></td></tr>
<tr><td>Film</td><td><a class="tab" href="/torrent/3/broken">Dune broken</a></td><td>x</td>
    <td>1 GB</td><td><span class="text-green-500">5</span></td></tr>
<tr><td>no link here</td></tr>
</tbody></table>
"""


class TestCorsaroNeroSource(unittest.TestCase):
    BASE = "https://ilcorsaronero.link"

    def _fetcher(self, delays=None):
        return _FakeFetcher(
            {
                f"{self.BASE}/search?q=Dune%202021&cat=film": CORSARO_LISTING,
                f"{self.BASE}/torrent/1/dune": _magnet_page(HASH_1),
                f"{self.BASE}/torrent/2/dune-4k": _magnet_page(HASH_2),
            },
            delays,
        )

    def test_listing_and_details_keep_listing_order(self):
        # First detail page answers last; order must still follow the listing.
        fetcher = self._fetcher(delays={f"{self.BASE}/torrent/1/dune": 0.2})
        source = CorsaroNeroSource(fetcher=fetcher)

        results = source.search("Dune 2021", MediaType.MOVIE, "2021")

        self.assertEqual([c.display_title for c in results], ["Dune 2021 iTA 1080p", "Dune 2021 2160p"])
        self.assertTrue(results[0].magnet_or_detail_ref.startswith(f"magnet:?xt=urn:btih:{HASH_1}"))
        self.assertEqual(results[0].size_text, "2.3 GB")
        self.assertEqual(results[0].seeder_count, 120)
        self.assertEqual(results[1].seeder_count, 40)
        self.assertTrue(all(c.provider_name == "CorsaroNero" for c in results))

    def test_unlocalized_titles_are_kept(self):
        source = CorsaroNeroSource(fetcher=self._fetcher())
        results = source.search("Dune 2021", MediaType.MOVIE)
        self.assertIn("Dune 2021 2160p", [c.display_title for c in results])

    def test_detail_fetches_are_capped(self):
        fetcher = self._fetcher()
        source = CorsaroNeroSource(settings=_Settings({"corsaro_max_results": 1}), fetcher=fetcher)
        results = source.search("Dune 2021", MediaType.MOVIE)
        self.assertEqual(len(results), 1)
        self.assertNotIn(f"{self.BASE}/torrent/2/dune-4k", fetcher.calls)

    def test_series_query_uses_season_grammar(self):
        fetcher = _FakeFetcher({})
        source = CorsaroNeroSource(fetcher=fetcher)
        self.assertEqual(source.search("Breaking Bad S02E05", MediaType.SERIES), [])
        self.assertEqual(fetcher.calls, [f"{self.BASE}/search?q=Breaking%20Bad%20Stagione%202&cat=serie-tv"])
        self.assertTrue(source.last_error)


X1337_LISTING = """
<table class="table-list"><tbody>
<tr>
  <td class="coll-1 name"><a href="/sub/42/0/" class="icon"></a><a href="/torrent/101/Dune-2021-iTA/">Dune.2021.iTA-ENG.1080p</a></td>
  <td class="coll-2 seeds">55</td><td class="coll-3 leeches">3</td><td class="coll-date">Jan. 1st</td>
  <td class="coll-4 size">2.1 GB<span class="seeds">55</span></td>
</tr>
<tr>
  <td class="coll-1 name"><a href="/torrent/102/Dune-2021/">Dune.2021.1080p.WEB</a></td>
  <td class="coll-2 seeds">900</td><td class="coll-3 leeches">30</td><td class="coll-date">Jan. 1st</td>
  <td class="coll-4 size">4.0 GB<span class="seeds">900</span></td>
</tr>
</tbody></table>
"""


class TestX1337Source(unittest.TestCase):
    BASE = "https://1337x.to"

    def test_filters_before_fetching_details(self):
        fetcher = _FakeFetcher(
            {
                f"{self.BASE}/category-search/Dune%202021/Movies/1/": X1337_LISTING,
                f"{self.BASE}/torrent/101/Dune-2021-iTA/": _magnet_page(HASH_1),
                f"{self.BASE}/torrent/102/Dune-2021/": _magnet_page(HASH_2),
            }
        )
        source = X1337Source(fetcher=fetcher)

        results = source.search("Dune 2021", MediaType.MOVIE, "2021")

        self.assertEqual(len(results), 1)
        self.assertEqual(results[0].display_title, "Dune.2021.iTA-ENG.1080p")
        self.assertEqual(results[0].seeder_count, 55)
        self.assertEqual(results[0].size_text, "2.1 GB")
        self.assertNotIn(f"{self.BASE}/torrent/102/Dune-2021/", fetcher.calls)

    def test_year_hint_appended_and_tv_category(self):
        fetcher = _FakeFetcher({})
        source = X1337Source(fetcher=fetcher)
        self.assertEqual(source.search("Dune", MediaType.SERIES, "2021"), [])
        self.assertEqual(fetcher.calls, [f"{self.BASE}/category-search/Dune%202021/TV/1/"])

    def test_failed_detail_page_is_dropped(self):
        fetcher = _FakeFetcher({f"{self.BASE}/category-search/Dune/Movies/1/": X1337_LISTING})
        source = X1337Source(fetcher=fetcher)
        self.assertEqual(source.search("Dune", MediaType.MOVIE), [])


class TestApiBaySource(unittest.TestCase):
    URL = "https://apibay.org/q.php?q=Dune&cat=200"

    def test_rows_become_synthesized_magnets(self):
        rows = [
            {"name": "Dune.2021.iTA.1080p", "info_hash": HASH_3.lower(), "size": "2147483648", "seeders": "77"},
            {"name": "Dune.2021.1080p", "info_hash": HASH_2, "size": "1", "seeders": "500"},
            {"name": "Dune ITA placeholder", "info_hash": "0" * 40, "size": "0", "seeders": "0"},
        ]
        source = ApiBaySource(fetcher=_FakeFetcher({self.URL: rows}))

        results = source.search("Dune", MediaType.MOVIE)

        self.assertEqual(len(results), 1)
        candidate = results[0]
        self.assertTrue(candidate.magnet_or_detail_ref.startswith(f"magnet:?xt=urn:btih:{HASH_3}&dn="))
        self.assertIn("&tr=", candidate.magnet_or_detail_ref)
        self.assertEqual(candidate.size_text, "2.00 GB")
        self.assertEqual(candidate.seeder_count, 77)

    def test_no_results_sentinel(self):
        rows = [{"name": "No results returned", "info_hash": "0" * 40, "size": "0", "seeders": "0"}]
        source = ApiBaySource(fetcher=_FakeFetcher({self.URL: rows}))
        self.assertEqual(source.search("Dune", MediaType.MOVIE), [])
        self.assertEqual(source.last_error, "")

    def test_unavailable_and_unexpected_payloads(self):
        source = ApiBaySource(fetcher=_FakeFetcher({}))
        self.assertEqual(source.search("Dune", MediaType.MOVIE), [])
        self.assertTrue(source.last_error)

        source = ApiBaySource(fetcher=_FakeFetcher({self.URL: {"error": "nope"}}))
        self.assertEqual(source.search("Dune", MediaType.MOVIE), [])


KNABEN_PAGE = f"""
<table><tbody>
<tr><td>Movies</td><td><a href="/details/1">Dune 2021 iTA 1080p</a></td><td>2.5 GB</td><td>2024-01-01</td>
    <td>1,200</td><td><a href="magnet:?xt=urn:btih:{HASH_1}">m</a></td></tr>
<tr><td>Movies</td><td><a href="/details/2">Dune 2021 1080p</a></td><td>2.0 GB</td><td>2024-01-01</td>
    <td>800</td><td><a href="magnet:?xt=urn:btih:{HASH_2}">m</a></td></tr>
<tr><td>Movies</td><td><a href="/details/3">Dune ITA no magnet</a></td><td>1.0 GB</td><td>2024-01-01</td>
    <td>10</td><td></td></tr>
</tbody></table>
"""


class TestKnabenSource(unittest.TestCase):
    URL = "https://knaben.org/search/Dune%202021/0/1/seeders"

    def test_rows_carry_magnets(self):
        fetcher = _FakeFetcher({self.URL: KNABEN_PAGE})
        source = KnabenSource(fetcher=fetcher)

        results = source.search("Dune 2021", MediaType.MOVIE)

        self.assertEqual(len(results), 1)
        self.assertEqual(results[0].display_title, "Dune 2021 iTA 1080p")
        self.assertEqual(results[0].size_text, "2.5 GB")
        self.assertEqual(results[0].seeder_count, 1200)
        self.assertEqual(fetcher.calls, [self.URL])

    def test_unavailable(self):
        source = KnabenSource(fetcher=_FakeFetcher({}))
        self.assertEqual(source.search("Dune 2021", MediaType.MOVIE), [])
        self.assertTrue(source.last_error)


if __name__ == "__main__":
    unittest.main()
