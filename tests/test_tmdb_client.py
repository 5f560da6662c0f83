import unittest
from unittest.mock import Mock, patch

import requests

from stremizio.models.search_request import MediaType
from stremizio.services.tmdb_client import TmdbClient


def _response(payload):
    response = Mock(status_code=200)
    response.json.return_value = payload
    response.raise_for_status.return_value = None
    return response


class TestTmdbClient(unittest.TestCase):
    def test_split_series_id(self):
        self.assertEqual(TmdbClient.split_id(MediaType.SERIES, "tt0903747:2:5"), ("tt0903747", 2, 5))
        self.assertEqual(TmdbClient.split_id(MediaType.MOVIE, "tt1160419"), ("tt1160419", None, None))
        self.assertEqual(TmdbClient.split_id(MediaType.SERIES, "tt1:x:y"), ("tt1:x:y", None, None))

    def test_without_key_uses_raw_id(self):
        client = TmdbClient()
        with patch("requests.get") as get:
            meta = client.resolve(MediaType.MOVIE, "tt1160419")
            self.assertFalse(get.called)
        self.assertEqual(meta.title, "tt1160419")
        self.assertEqual(meta.to_query(MediaType.MOVIE), "tt1160419")

    def test_movie_lookup(self):
        payload = {"movie_results": [{"title": "Dune", "release_date": "2021-09-15"}], "tv_results": []}
        client = TmdbClient()
        with patch("requests.get", return_value=_response(payload)) as get:
            meta = client.resolve(MediaType.MOVIE, "tt1160419", api_key="key")

        self.assertEqual(meta.to_query(MediaType.MOVIE), "Dune 2021")
        url = get.call_args.args[0]
        params = get.call_args.kwargs["params"]
        self.assertTrue(url.endswith("/find/tt1160419"))
        self.assertEqual(params["external_source"], "imdb_id")
        self.assertEqual(params["language"], "it-IT")

    def test_series_lookup_keeps_episode(self):
        payload = {"movie_results": [], "tv_results": [{"name": "Breaking Bad", "first_air_date": "2008-01-20"}]}
        client = TmdbClient()
        with patch("requests.get", return_value=_response(payload)):
            meta = client.resolve(MediaType.SERIES, "tt0903747:2:5", api_key="key")
        self.assertEqual(meta.to_query(MediaType.SERIES), "Breaking Bad S02E05")

    def test_failures_fall_back_to_raw_id(self):
        client = TmdbClient()
        with patch("requests.get", side_effect=requests.ConnectionError("down")):
            meta = client.resolve(MediaType.MOVIE, "tt1160419", api_key="key")
        self.assertEqual(meta.title, "tt1160419")

        with patch("requests.get", return_value=_response({"movie_results": []})):
            meta = client.resolve(MediaType.MOVIE, "tt1160419", api_key="key")
        self.assertEqual(meta.title, "tt1160419")


if __name__ == "__main__":
    unittest.main()
