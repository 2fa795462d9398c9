"""
Tests for the TMDB catalog client and its caches.
"""

import unittest

import httpx

from filmshare.services.tmdb_client import MovieRecord, TMDBClient, TTLCache

MOVIE_PAYLOAD = {
    "id": 603,
    "title": "The Matrix",
    "genres": [{"id": 28, "name": "Action"}, {"id": 878, "name": "Science Fiction"}],
    "popularity": 83.1,
    "vote_average": 8.2,
    "release_date": "1999-03-30",
    "original_language": "en",
    "credits": {
        "cast": [{"name": f"Actor {i}"} for i in range(15)],
        "crew": [
            {"name": "Lana Wachowski", "job": "Director"},
            {"name": "Bill Pope", "job": "Director of Photography"},
        ],
    },
    "keywords": {"keywords": [{"name": "simulated reality"}]},
}

GENRES_PAYLOAD = {"genres": [{"id": 28, "name": "Action"}, {"id": 18, "name": "Drama"}]}


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestTTLCache(unittest.TestCase):

    def test_expiry(self):
        clock = FakeClock()
        cache = TTLCache(10, clock=clock)
        cache.set("a", 1)
        clock.now = 9.9
        self.assertEqual(cache.get("a"), 1)
        clock.now = 10.0
        self.assertIsNone(cache.get("a"))

    def test_evicts_oldest(self):
        cache = TTLCache(60, max_entries=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.set("c", 3)
        self.assertIsNone(cache.get("a"))
        self.assertEqual(len(cache), 2)

    def test_clear(self):
        cache = TTLCache(60)
        cache.set("a", 1)
        cache.clear()
        self.assertEqual(len(cache), 0)


class TestMovieRecord(unittest.TestCase):

    def test_from_detail_payload(self):
        record = MovieRecord.from_tmdb(MOVIE_PAYLOAD)
        self.assertEqual(record.genre_ids, [28, 878])
        self.assertEqual(record.genre_names, ["Action", "Science Fiction"])
        self.assertEqual(record.directors, ["Lana Wachowski"])
        self.assertEqual(len(record.cast), 10)
        self.assertEqual(record.keywords, ["simulated reality"])

    def test_from_list_payload(self):
        record = MovieRecord.from_tmdb({"id": 1, "genre_ids": [28, 99]}, {28: "Action"})
        self.assertEqual(record.genre_ids, [28, 99])
        self.assertEqual(record.genre_names, ["Action"])
        self.assertIsNone(record.release_date)


class TestTMDBClient(unittest.IsolatedAsyncioTestCase):

    def make_client(self, handler):
        self.requests = []

        def recording(request):
            self.requests.append(request)
            return handler(request)

        return TMDBClient(
            api_key="test-key",
            base_url="https://tmdb.test/3",
            timeout=1.0,
            transport=httpx.MockTransport(recording),
        )

    async def test_get_movie_is_cached(self):
        client = self.make_client(lambda request: httpx.Response(200, json=MOVIE_PAYLOAD))

        first = await client.get_movie(603)
        second = await client.get_movie(603)

        self.assertEqual(first.title, "The Matrix")
        self.assertIs(first, second)
        self.assertEqual(len(self.requests), 1)
        self.assertEqual(self.requests[0].url.params["append_to_response"], "credits,keywords")
        self.assertEqual(self.requests[0].url.params["api_key"], "test-key")

    async def test_clear_caches_refetches(self):
        client = self.make_client(lambda request: httpx.Response(200, json=MOVIE_PAYLOAD))
        await client.get_movie(603)
        client.clear_caches()
        await client.get_movie(603)
        self.assertEqual(len(self.requests), 2)

    async def test_timeout_returns_none(self):
        def handler(request):
            raise httpx.ReadTimeout("timed out", request=request)

        client = self.make_client(handler)
        with self.assertLogs("filmshare.services.tmdb_client", level="WARNING"):
            self.assertIsNone(await client.get_movie(603))
        self.assertEqual(await client.get_genre_names(603), [])

    async def test_http_error_returns_none(self):
        client = self.make_client(lambda request: httpx.Response(404, json={"status_message": "not found"}))
        self.assertIsNone(await client.get_movie(1))

    async def test_bad_json_returns_none(self):
        client = self.make_client(lambda request: httpx.Response(200, content=b"<html>"))
        self.assertIsNone(await client.get_movie(1))

    async def test_genre_map(self):
        client = self.make_client(lambda request: httpx.Response(200, json=GENRES_PAYLOAD))
        self.assertEqual(await client.get_genre_map(), {28: "Action", 18: "Drama"})
        await client.get_genre_map()
        self.assertEqual(len(self.requests), 1)

    async def test_discover_resolves_genre_names(self):
        def handler(request):
            if request.url.path.endswith("/genre/movie/list"):
                return httpx.Response(200, json=GENRES_PAYLOAD)
            return httpx.Response(200, json={"results": [
                {"id": 1, "title": "One", "genre_ids": [28]},
                {"id": 2, "title": "Two", "genre_ids": [18]},
                {"title": "No id"},
            ]})

        client = self.make_client(handler)
        movies = await client.discover_movies(genre_ids=[28, 18], language="en")

        self.assertEqual([m.id for m in movies], [1, 2])
        self.assertEqual(movies[0].genre_names, ["Action"])
        discover = self.requests[0]
        self.assertEqual(discover.url.params["with_genres"], "28,18")
        self.assertEqual(discover.url.params["with_original_language"], "en")
        self.assertNotIn("primary_release_date.gte", discover.url.params)

    async def test_similar_movies_failure_is_empty(self):
        client = self.make_client(lambda request: httpx.Response(500))
        self.assertEqual(await client.similar_movies(603), [])


if __name__ == '__main__':
    unittest.main()
