"""TMDB catalog client with injectable TTL caches.

Every public lookup returns data or nothing. HTTP errors, timeouts and
malformed payloads are logged at WARNING and reported as ``None`` (or an
empty collection) so callers can treat a failed lookup as "no signal".
"""

import logging
import time
from dataclasses import dataclass, field, asdict
from typing import Any, Callable, Optional

import httpx

from filmshare.config import get_settings
from filmshare.services.errors import ExternalLookupFailure

logger = logging.getLogger(__name__)
settings = get_settings()

# Credits are trimmed to the people that matter for similarity scoring
MAX_CAST = 10

# Discover results below this vote count are too noisy to recommend
MIN_VOTE_COUNT = 100


@dataclass(frozen=True)
class MovieRecord:
    """Read-only view of a TMDB movie."""

    id: int
    title: str = ""
    genre_ids: list[int] = field(default_factory=list)
    genre_names: list[str] = field(default_factory=list)
    popularity: float = 0.0
    vote_average: float = 0.0
    release_date: str | None = None
    original_language: str | None = None
    directors: list[str] = field(default_factory=list)
    cast: list[str] = field(default_factory=list)
    keywords: list[str] = field(default_factory=list)

    @classmethod
    def from_tmdb(cls, payload: dict, genre_map: dict[int, str] | None = None) -> "MovieRecord":
        """Build a record from a detail or a list/discover payload.

        Detail payloads carry ``genres`` as objects; list payloads carry bare
        ``genre_ids`` that are resolved through ``genre_map``.
        """
        if payload.get("genres"):
            genre_ids = [int(g["id"]) for g in payload["genres"]]
            genre_names = [g["name"] for g in payload["genres"] if g.get("name")]
        else:
            genre_ids = [int(gid) for gid in payload.get("genre_ids") or []]
            genre_map = genre_map or {}
            genre_names = [genre_map[gid] for gid in genre_ids if gid in genre_map]

        credits = payload.get("credits") or {}
        directors = [p["name"] for p in credits.get("crew", []) if p.get("job") == "Director"]
        cast = [p["name"] for p in credits.get("cast", [])[:MAX_CAST]]

        keywords_block = payload.get("keywords") or {}
        keywords = [k["name"] for k in keywords_block.get("keywords", [])]

        return cls(
            id=int(payload["id"]),
            title=payload.get("title") or "",
            genre_ids=genre_ids,
            genre_names=genre_names,
            popularity=float(payload.get("popularity") or 0),
            vote_average=float(payload.get("vote_average") or 0),
            release_date=payload.get("release_date") or None,
            original_language=payload.get("original_language"),
            directors=directors,
            cast=cast,
            keywords=keywords,
        )

    def to_dict(self) -> dict:
        return asdict(self)


class TTLCache:
    """In-process cache with per-entry expiry and an optional size cap.

    Oldest entries are evicted first once ``max_entries`` is reached.
    """

    def __init__(self, ttl_seconds: float, max_entries: int | None = None, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: dict[Any, tuple[float, Any]] = {}

    def get(self, key: Any) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: Any, value: Any) -> None:
        self._entries.pop(key, None)
        if self.max_entries is not None:
            while len(self._entries) >= self.max_entries:
                del self._entries[next(iter(self._entries))]
        self._entries[key] = (self._clock() + self.ttl_seconds, value)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)


class TMDBClient:
    """Async TMDB client owning the genre-name and movie-detail caches.

    One instance lives on ``app.state.catalog`` for the lifetime of the
    web process; tests build their own with an ``httpx.MockTransport``.
    """

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str | None = None,
        timeout: float | None = None,
        genre_cache: TTLCache | None = None,
        movie_cache: TTLCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key if api_key is not None else settings.tmdb_api_key
        self.base_url = base_url or settings.tmdb_base_url
        self.timeout = timeout if timeout is not None else settings.tmdb_timeout_seconds
        self.genre_cache = genre_cache or TTLCache(settings.genre_cache_ttl_seconds)
        self.movie_cache = movie_cache or TTLCache(
            settings.movie_cache_ttl_seconds,
            max_entries=settings.movie_cache_max_entries,
        )
        self._transport = transport

    def clear_caches(self) -> None:
        self.genre_cache.clear()
        self.movie_cache.clear()

    async def _get_json(self, path: str, params: Optional[dict] = None) -> dict:
        query = {"api_key": self.api_key}
        if params:
            query.update({k: v for k, v in params.items() if v is not None})

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout,
                transport=self._transport,
            ) as client:
                response = await client.get(path, params=query)
                response.raise_for_status()
                payload = response.json()
        except httpx.HTTPError as e:
            raise ExternalLookupFailure(f"{path}: {e.__class__.__name__}: {e}") from e
        except ValueError as e:
            raise ExternalLookupFailure(f"{path}: invalid JSON") from e

        if not isinstance(payload, dict):
            raise ExternalLookupFailure(f"{path}: unexpected payload type {type(payload).__name__}")
        return payload

    async def get_genre_map(self) -> dict[int, str]:
        """Genre id -> name for movies. Empty when TMDB is unreachable."""
        cached = self.genre_cache.get("movie")
        if cached is not None:
            return cached

        try:
            payload = await self._get_json("/genre/movie/list")
            genres = {int(g["id"]): g["name"] for g in payload.get("genres", [])}
        except ExternalLookupFailure as e:
            logger.warning("TMDB genre list lookup failed: %s", e)
            return {}
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("TMDB genre list payload malformed: %s", e)
            return {}

        self.genre_cache.set("movie", genres)
        return genres

    async def get_movie(self, tmdb_id: int) -> MovieRecord | None:
        """Fetch one movie with credits and keywords, cache-first."""
        cached = self.movie_cache.get(tmdb_id)
        if cached is not None:
            return cached

        try:
            payload = await self._get_json(
                f"/movie/{tmdb_id}",
                {"append_to_response": "credits,keywords"},
            )
            record = MovieRecord.from_tmdb(payload)
        except ExternalLookupFailure as e:
            logger.warning("TMDB lookup failed for movie %s: %s", tmdb_id, e)
            return None
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("TMDB payload malformed for movie %s: %s", tmdb_id, e)
            return None

        self.movie_cache.set(tmdb_id, record)
        return record

    async def get_genre_names(self, tmdb_id: int) -> list[str]:
        record = await self.get_movie(tmdb_id)
        return list(record.genre_names) if record else []

    async def _get_movie_list(self, path: str, params: dict, limit: int) -> list[MovieRecord]:
        try:
            payload = await self._get_json(path, params)
        except ExternalLookupFailure as e:
            logger.warning("TMDB list lookup failed: %s", e)
            return []

        genre_map = await self.get_genre_map()
        movies = []
        for item in (payload.get("results") or [])[:limit]:
            try:
                movies.append(MovieRecord.from_tmdb(item, genre_map))
            except (KeyError, TypeError, ValueError) as e:
                logger.warning("Skipping malformed TMDB list entry from %s: %s", path, e)
        return movies

    async def discover_movies(
        self,
        genre_ids: list[int] | None = None,
        page: int = 1,
        language: str | None = None,
        year_from: int | None = None,
        year_to: int | None = None,
        limit: int = 20,
    ) -> list[MovieRecord]:
        """Popular, well-voted movies filtered by genre, language and year range."""
        params = {
            "page": page,
            "sort_by": "popularity.desc",
            "vote_count.gte": MIN_VOTE_COUNT,
            "with_genres": ",".join(str(g) for g in genre_ids) if genre_ids else None,
            "with_original_language": language,
            "primary_release_date.gte": f"{year_from}-01-01" if year_from else None,
            "primary_release_date.lte": f"{year_to}-12-31" if year_to else None,
        }
        return await self._get_movie_list("/discover/movie", params, limit)

    async def similar_movies(self, tmdb_id: int, limit: int = 20) -> list[MovieRecord]:
        """TMDB's own "similar" list for a movie, without credits."""
        return await self._get_movie_list(f"/movie/{tmdb_id}/similar", {"page": 1}, limit)
