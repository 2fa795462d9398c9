"""Taste vector service: genre-weighted vectors from ratings and watch history."""

import logging
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import select, delete, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from filmshare.models.movie_taste_rating import MovieTasteRating
from filmshare.models.user_taste_vector import UserTasteVector
from filmshare.models.watched_movie import WatchedMovie
from filmshare.services.tmdb_client import TMDBClient

logger = logging.getLogger(__name__)

# Passive signal: each watched movie adds this much to each of its genres
WATCHED_WEIGHT = 0.5

# Popularity below this is treated as this before the 1/popularity boost
MIN_POPULARITY = 1.0

# Ratings each side needs before vectors are compared
MINIMUM_RATED_MOVIES = 20


@dataclass
class TasteVectorResult:
    vector: dict[str, float] = field(default_factory=dict)
    total_rated_movies: int = 0
    genres_count: int = 0


def rating_weight(rating: int, popularity: float | None) -> float:
    """Weight of one rating: obscure movies count more than blockbusters."""
    if popularity and popularity > 0:
        return rating * (1 + 1 / max(popularity, MIN_POPULARITY))
    return float(rating)


def build_vector_from_ratings(ratings: Iterable[MovieTasteRating]) -> dict[str, float]:
    """Sum the popularity-weighted rating into every cached genre of each rating."""
    vector: dict[str, float] = {}
    for rating in ratings:
        weight = rating_weight(rating.rating, rating.popularity)
        for genre in rating.genres or []:
            vector[genre] = vector.get(genre, 0.0) + weight
    return vector


def combine_vectors(*vectors: dict | None) -> dict[str, float]:
    combined: dict[str, float] = {}
    for vector in vectors:
        if not vector:
            continue
        for genre, value in vector.items():
            combined[genre] = combined.get(genre, 0.0) + value
    return combined


def normalize_vector(vector: dict[str, float]) -> dict[str, float]:
    """Scale so the largest magnitude is exactly 1. No signal gives ``{}``."""
    if not vector:
        return {}
    max_value = max(abs(v) for v in vector.values())
    if max_value == 0:
        return {}
    return {genre: value / max_value for genre, value in vector.items()}


def build_vector_from_genre_lists(genre_lists: Iterable[list[str] | None]) -> dict[str, float]:
    """Passive vector: WATCHED_WEIGHT per genre of every watched movie."""
    vector: dict[str, float] = {}
    for genres in genre_lists:
        for genre in genres or []:
            vector[genre] = vector.get(genre, 0.0) + WATCHED_WEIGHT
    return vector


def assemble_taste_vector(watched_vector: dict[str, float], ratings: list[MovieTasteRating]) -> TasteVectorResult:
    normalized = normalize_vector(combine_vectors(watched_vector, build_vector_from_ratings(ratings)))
    return TasteVectorResult(
        vector=normalized,
        total_rated_movies=len(ratings),
        genres_count=len(normalized),
    )


def cached_genres_query(tmdb_ids: Iterable[int]):
    """Genres already stored on any user's rating row for these movies."""
    return (
        select(MovieTasteRating.tmdb_movie_id, MovieTasteRating.genres)
        .where(MovieTasteRating.tmdb_movie_id.in_(set(tmdb_ids)))
    )


def first_cached_genres(rows) -> dict[int, list[str]]:
    cached: dict[int, list[str]] = {}
    for tmdb_id, genres in rows:
        if genres and tmdb_id not in cached:
            cached[tmdb_id] = list(genres)
    return cached


async def get_cached_genres(db: AsyncSession, tmdb_ids: Iterable[int]) -> dict[int, list[str]]:
    ids = set(tmdb_ids)
    if not ids:
        return {}
    result = await db.execute(cached_genres_query(ids))
    return first_cached_genres(result.all())


async def build_vector_from_watched(db: AsyncSession, user_id: int, catalog: TMDBClient | None) -> dict[str, float]:
    """Vector from watch history.

    Genres come from cached rating rows first, then the catalog. A movie
    with no resolvable genres contributes nothing.
    """
    result = await db.execute(select(WatchedMovie.tmdb_id).where(WatchedMovie.user_id == user_id))
    watched_ids = list(result.scalars().all())
    if not watched_ids:
        return {}

    cached = await get_cached_genres(db, watched_ids)

    genre_lists = []
    for tmdb_id in watched_ids:
        genres = cached.get(tmdb_id)
        if genres is None and catalog is not None:
            genres = await catalog.get_genre_names(tmdb_id)
        genre_lists.append(genres)
    return build_vector_from_genre_lists(genre_lists)


async def count_ratings(db: AsyncSession, user_id: int) -> int:
    result = await db.execute(
        select(func.count(MovieTasteRating.id)).where(MovieTasteRating.user_id == user_id)
    )
    return result.scalar() or 0


async def build_complete_taste_vector(db: AsyncSession, user_id: int, catalog: TMDBClient | None) -> TasteVectorResult:
    """Watched history plus explicit ratings, combined and max-normalized."""
    watched_vector = await build_vector_from_watched(db, user_id, catalog)

    result = await db.execute(select(MovieTasteRating).where(MovieTasteRating.user_id == user_id))
    return assemble_taste_vector(watched_vector, list(result.scalars().all()))


async def save_taste_vector(db: AsyncSession, user_id: int, taste: TasteVectorResult) -> UserTasteVector:
    result = await db.execute(select(UserTasteVector).where(UserTasteVector.user_id == user_id))
    record = result.scalar_one_or_none()

    if record is None:
        record = UserTasteVector(user_id=user_id)
        db.add(record)

    record.taste_vector = taste.vector
    record.total_rated_movies = taste.total_rated_movies
    record.genres_count = taste.genres_count
    record.last_updated = datetime.now(timezone.utc)
    await db.flush()
    logger.debug("Cached taste vector for user %s (%d genres)", user_id, taste.genres_count)
    return record


async def get_taste_vector(db: AsyncSession, user_id: int, catalog: TMDBClient | None) -> TasteVectorResult:
    """Cached vector when present, otherwise build it and cache it."""
    result = await db.execute(select(UserTasteVector).where(UserTasteVector.user_id == user_id))
    record = result.scalar_one_or_none()
    if record is not None:
        return TasteVectorResult(
            vector=dict(record.taste_vector or {}),
            total_rated_movies=record.total_rated_movies,
            genres_count=record.genres_count,
        )

    taste = await build_complete_taste_vector(db, user_id, catalog)
    await save_taste_vector(db, user_id, taste)
    return taste


async def invalidate_taste_vector(db: AsyncSession, user_id: int) -> None:
    await db.execute(delete(UserTasteVector).where(UserTasteVector.user_id == user_id))


async def get_seen_movie_ids(db: AsyncSession, user_id: int) -> set[int]:
    """TMDB ids the user has rated or marked as watched."""
    rated = await db.execute(select(MovieTasteRating.tmdb_movie_id).where(MovieTasteRating.user_id == user_id))
    watched = await db.execute(select(WatchedMovie.tmdb_id).where(WatchedMovie.user_id == user_id))
    return set(rated.scalars().all()) | set(watched.scalars().all())


async def get_top_genres(db: AsyncSession, user_id: int, limit: int = 5) -> list[str]:
    """Genre names the user rated most often, either way."""
    result = await db.execute(select(MovieTasteRating.genres).where(MovieTasteRating.user_id == user_id))
    counter = Counter(genre for genres in result.scalars().all() for genre in genres or [])
    return [genre for genre, _ in counter.most_common(limit)]


async def add_watched_movie(db: AsyncSession, user_id: int, tmdb_id: int) -> bool:
    """Record a watched movie. Returns False if it was already recorded."""
    result = await db.execute(
        select(WatchedMovie.id).where(WatchedMovie.user_id == user_id, WatchedMovie.tmdb_id == tmdb_id)
    )
    if result.scalar_one_or_none() is not None:
        return False

    try:
        async with db.begin_nested():
            db.add(WatchedMovie(user_id=user_id, tmdb_id=tmdb_id))
    except IntegrityError:
        return False

    await invalidate_taste_vector(db, user_id)
    return True


async def get_rating_stats(db: AsyncSession, user_id: int) -> dict:
    """Likes, dislikes and per-genre counts of a user's ratings."""
    result = await db.execute(
        select(MovieTasteRating.rating, MovieTasteRating.genres)
        .where(MovieTasteRating.user_id == user_id)
    )
    rows = result.all()

    likes = sum(1 for rating, _ in rows if rating == 1)
    dislikes = sum(1 for rating, _ in rows if rating == -1)
    genre_breakdown = Counter(genre for _, genres in rows for genre in genres or [])

    return {
        "total_rated": len(rows),
        "likes": likes,
        "dislikes": dislikes,
        "genre_breakdown": dict(genre_breakdown),
        "ready_for_matching": len(rows) >= MINIMUM_RATED_MOVIES,
    }
