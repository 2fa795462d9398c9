"""Curated-list compatibility between two users.

Unlike the swipe-based taste match, this compares the short lists of
favourite movies users pick explicitly, plus their declared languages.
Nothing is stored; the score is recomputed on every request.
"""

import logging
from typing import Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from filmshare.models.user_movie_profile import UserMovieProfile
from filmshare.models.user_taste_profile import UserTasteProfile
from filmshare.services.errors import InvalidInputError
from filmshare.services.similarity_service import round_half_up

logger = logging.getLogger(__name__)

WEIGHTS = {
    "direct": 0.40,
    "similar": 0.35,
    "genre": 0.15,
    "language": 0.10,
}

MIN_CURATED_MOVIES = 5
MAX_COMMON_MOVIES = 10
MAX_RECOMMENDATIONS = 5

# Loose pair heuristic: a pair can score up to 1.5
SHARED_GENRE_POINTS = 0.5
SAME_LANGUAGE_POINTS = 1.0


def _ids(movies: Sequence[dict]) -> set:
    return {m["tmdb_id"] for m in movies}


def _genres(movies: Sequence[dict]) -> set:
    return {g for m in movies for g in m.get("genres") or []}


def direct_overlap(list_a: Sequence[dict], list_b: Sequence[dict]) -> float:
    longest = max(len(list_a), len(list_b))
    if longest == 0:
        return 0.0
    return len(_ids(list_a) & _ids(list_b)) / longest * 100


def similar_overlap(list_a: Sequence[dict], list_b: Sequence[dict]) -> float:
    pairs = len(list_a) * len(list_b)
    if pairs == 0:
        return 0.0

    total = 0.0
    for m1 in list_a:
        genres_1 = set(m1.get("genres") or [])
        language_1 = m1.get("language")
        for m2 in list_b:
            if genres_1 & set(m2.get("genres") or []):
                total += SHARED_GENRE_POINTS
            if language_1 and language_1 == m2.get("language"):
                total += SAME_LANGUAGE_POINTS
    return min(100.0, total / pairs * 100)


def genre_overlap(list_a: Sequence[dict], list_b: Sequence[dict]) -> float:
    genres_a = _genres(list_a)
    genres_b = _genres(list_b)
    union = genres_a | genres_b
    if not union:
        return 0.0
    return len(genres_a & genres_b) / len(union) * 100


def language_overlap(languages_a: Sequence[str], languages_b: Sequence[str]) -> float:
    if not languages_a or not languages_b:
        return 0.0
    common = set(languages_a) & set(languages_b)
    return len(common) / max(len(set(languages_a)), len(set(languages_b))) * 100


def match_curated_lists(
    list_a: Sequence[dict],
    list_b: Sequence[dict],
    languages_a: Sequence[str],
    languages_b: Sequence[str],
) -> dict:
    """Score list A against list B; common movies are reported from A's list."""
    components = {
        "direct": direct_overlap(list_a, list_b),
        "similar": similar_overlap(list_a, list_b),
        "genre": genre_overlap(list_a, list_b),
        "language": language_overlap(languages_a, languages_b),
    }
    score = round_half_up(sum(WEIGHTS[name] * value for name, value in components.items()))

    common_ids = _ids(list_a) & _ids(list_b)
    common_movies = [m for m in list_a if m["tmdb_id"] in common_ids][:MAX_COMMON_MOVIES]

    shared_languages = set(languages_a or []) & set(languages_b or [])
    candidates = []
    seen = set()
    for movie in [*list_a, *list_b]:
        if movie["tmdb_id"] in common_ids or movie["tmdb_id"] in seen:
            continue
        seen.add(movie["tmdb_id"])
        candidates.append(movie)
    candidates.sort(key=lambda m: 0 if m.get("language") in shared_languages else 1)

    return {
        "score": score,
        "breakdown": {name: round_half_up(value) for name, value in components.items()},
        "common_movies": common_movies,
        "recommendations": candidates[:MAX_RECOMMENDATIONS],
    }


async def get_curated_list(db: AsyncSession, user_id: int) -> UserMovieProfile | None:
    result = await db.execute(select(UserMovieProfile).where(UserMovieProfile.user_id == user_id))
    return result.scalar_one_or_none()


async def get_taste_profile(db: AsyncSession, user_id: int) -> UserTasteProfile | None:
    result = await db.execute(select(UserTasteProfile).where(UserTasteProfile.user_id == user_id))
    return result.scalar_one_or_none()


async def save_taste_profile(
    db: AsyncSession,
    user_id: int,
    preferred_languages: list[str],
    movie_range_preference: str | None = None,
) -> UserTasteProfile:
    languages = list(dict.fromkeys(lang for lang in preferred_languages or [] if lang))
    if not languages:
        raise InvalidInputError("Select at least one language")
    profile = await get_taste_profile(db, user_id)
    if profile is None:
        profile = UserTasteProfile(user_id=user_id)
        db.add(profile)

    profile.preferred_languages = languages
    profile.movie_range_preference = movie_range_preference or "mixed"
    await db.flush()
    return profile


async def save_curated_list(db: AsyncSession, user_id: int, movies: list[dict]) -> UserMovieProfile:
    """Replace the user's curated list wholesale."""
    if not movies or len(movies) < MIN_CURATED_MOVIES:
        raise InvalidInputError(f"Select at least {MIN_CURATED_MOVIES} movies")
    for movie in movies:
        if not isinstance(movie.get("tmdb_id"), int) or movie["tmdb_id"] <= 0:
            raise InvalidInputError("Every movie needs a positive tmdb_id")

    profile = await get_curated_list(db, user_id)
    if profile is None:
        profile = UserMovieProfile(user_id=user_id)
        db.add(profile)

    profile.movies = list(movies)
    await db.flush()
    return profile


async def remove_curated_movie(db: AsyncSession, user_id: int, tmdb_id: int) -> UserMovieProfile | None:
    """Drop one movie from the curated list. None when the user has no list."""
    profile = await get_curated_list(db, user_id)
    if profile is None:
        return None

    profile.movies = [m for m in profile.movies or [] if m.get("tmdb_id") != tmdb_id]
    await db.flush()
    return profile


async def calculate_compatibility(db: AsyncSession, user_id: int, friend_id: int) -> dict:
    """Curated-list match from the caller's side.

    Returns ``status="insufficient_data"`` naming the side(s) without a list.
    """
    if user_id == friend_id:
        raise InvalidInputError("Cannot match with yourself")

    own = await get_curated_list(db, user_id)
    friend = await get_curated_list(db, friend_id)

    missing = []
    if own is None or not own.movies:
        missing.append("user")
    if friend is None or not friend.movies:
        missing.append("friend")
    if missing:
        message = (
            "Friend hasn't selected movies yet" if missing == ["friend"]
            else "Select your movies first"
        )
        return {"status": "insufficient_data", "score": None, "missing": missing, "message": message}

    own_taste = await get_taste_profile(db, user_id)
    friend_taste = await get_taste_profile(db, friend_id)

    result = match_curated_lists(
        own.movies,
        friend.movies,
        own_taste.preferred_languages if own_taste else [],
        friend_taste.preferred_languages if friend_taste else [],
    )
    logger.debug("Curated match %s vs %s: %s", user_id, friend_id, result["score"])
    return {"status": "success", **result}
