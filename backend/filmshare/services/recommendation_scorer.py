"""Recommendation scoring: user-fit and item-similarity strategies.

The two strategies answer different questions and are never blended:

    user_fit         "what should this user watch?" (candidate vs. TasteProfile)
    item_similarity  "what is like this movie?"     (candidate vs. one movie)

Call sites pick a strategy by name through ``get_strategy``.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Sequence, Type

import numpy as np
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from filmshare.models.movie_taste_rating import MovieTasteRating
from filmshare.services.movie_features import MovieFeatureVector, TasteProfile
from filmshare.services.similarity_service import round_half_up
from filmshare.services.taste_vector_service import get_seen_movie_ids
from filmshare.services.tmdb_client import MovieRecord, TMDBClient

logger = logging.getLogger(__name__)

USER_FIT = "user_fit"
ITEM_SIMILARITY = "item_similarity"

MAX_YEAR_DIFF = 50
DIRECTOR_MATCH_POINTS = 50
CAST_MATCH_POINTS = 20

# Breakdown points above which a factor is named in the similarity reason
REASON_THRESHOLD = 30


@dataclass
class ScoreResult:
    score: int
    breakdown: dict[str, int]
    details: dict[str, Any] = field(default_factory=dict)


def _array_cosine(a: np.ndarray, b: np.ndarray) -> float:
    if a.size == 0 or b.size == 0 or a.shape != b.shape:
        return 0.0
    norm_a = np.linalg.norm(a)
    norm_b = np.linalg.norm(b)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(max(-1.0, min(1.0, np.dot(a, b) / (norm_a * norm_b))))


def _jaccard_percentage(a: set, b: set) -> tuple[float, int, int]:
    union = a | b
    common = len(a & b)
    if not union:
        return 0.0, common, 0
    return common / len(union) * 100, common, len(union)


class ScoringStrategy(ABC):
    """Scores one candidate movie against a reference."""

    name: str = ""

    @abstractmethod
    def score(self, candidate: MovieFeatureVector, reference: Any) -> ScoreResult:
        ...


# Strategy name -> class mapping
_STRATEGIES: dict[str, Type[ScoringStrategy]] = {}


def register_strategy(name: str):
    """Decorator to register a scoring strategy under a name."""
    def decorator(cls: Type[ScoringStrategy]):
        cls.name = name
        _STRATEGIES[name] = cls
        logger.debug("Registered scoring strategy: %s", name)
        return cls
    return decorator


def get_strategy(name: str) -> ScoringStrategy:
    try:
        return _STRATEGIES[name]()
    except KeyError:
        raise ValueError(f"Unknown scoring strategy: {name}") from None


def list_strategies() -> list[str]:
    return list(_STRATEGIES.keys())


@register_strategy(USER_FIT)
class UserFitStrategy(ScoringStrategy):
    """Candidate vs. the aggregate of movies the user liked.

    0.4 cosine + 0.2 genre overlap + 0.15 rating similarity
    + 0.15 popularity weight + 0.1 year proximity.
    """

    def score(self, candidate: MovieFeatureVector, profile: TasteProfile) -> ScoreResult:
        cosine = _array_cosine(candidate.to_array(), profile.vector)
        cosine_score = (cosine + 1) / 2 * 100

        candidate_genres = set(candidate.genre_ids)
        profile_genres = profile.genre_ids
        common_genres = len(candidate_genres & profile_genres)
        total_genres = len(candidate_genres | profile_genres)
        genre_overlap = common_genres / total_genres * 100 if total_genres else 0.0

        rating_diff = abs(candidate.rating - profile.avg_rating)
        rating_similarity = max(0.0, (1 - rating_diff) * 100)

        bias = profile.blockbuster_bias
        popularity_weight = (
            candidate.popularity * bias * 100
            + (1 - candidate.popularity) * (1 - bias) * 100
        )

        year_diff = abs(candidate.year - profile.avg_year)
        year_proximity = max(0.0, (1 - year_diff / MAX_YEAR_DIFF) * 100)

        final = (
            0.4 * cosine_score
            + 0.2 * genre_overlap
            + 0.15 * rating_similarity
            + 0.15 * popularity_weight
            + 0.1 * year_proximity
        )

        return ScoreResult(
            score=round_half_up(final),
            breakdown={
                "cosine": round_half_up(cosine_score),
                "genre_overlap": round_half_up(genre_overlap),
                "rating_similarity": round_half_up(rating_similarity),
                "popularity_weight": round_half_up(popularity_weight),
                "year_proximity": round_half_up(year_proximity),
            },
            details={
                "cosine_raw": cosine,
                "genre_common": common_genres,
                "genre_total": total_genres,
                "rating_diff": rating_diff,
                "year_diff": year_diff,
                "movie_rating": candidate.rating,
                "movie_popularity": candidate.popularity,
                "movie_year": candidate.year,
            },
        )


@register_strategy(ITEM_SIMILARITY)
class ItemSimilarityStrategy(ScoringStrategy):
    """Candidate vs. a single reference movie.

    0.5 genre + 0.2 keyword + 0.15 director + 0.1 cast + 0.05 rating closeness.
    """

    def score(self, candidate: MovieFeatureVector, reference: MovieFeatureVector) -> ScoreResult:
        genre_overlap, common_genres, _ = _jaccard_percentage(set(reference.genre_ids), set(candidate.genre_ids))
        keyword_overlap, common_keywords, _ = _jaccard_percentage(set(reference.keywords), set(candidate.keywords))

        common_directors = len(set(reference.directors) & set(candidate.directors))
        director_score = min(100, common_directors * DIRECTOR_MATCH_POINTS)

        common_cast = len(set(reference.cast) & set(candidate.cast))
        cast_score = min(100, common_cast * CAST_MATCH_POINTS)

        rating_diff = abs(reference.rating - candidate.rating)
        rating_closeness = max(0.0, (1 - rating_diff) * 100)

        final = (
            0.5 * genre_overlap
            + 0.2 * keyword_overlap
            + 0.15 * director_score
            + 0.1 * cast_score
            + 0.05 * rating_closeness
        )

        return ScoreResult(
            score=round_half_up(final),
            breakdown={
                "genre": round_half_up(genre_overlap),
                "keyword": round_half_up(keyword_overlap),
                "director": round_half_up(director_score),
                "cast": round_half_up(cast_score),
                "rating": round_half_up(rating_closeness),
            },
            details={
                "genre_common": common_genres,
                "keyword_common": common_keywords,
                "director_common": common_directors,
                "cast_common": common_cast,
            },
        )


def score_movie_for_user(candidate: MovieFeatureVector, profile: TasteProfile) -> ScoreResult:
    return get_strategy(USER_FIT).score(candidate, profile)


def score_similar_movie(candidate: MovieFeatureVector, reference: MovieFeatureVector) -> ScoreResult:
    return get_strategy(ITEM_SIMILARITY).score(candidate, reference)


def _ranked_entry(movie: MovieRecord, result: ScoreResult) -> dict:
    return {
        "movie": movie.to_dict(),
        "score": result.score,
        "breakdown": result.breakdown,
        "details": result.details,
    }


async def build_user_profile(db: AsyncSession, user_id: int, catalog: TMDBClient) -> TasteProfile:
    """TasteProfile from every movie the user rated +1 that the catalog can resolve."""
    result = await db.execute(
        select(MovieTasteRating.tmdb_movie_id)
        .where(MovieTasteRating.user_id == user_id, MovieTasteRating.rating == 1)
        .order_by(MovieTasteRating.created_at)
    )
    liked_ids = result.scalars().all()

    vectors = []
    for tmdb_id in liked_ids:
        record = await catalog.get_movie(tmdb_id)
        if record is not None:
            vectors.append(MovieFeatureVector(record))
    return TasteProfile(vectors)


async def score_candidates(
    db: AsyncSession,
    user_id: int,
    candidates: Sequence[MovieRecord],
    catalog: TMDBClient,
    limit: int | None = None,
) -> dict:
    """Rank candidate movies for a user with the user-fit strategy.

    Candidates the user already rated or watched are dropped. Returns
    ``status="insufficient_data"`` when no liked movie could be resolved.
    """
    profile = await build_user_profile(db, user_id, catalog)
    if profile.movie_count == 0:
        return {
            "status": "insufficient_data",
            "message": "Like a few movies first so we can learn your taste",
            "profile": None,
            "results": [],
        }

    seen = await get_seen_movie_ids(db, user_id)
    strategy = get_strategy(USER_FIT)

    ranked = []
    for movie in candidates:
        if movie.id in seen:
            continue
        ranked.append(_ranked_entry(movie, strategy.score(MovieFeatureVector(movie), profile)))

    ranked.sort(key=lambda entry: entry["score"], reverse=True)
    if limit is not None:
        ranked = ranked[:limit]

    return {
        "status": "success",
        "profile": profile.summary(),
        "results": ranked,
    }


def similarity_reason(reference: MovieRecord, movie: MovieRecord, breakdown: dict[str, int]) -> str:
    """Short human-readable explanation, e.g. "Same director • Similar genre"."""
    reasons = []
    if reference.original_language and reference.original_language == movie.original_language:
        reasons.append("Same language")
    if breakdown["director"] > 0:
        reasons.append("Same director")
    if breakdown["cast"] > REASON_THRESHOLD:
        reasons.append("Shared actors")
    if breakdown["keyword"] > REASON_THRESHOLD:
        reasons.append("Similar themes")
    if breakdown["genre"] > REASON_THRESHOLD:
        reasons.append("Similar genre")
    return " • ".join(reasons) if reasons else "Similar match"


def find_similar_movies(reference: MovieRecord, candidates: Sequence[MovieRecord], limit: int = 20) -> list[dict]:
    """Rank candidates by item similarity to ``reference``, best first.

    The reference itself and zero-score candidates are left out.
    """
    strategy = get_strategy(ITEM_SIMILARITY)
    reference_vector = MovieFeatureVector(reference)

    ranked = []
    seen_ids = {reference.id}
    for movie in candidates:
        if movie.id in seen_ids:
            continue
        seen_ids.add(movie.id)
        result = strategy.score(MovieFeatureVector(movie), reference_vector)
        if result.score > 0:
            entry = _ranked_entry(movie, result)
            entry["reason"] = similarity_reason(reference, movie, result.breakdown)
            ranked.append(entry)

    ranked.sort(key=lambda entry: entry["score"], reverse=True)
    return ranked[:limit]
