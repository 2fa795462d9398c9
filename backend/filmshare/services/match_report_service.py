"""Match report service: taste-vector comparison between two users."""

import logging

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from filmshare.models.taste_match_report import TasteMatchReport
from filmshare.services.similarity_service import compare_vectors
from filmshare.services.taste_vector_service import (
    MINIMUM_RATED_MOVIES,
    build_complete_taste_vector,
    count_ratings,
    get_taste_vector,
)
from filmshare.services.tmdb_client import TMDBClient
from filmshare.services.user_pair import UserPair

logger = logging.getLogger(__name__)


def report_to_dict(report: TasteMatchReport) -> dict:
    return {
        "match_percentage": report.match_percentage,
        "similarity_score": report.similarity_score,
        "genre_compatibility": report.genre_compatibility,
        "summary": report.summary,
        "user_total_ratings": report.user_total_ratings,
        "friend_total_ratings": report.friend_total_ratings,
        "created_at": report.created_at,
    }


async def get_match_report(db: AsyncSession, user_id: int, friend_id: int) -> TasteMatchReport | None:
    pair = UserPair.of(user_id, friend_id)
    result = await db.execute(
        select(TasteMatchReport).where(
            TasteMatchReport.user_id == pair.low,
            TasteMatchReport.friend_id == pair.high,
        )
    )
    return result.scalar_one_or_none()


def _apply_fields(report: TasteMatchReport, fields: dict) -> None:
    for key, value in fields.items():
        setattr(report, key, value)


async def generate_match_report(
    db: AsyncSession,
    user_id: int,
    friend_id: int,
    catalog: TMDBClient | None,
) -> TasteMatchReport:
    """Compare fresh vectors for both users and upsert the pair's report.

    Safe to call repeatedly: the row is keyed by the ordered pair and
    every call overwrites it with the latest scores.
    """
    pair = UserPair.of(user_id, friend_id)
    low = await build_complete_taste_vector(db, pair.low, catalog)
    high = await build_complete_taste_vector(db, pair.high, catalog)

    fields = compare_vectors(low.vector, high.vector)
    fields["user_total_ratings"] = low.total_rated_movies
    fields["friend_total_ratings"] = high.total_rated_movies

    report = await get_match_report(db, pair.low, pair.high)
    if report is None:
        try:
            async with db.begin_nested():
                report = TasteMatchReport(user_id=pair.low, friend_id=pair.high, **fields)
                db.add(report)
        except IntegrityError:
            # Another request inserted the row first
            report = await get_match_report(db, pair.low, pair.high)
            _apply_fields(report, fields)
    else:
        _apply_fields(report, fields)

    await db.flush()
    logger.info(
        "Match report for users %s/%s: %s%% (%s)",
        pair.low, pair.high, fields["match_percentage"], fields["summary"],
    )
    return report


async def calculate_taste_match(
    db: AsyncSession,
    user_id: int,
    friend_id: int,
    catalog: TMDBClient | None,
) -> dict:
    """On-demand comparison from the caller's side. Does not touch sessions.

    Rating counts are checked before any vector is loaded, so an
    under-rated pair never costs a catalog lookup. Vectors come from the
    per-user cache and are rebuilt only when a rating or watch has
    invalidated it.
    """
    UserPair.of(user_id, friend_id)

    own_ratings = await count_ratings(db, user_id)
    friend_ratings = await count_ratings(db, friend_id)
    if own_ratings < MINIMUM_RATED_MOVIES or friend_ratings < MINIMUM_RATED_MOVIES:
        return {
            "status": "insufficient_data",
            "match_percentage": None,
            "message": f"Need at least {MINIMUM_RATED_MOVIES} movie ratings to calculate match",
            "user1_ratings": own_ratings,
            "user2_ratings": friend_ratings,
            "required": MINIMUM_RATED_MOVIES,
        }

    own = await get_taste_vector(db, user_id, catalog)
    friend = await get_taste_vector(db, friend_id, catalog)

    comparison = compare_vectors(own.vector, friend.vector)
    return {
        "status": "success",
        **comparison,
        "user1_genres": len(own.vector),
        "user2_genres": len(friend.vector),
        "user1_ratings": own.total_rated_movies,
        "user2_ratings": friend.total_rated_movies,
    }
