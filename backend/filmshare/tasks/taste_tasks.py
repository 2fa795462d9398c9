"""Celery tasks that rebuild cached taste vectors off the request path."""

import asyncio
import logging
from datetime import datetime, timezone

from sqlalchemy import select, func

from filmshare.tasks.celery_app import celery_app
from filmshare.models.base import SyncSessionLocal
import filmshare.models  # noqa: F401
from filmshare.models.movie_taste_rating import MovieTasteRating
from filmshare.models.user_taste_vector import UserTasteVector
from filmshare.models.watched_movie import WatchedMovie
from filmshare.services.taste_vector_service import (
    MINIMUM_RATED_MOVIES,
    TasteVectorResult,
    assemble_taste_vector,
    build_vector_from_genre_lists,
    cached_genres_query,
    first_cached_genres,
)
from filmshare.services.tmdb_client import TMDBClient

logger = logging.getLogger(__name__)


async def _fetch_genres(catalog: TMDBClient, tmdb_ids: list[int]) -> dict[int, list[str]]:
    names = await asyncio.gather(*(catalog.get_genre_names(tmdb_id) for tmdb_id in tmdb_ids))
    return dict(zip(tmdb_ids, names))


def _build_vector(session, user_id: int, catalog: TMDBClient) -> TasteVectorResult:
    watched_ids = list(session.execute(
        select(WatchedMovie.tmdb_id).where(WatchedMovie.user_id == user_id)
    ).scalars().all())

    genres_by_id: dict[int, list[str]] = {}
    if watched_ids:
        genres_by_id = first_cached_genres(session.execute(cached_genres_query(watched_ids)).all())
        missing = [tmdb_id for tmdb_id in watched_ids if tmdb_id not in genres_by_id]
        if missing:
            genres_by_id.update(asyncio.run(_fetch_genres(catalog, missing)))

    watched_vector = build_vector_from_genre_lists(genres_by_id.get(tmdb_id) for tmdb_id in watched_ids)
    ratings = list(session.execute(
        select(MovieTasteRating).where(MovieTasteRating.user_id == user_id)
    ).scalars().all())
    return assemble_taste_vector(watched_vector, ratings)


def _signals_marker(session, user_id: int) -> tuple:
    """Fingerprint of the ratings and watches a vector is built from."""
    rating_count, last_rated = session.execute(
        select(func.count(MovieTasteRating.id), func.max(MovieTasteRating.updated_at))
        .where(MovieTasteRating.user_id == user_id)
    ).one()
    watched_count = session.execute(
        select(func.count(WatchedMovie.id)).where(WatchedMovie.user_id == user_id)
    ).scalar()
    return rating_count, last_rated, watched_count


def _store_vector(session, user_id: int, taste: TasteVectorResult, marker: tuple) -> bool:
    """Write the vector unless the user's signals moved while it was built.

    A rating saved mid-build has already invalidated the cache and queued
    its own refresh, so the stale result is dropped.
    """
    if _signals_marker(session, user_id) != marker:
        logger.info("Signals for user %s changed during rebuild, discarding vector", user_id)
        return False

    record = session.execute(
        select(UserTasteVector).where(UserTasteVector.user_id == user_id)
    ).scalar_one_or_none()
    if not record:
        record = UserTasteVector(user_id=user_id)
        session.add(record)

    record.taste_vector = taste.vector
    record.total_rated_movies = taste.total_rated_movies
    record.genres_count = taste.genres_count
    record.last_updated = datetime.now(timezone.utc)
    return True


def _rebuild(session, user_id: int, catalog: TMDBClient) -> TasteVectorResult | None:
    marker = _signals_marker(session, user_id)
    taste = _build_vector(session, user_id, catalog)
    return taste if _store_vector(session, user_id, taste, marker) else None


@celery_app.task(name="filmshare.tasks.taste_tasks.refresh_taste_vector")
def refresh_taste_vector(user_id: int):
    """Rebuild one user's cached vector after a rating or watched update."""
    catalog = TMDBClient()
    with SyncSessionLocal() as session:
        try:
            taste = _rebuild(session, user_id, catalog)
            session.commit()
            if taste is None:
                return {"user_id": user_id, "skipped": True}

            logger.info("Refreshed taste vector for user %s (%d genres)", user_id, taste.genres_count)
            return {"user_id": user_id, "genres_count": taste.genres_count}

        except Exception:
            session.rollback()
            logger.exception("Failed to refresh taste vector for user %s", user_id)
            raise


@celery_app.task(name="filmshare.tasks.taste_tasks.warm_taste_vectors")
def warm_taste_vectors():
    """Build vectors for users ready for matching who have none cached (runs every 6h via beat)."""
    catalog = TMDBClient()
    with SyncSessionLocal() as session:
        try:
            cached_users = select(UserTasteVector.user_id)
            user_ids = session.execute(
                select(MovieTasteRating.user_id)
                .where(MovieTasteRating.user_id.not_in(cached_users))
                .group_by(MovieTasteRating.user_id)
                .having(func.count(MovieTasteRating.id) >= MINIMUM_RATED_MOVIES)
            ).scalars().all()

            warmed = sum(1 for uid in user_ids if _rebuild(session, uid, catalog) is not None)

            session.commit()
            if warmed:
                logger.info("Warmed taste vectors for %d users", warmed)
            return {"warmed": warmed}

        except Exception:
            session.rollback()
            logger.exception("Failed to warm taste vectors")
            raise
