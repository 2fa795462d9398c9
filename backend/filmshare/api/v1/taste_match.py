"""Taste match endpoints: swipe votes, voting sessions and vector comparison."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from filmshare.dependencies.auth import require_user_api
from filmshare.dependencies.catalog import get_catalog
from filmshare.models.base import get_db
from filmshare.models.user import User
from filmshare.schemas.recommendation import CandidateMovie
from filmshare.schemas.taste_match import (
    RatingCreate,
    RatingResponse,
    SessionState,
    TasteMatchResult,
    TasteVectorRead,
    UserStats,
    WatchedCreate,
    WatchedResponse,
)
from filmshare.services.errors import InvalidInputError
from filmshare.services.match_report_service import calculate_taste_match
from filmshare.services.taste_session_service import get_next_movie, get_session_state, record_rating
from filmshare.services.taste_vector_service import (
    MINIMUM_RATED_MOVIES,
    add_watched_movie,
    build_complete_taste_vector,
    get_rating_stats,
    save_taste_vector,
)
from filmshare.services.tmdb_client import TMDBClient
from filmshare.services.user_pair import UserPair

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/taste-match", tags=["taste-match"])


def parse_friend_id(raw: str, user_id: int) -> int:
    """Friend ids arrive as path strings; anything but a positive int other than the caller is rejected."""
    try:
        friend_id = int(raw)
    except (TypeError, ValueError):
        raise InvalidInputError("Invalid friend ID") from None
    if friend_id <= 0:
        raise InvalidInputError("Invalid friend ID")
    UserPair.of(user_id, friend_id)
    return friend_id


@router.post("/rate/{friend_id}", response_model=RatingResponse)
async def rate_movie(
    friend_id: str,
    payload: RatingCreate,
    user: User = Depends(require_user_api),
    db: AsyncSession = Depends(get_db),
    catalog: TMDBClient = Depends(get_catalog),
):
    """Record a MY TYPE / Nahhh vote and advance the session with this friend."""
    result = await record_rating(
        db,
        user.id,
        parse_friend_id(friend_id, user.id),
        payload.tmdb_movie_id,
        payload.rating,
        movie_title=payload.movie_title,
        genres=payload.genres,
        popularity=payload.popularity,
        catalog=catalog,
    )
    # Worker must see the new rating before it rebuilds the vector
    await db.commit()
    _fire_vector_refresh(user.id)
    return result


@router.get("/next-movie/{friend_id}", response_model=CandidateMovie)
async def next_movie(
    friend_id: str,
    user: User = Depends(require_user_api),
    db: AsyncSession = Depends(get_db),
    catalog: TMDBClient = Depends(get_catalog),
):
    """Next movie to vote on, steered by the friend's favourite genres."""
    movie = await get_next_movie(db, user.id, parse_friend_id(friend_id, user.id), catalog)
    if movie is None:
        raise HTTPException(status_code=404, detail="No more movies available")
    return movie.to_dict()


@router.get("/session/{friend_id}", response_model=SessionState, response_model_exclude_none=True)
async def session_state(
    friend_id: str,
    user: User = Depends(require_user_api),
    db: AsyncSession = Depends(get_db),
):
    """Voting progress with a friend, or the report once both finished."""
    return await get_session_state(db, user.id, parse_friend_id(friend_id, user.id))


@router.get("/compare/{friend_id}", response_model=TasteMatchResult, response_model_exclude_none=True)
async def compare(
    friend_id: str,
    user: User = Depends(require_user_api),
    db: AsyncSession = Depends(get_db),
    catalog: TMDBClient = Depends(get_catalog),
):
    """Compare taste vectors now, independent of any voting session."""
    return await calculate_taste_match(db, user.id, parse_friend_id(friend_id, user.id), catalog)


@router.get("/user-stats", response_model=UserStats)
async def user_stats(
    user: User = Depends(require_user_api),
    db: AsyncSession = Depends(get_db),
):
    return await get_rating_stats(db, user.id)


@router.post("/build-vector", response_model=TasteVectorRead)
async def build_vector(
    user: User = Depends(require_user_api),
    db: AsyncSession = Depends(get_db),
    catalog: TMDBClient = Depends(get_catalog),
):
    """Rebuild and cache the caller's taste vector."""
    taste = await build_complete_taste_vector(db, user.id, catalog)
    if taste.total_rated_movies < MINIMUM_RATED_MOVIES:
        raise HTTPException(
            status_code=400,
            detail={
                "error": "Not enough data",
                "ratings": taste.total_rated_movies,
                "required": MINIMUM_RATED_MOVIES,
            },
        )

    await save_taste_vector(db, user.id, taste)
    return {
        "success": True,
        "vector": taste.vector,
        "genres_count": taste.genres_count,
        "total_rated": taste.total_rated_movies,
    }


@router.post("/watched", response_model=WatchedResponse)
async def mark_watched(
    payload: WatchedCreate,
    user: User = Depends(require_user_api),
    db: AsyncSession = Depends(get_db),
):
    if payload.tmdb_id <= 0:
        raise InvalidInputError("Movie ID is required")
    added = await add_watched_movie(db, user.id, payload.tmdb_id)
    return {"tmdb_id": payload.tmdb_id, "added": added}


def _fire_vector_refresh(user_id: int):
    """Dispatch Celery task to rebuild the user's cached taste vector."""
    try:
        from filmshare.tasks.taste_tasks import refresh_taste_vector
        refresh_taste_vector.delay(user_id)
    except Exception:
        # The next read rebuilds the vector anyway
        logger.warning("Could not dispatch taste vector refresh for user %s", user_id)
