"""Taste match voting sessions between two friends.

Each side swipes until it has VOTES_REQUIRED ratings. The session moves
voting_in_progress -> one_side_complete when either side reaches the
quota, and -> report_generated once both have. From then on every vote
rewrites the stored report with the current ratings.
"""

import logging
import random
from datetime import datetime, timezone

from sqlalchemy import case, select, update, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from filmshare.models.movie_taste_rating import MovieTasteRating
from filmshare.models.taste_match_session import (
    TasteMatchSession,
    SESSION_VOTING,
    SESSION_ONE_SIDE_COMPLETE,
    SESSION_REPORT_GENERATED,
    LEGACY_SESSION_BOTH_VOTED,
)
from filmshare.services.errors import InvalidInputError
from filmshare.services.match_report_service import generate_match_report, get_match_report, report_to_dict
from filmshare.services.taste_vector_service import (
    MINIMUM_RATED_MOVIES,
    count_ratings,
    get_seen_movie_ids,
    get_top_genres,
    invalidate_taste_vector,
)
from filmshare.services.tmdb_client import MovieRecord, TMDBClient
from filmshare.services.user_pair import UserPair

logger = logging.getLogger(__name__)

VOTES_REQUIRED = 20


def _is_positive_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value > 0


def validate_rating_input(user_id: int, friend_id, tmdb_movie_id, rating) -> None:
    """Reject malformed vote input before anything is written."""
    if not _is_positive_int(friend_id):
        raise InvalidInputError("Invalid friend ID")
    if friend_id == user_id:
        raise InvalidInputError("Cannot start a taste match with yourself")
    if not _is_positive_int(tmdb_movie_id):
        raise InvalidInputError("Movie ID is required")
    if isinstance(rating, bool) or rating not in (1, -1):
        raise InvalidInputError("Rating must be 1 (MY TYPE) or -1 (Nahhh)")


async def _find_session(db: AsyncSession, pair: UserPair, lock: bool = False) -> TasteMatchSession | None:
    stmt = select(TasteMatchSession).where(
        TasteMatchSession.user_id == pair.low,
        TasteMatchSession.friend_id == pair.high,
    )
    if lock:
        stmt = stmt.with_for_update().execution_options(populate_existing=True)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def get_or_create_session(db: AsyncSession, pair: UserPair) -> TasteMatchSession:
    """Fetch the pair's session row locked for update, creating it on first vote."""
    session = await _find_session(db, pair, lock=True)
    if session is not None:
        return session

    try:
        async with db.begin_nested():
            session = TasteMatchSession(user_id=pair.low, friend_id=pair.high, session_status=SESSION_VOTING)
            db.add(session)
    except IntegrityError:
        # Both users cast their first vote at the same time
        session = await _find_session(db, pair, lock=True)
    return session


async def upsert_rating(
    db: AsyncSession,
    user_id: int,
    tmdb_movie_id: int,
    rating: int,
    movie_title: str | None = None,
    genres: list[str] | None = None,
    popularity: float | None = None,
) -> tuple[MovieTasteRating, bool]:
    """Insert or overwrite the user's rating for a movie. Returns (row, created)."""
    values = {
        "rating": rating,
        "movie_title": movie_title,
        "genres": list(genres or []),
        "popularity": popularity,
    }

    async def _existing():
        result = await db.execute(
            select(MovieTasteRating).where(
                MovieTasteRating.user_id == user_id,
                MovieTasteRating.tmdb_movie_id == tmdb_movie_id,
            )
        )
        return result.scalar_one_or_none()

    row = await _existing()
    if row is None:
        try:
            async with db.begin_nested():
                row = MovieTasteRating(user_id=user_id, tmdb_movie_id=tmdb_movie_id, **values)
                db.add(row)
            return row, True
        except IntegrityError:
            row = await _existing()

    for key, value in values.items():
        setattr(row, key, value)
    await db.flush()
    return row, False


async def track_vote(
    db: AsyncSession,
    voting_user_id: int,
    friend_id: int,
    catalog: TMDBClient | None,
) -> TasteMatchSession:
    """Sync the voter's count into the session and advance its status.

    The session row stays locked until the caller's transaction ends, so
    concurrent votes from the same pair count their ratings one at a time.
    """
    pair = UserPair.of(voting_user_id, friend_id)
    session = await get_or_create_session(db, pair)

    if pair.is_low(voting_user_id):
        count_column = TasteMatchSession.user_votes_count
        completed_column = TasteMatchSession.user_completed_at
    else:
        count_column = TasteMatchSession.friend_votes_count
        completed_column = TasteMatchSession.friend_completed_at

    votes = (
        select(func.count(MovieTasteRating.id))
        .where(MovieTasteRating.user_id == voting_user_id)
        .scalar_subquery()
    )
    await db.execute(
        update(TasteMatchSession)
        .where(TasteMatchSession.id == session.id)
        .values({
            count_column: votes,
            # First stamp wins; later votes keep the original completion time
            completed_column: case(
                (votes >= VOTES_REQUIRED, func.coalesce(completed_column, datetime.now(timezone.utc))),
                else_=completed_column,
            ),
        })
        .execution_options(synchronize_session=False)
    )
    await db.refresh(session)

    if session.user_completed_at and session.friend_completed_at:
        claimed = await db.execute(
            update(TasteMatchSession)
            .where(
                TasteMatchSession.id == session.id,
                TasteMatchSession.session_status != SESSION_REPORT_GENERATED,
            )
            .values(session_status=SESSION_REPORT_GENERATED)
            .execution_options(synchronize_session=False)
        )
        if claimed.rowcount == 1:
            logger.info("Both users %s/%s completed voting, generating report", pair.low, pair.high)
        # Every later vote rewrites the report with the fresher ratings
        await generate_match_report(db, pair.low, pair.high, catalog)
        await db.refresh(session)
    elif session.user_completed_at or session.friend_completed_at:
        moved = await db.execute(
            update(TasteMatchSession)
            .where(
                TasteMatchSession.id == session.id,
                TasteMatchSession.session_status == SESSION_VOTING,
            )
            .values(session_status=SESSION_ONE_SIDE_COMPLETE)
            .execution_options(synchronize_session=False)
        )
        if moved.rowcount == 1:
            logger.info("User %s completed voting with %s", voting_user_id, pair.other(voting_user_id))
        await db.refresh(session)

    return session


async def record_rating(
    db: AsyncSession,
    user_id: int,
    friend_id: int,
    tmdb_movie_id: int,
    rating: int,
    movie_title: str | None = None,
    genres: list[str] | None = None,
    popularity: float | None = None,
    catalog: TMDBClient | None = None,
) -> dict:
    """Save a swipe vote and push it through the pair's session."""
    validate_rating_input(user_id, friend_id, tmdb_movie_id, rating)

    row, created = await upsert_rating(db, user_id, tmdb_movie_id, rating, movie_title, genres, popularity)
    await invalidate_taste_vector(db, user_id)
    session = await track_vote(db, user_id, friend_id, catalog)

    return {
        "saved": True,
        "created": created,
        "message": "Rating saved" if created else "Rating updated",
        "rating": {
            "tmdb_movie_id": row.tmdb_movie_id,
            "rating": row.rating,
            "movie_title": row.movie_title,
            "genres": row.genres,
            "popularity": row.popularity,
        },
        "session_status": session.session_status,
    }


async def get_session_state(db: AsyncSession, user_id: int, friend_id: int) -> dict:
    """Session progress as seen by ``user_id``; argument order is irrelevant to storage."""
    pair = UserPair.of(user_id, friend_id)
    session = await _find_session(db, pair)
    if session is None:
        return {"status": "not_started", "message": "No voting session started yet"}

    report = await get_match_report(db, pair.low, pair.high)
    if report is not None:
        return {"status": "report_ready", "report": report_to_dict(report)}

    if pair.is_low(user_id):
        your_votes, friend_votes = session.user_votes_count, session.friend_votes_count
    else:
        your_votes, friend_votes = session.friend_votes_count, session.user_votes_count

    if session.session_status == SESSION_VOTING:
        return {
            "status": "voting_in_progress",
            "votes_you": your_votes,
            "votes_friend": friend_votes,
            "votes_required": VOTES_REQUIRED,
        }

    if session.session_status in (SESSION_ONE_SIDE_COMPLETE, LEGACY_SESSION_BOTH_VOTED):
        if your_votes >= VOTES_REQUIRED:
            message = "Waiting for friend to complete their votes..."
        else:
            message = "Your friend finished voting! Complete your votes to see the report."
    else:
        message = "Report being generated..."

    return {
        "status": "waiting_for_friend",
        "your_votes": your_votes,
        "friend_votes": friend_votes,
        "message": message,
    }


async def get_next_movie(
    db: AsyncSession,
    user_id: int,
    friend_id: int,
    catalog: TMDBClient,
    rng: random.Random | None = None,
) -> MovieRecord | None:
    """Pick the next movie to swipe on.

    Once the friend has enough ratings, candidates come from the friend's
    most-rated genres; otherwise from popular movies. Movies the user
    already rated or watched are skipped.
    """
    if not _is_positive_int(friend_id) or friend_id == user_id:
        raise InvalidInputError("Invalid friend ID")
    rng = rng or random.Random()

    excluded = await get_seen_movie_ids(db, user_id)

    genre_ids = None
    if await count_ratings(db, friend_id) >= MINIMUM_RATED_MOVIES:
        top_genres = await get_top_genres(db, friend_id)
        name_to_id = {name: genre_id for genre_id, name in (await catalog.get_genre_map()).items()}
        genre_ids = [name_to_id[name] for name in top_genres if name in name_to_id] or None

    movies = await catalog.discover_movies(genre_ids=genre_ids, page=rng.randint(1, 3))
    candidates = [m for m in movies if m.id not in excluded]
    if candidates:
        return rng.choice(candidates)

    fallback = await catalog.discover_movies(page=rng.randint(1, 5))
    candidates = [m for m in fallback if m.id not in excluded]
    return rng.choice(candidates) if candidates else None
