"""Curated movie list endpoints and list-vs-list matching."""

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from filmshare.dependencies.auth import require_user_api
from filmshare.models.base import get_db
from filmshare.models.user import User
from filmshare.schemas.matcher import (
    CompatibilityResult,
    CuratedListRead,
    CuratedListUpdate,
    TasteProfileRead,
    TasteProfileUpdate,
)
from filmshare.services.compatibility_matcher import (
    calculate_compatibility,
    get_curated_list,
    remove_curated_movie,
    save_curated_list,
    save_taste_profile,
)
from filmshare.api.v1.taste_match import parse_friend_id

router = APIRouter(prefix="/matcher", tags=["matcher"])


@router.post("/taste-profile", response_model=TasteProfileRead)
async def update_taste_profile(
    payload: TasteProfileUpdate,
    user: User = Depends(require_user_api),
    db: AsyncSession = Depends(get_db),
):
    """Save preferred languages (at least one)."""
    return await save_taste_profile(db, user.id, payload.preferred_languages, payload.movie_range_preference)


@router.post("/movies", response_model=CuratedListRead)
async def replace_movies(
    payload: CuratedListUpdate,
    user: User = Depends(require_user_api),
    db: AsyncSession = Depends(get_db),
):
    """Replace the curated list (at least 5 movies)."""
    movies = [movie.model_dump() for movie in payload.movies]
    return await save_curated_list(db, user.id, movies)


@router.get("/profile", response_model=CuratedListRead)
async def get_profile(
    user: User = Depends(require_user_api),
    db: AsyncSession = Depends(get_db),
):
    profile = await get_curated_list(db, user.id)
    if profile is None:
        return {"user_id": user.id, "movies": [], "updated_at": None}
    return profile


@router.delete("/movies/{tmdb_id}", response_model=CuratedListRead)
async def delete_movie(
    tmdb_id: int,
    user: User = Depends(require_user_api),
    db: AsyncSession = Depends(get_db),
):
    profile = await remove_curated_movie(db, user.id, tmdb_id)
    if profile is None:
        raise HTTPException(status_code=404, detail="Profile not found")
    return profile


@router.post("/calculate-match/{friend_id}", response_model=CompatibilityResult)
async def calculate_match(
    friend_id: str,
    user: User = Depends(require_user_api),
    db: AsyncSession = Depends(get_db),
):
    """Score the caller's curated list against a friend's."""
    friend_id = parse_friend_id(friend_id, user.id)
    friend = await db.execute(select(User.id).where(User.id == friend_id))
    if friend.scalar_one_or_none() is None:
        raise HTTPException(status_code=404, detail="Friend not found")
    return await calculate_compatibility(db, user.id, friend_id)
