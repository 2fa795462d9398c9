"""Recommendation endpoints: personal ranking and similar-movie search."""

import asyncio

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.ext.asyncio import AsyncSession

from filmshare.dependencies.auth import require_user_api
from filmshare.dependencies.catalog import get_catalog
from filmshare.models.base import get_db
from filmshare.models.user import User
from filmshare.schemas.recommendation import (
    CandidateMovie,
    ScoreCandidatesRequest,
    ScoreCandidatesResponse,
    SimilarMoviesResponse,
)
from filmshare.services.recommendation_scorer import find_similar_movies, score_candidates
from filmshare.services.tmdb_client import MovieRecord, TMDBClient

router = APIRouter(prefix="/recommendations", tags=["recommendations"])


def _passes_filters(movie: CandidateMovie, languages: list[str], genres: list[int]) -> bool:
    """Same rules as the catalog's discover filters: any listed language, every listed genre."""
    if languages and movie.original_language not in languages:
        return False
    return set(genres) <= set(movie.genre_ids)


@router.post("/score", response_model=ScoreCandidatesResponse)
async def score(
    payload: ScoreCandidatesRequest,
    user: User = Depends(require_user_api),
    db: AsyncSession = Depends(get_db),
    catalog: TMDBClient = Depends(get_catalog),
):
    """Rank candidates for the caller; popular catalog movies when none are given."""
    if payload.candidates:
        candidates = [
            MovieRecord(**c.model_dump()) for c in payload.candidates
            if _passes_filters(c, payload.languages, payload.genres)
        ]
    else:
        candidates = await catalog.discover_movies(
            genre_ids=payload.genres or None,
            # TMDB treats a pipe-separated list as any-of
            language="|".join(payload.languages) or None,
            limit=payload.limit,
        )
    return await score_candidates(db, user.id, candidates, catalog, limit=payload.limit)


@router.get("/similar/{tmdb_id}", response_model=SimilarMoviesResponse)
async def similar(
    tmdb_id: int,
    limit: int = Query(20, ge=1, le=50),
    catalog: TMDBClient = Depends(get_catalog),
):
    """Movies most like ``tmdb_id`` by genre, keywords, crew and rating."""
    if tmdb_id <= 0:
        raise HTTPException(status_code=400, detail="Invalid movie ID")

    reference = await catalog.get_movie(tmdb_id)
    if reference is None:
        raise HTTPException(status_code=404, detail="Movie not found")

    listed = await catalog.similar_movies(tmdb_id)
    # Full details carry the credits and keywords the scorer compares
    detailed = await asyncio.gather(*(catalog.get_movie(m.id) for m in listed))
    candidates = [full or basic for full, basic in zip(detailed, listed)]

    results = find_similar_movies(reference, candidates, limit=limit)
    return {"reference": reference.to_dict(), "results": results, "count": len(results)}
