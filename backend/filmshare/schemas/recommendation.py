"""Pydantic schemas for recommendation scoring."""

from typing import Any

from pydantic import BaseModel, Field


class CandidateMovie(BaseModel):
    """Catalog fields the scorers read; mirrors MovieRecord."""

    id: int
    title: str = ""
    genre_ids: list[int] = []
    genre_names: list[str] = []
    popularity: float = 0.0
    vote_average: float = 0.0
    release_date: str | None = None
    original_language: str | None = None
    directors: list[str] = []
    cast: list[str] = []
    keywords: list[str] = []


class ScoreCandidatesRequest(BaseModel):
    """Candidates to rank; when empty, popular catalog movies are used.

    ``languages`` (ISO 639-1 codes) and ``genres`` (TMDB genre ids) narrow
    the candidate pool either way.
    """

    candidates: list[CandidateMovie] = []
    languages: list[str] = []
    genres: list[int] = []
    limit: int = Field(20, ge=1, le=100)


class ScoredMovie(BaseModel):
    movie: CandidateMovie
    score: int
    breakdown: dict[str, int]
    details: dict[str, Any] = {}
    reason: str | None = None


class ScoreCandidatesResponse(BaseModel):
    status: str
    message: str | None = None
    profile: dict[str, Any] | None = None
    results: list[ScoredMovie] = []


class SimilarMoviesResponse(BaseModel):
    reference: CandidateMovie | None = None
    results: list[ScoredMovie] = []
    count: int = 0
