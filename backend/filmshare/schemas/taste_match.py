"""Pydantic schemas for the swipe-based taste match endpoints."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class RatingCreate(BaseModel):
    """A MY TYPE (1) / Nahhh (-1) vote.

    Values are checked by the service so bad input gets a specific reason.
    """

    tmdb_movie_id: int | None = None
    rating: int | None = None
    movie_title: str | None = None
    genres: list[str] = []
    popularity: float | None = None


class RatingRead(BaseModel):
    tmdb_movie_id: int
    rating: int
    movie_title: str | None = None
    genres: list[str] = []
    popularity: float | None = None


class RatingResponse(BaseModel):
    saved: bool
    created: bool
    message: str
    rating: RatingRead
    session_status: str


class WatchedCreate(BaseModel):
    tmdb_id: int


class WatchedResponse(BaseModel):
    tmdb_id: int
    added: bool


class MatchReportRead(BaseModel):
    """Stored report for a pair; totals are for the lower then higher user id."""

    model_config = ConfigDict(from_attributes=True)

    match_percentage: float
    similarity_score: float
    genre_compatibility: dict[str, int]
    summary: str
    user_total_ratings: int
    friend_total_ratings: int
    created_at: datetime | None = None


class SessionState(BaseModel):
    """One of not_started, voting_in_progress, waiting_for_friend, report_ready."""

    status: str
    message: str | None = None
    votes_you: int | None = None
    votes_friend: int | None = None
    votes_required: int | None = None
    your_votes: int | None = None
    friend_votes: int | None = None
    report: MatchReportRead | None = None


class TasteMatchResult(BaseModel):
    status: str
    match_percentage: int | None = None
    similarity_score: float | None = None
    genre_compatibility: dict[str, int] | None = None
    summary: str | None = None
    message: str | None = None
    user1_genres: int | None = None
    user2_genres: int | None = None
    user1_ratings: int
    user2_ratings: int
    required: int | None = None


class UserStats(BaseModel):
    total_rated: int
    likes: int
    dislikes: int
    genre_breakdown: dict[str, int]
    ready_for_matching: bool


class TasteVectorRead(BaseModel):
    success: bool = True
    vector: dict[str, float]
    genres_count: int
    total_rated: int
