"""Pydantic schemas package."""

from filmshare.schemas.taste_match import (
    RatingCreate,
    RatingRead,
    RatingResponse,
    WatchedCreate,
    WatchedResponse,
    MatchReportRead,
    SessionState,
    TasteMatchResult,
    UserStats,
    TasteVectorRead,
)
from filmshare.schemas.matcher import (
    TasteProfileUpdate,
    TasteProfileRead,
    CuratedMovie,
    CuratedListUpdate,
    CuratedListRead,
    CompatibilityResult,
)
from filmshare.schemas.recommendation import (
    CandidateMovie,
    ScoreCandidatesRequest,
    ScoredMovie,
    ScoreCandidatesResponse,
    SimilarMoviesResponse,
)

__all__ = [
    "RatingCreate",
    "RatingRead",
    "RatingResponse",
    "WatchedCreate",
    "WatchedResponse",
    "MatchReportRead",
    "SessionState",
    "TasteMatchResult",
    "UserStats",
    "TasteVectorRead",
    "TasteProfileUpdate",
    "TasteProfileRead",
    "CuratedMovie",
    "CuratedListUpdate",
    "CuratedListRead",
    "CompatibilityResult",
    "CandidateMovie",
    "ScoreCandidatesRequest",
    "ScoredMovie",
    "ScoreCandidatesResponse",
    "SimilarMoviesResponse",
]
