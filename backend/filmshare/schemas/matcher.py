"""Pydantic schemas for curated-list matching."""

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class TasteProfileUpdate(BaseModel):
    preferred_languages: list[str] = []
    movie_range_preference: str | None = None


class TasteProfileRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    preferred_languages: list[str]
    movie_range_preference: str


class CuratedMovie(BaseModel):
    """One pick in a curated list. Extra display fields are kept as sent."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    tmdb_id: int = Field(validation_alias=AliasChoices("tmdb_id", "id"))
    title: str = ""
    genres: list[str] = []
    language: str | None = None


class CuratedListUpdate(BaseModel):
    movies: list[CuratedMovie] = []


class CuratedListRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: int
    movies: list[dict[str, Any]]
    updated_at: datetime | None = None


class CompatibilityResult(BaseModel):
    status: str
    score: int | None = None
    breakdown: dict[str, int] | None = None
    common_movies: list[dict[str, Any]] = []
    recommendations: list[dict[str, Any]] = []
    missing: list[str] = []
    message: str | None = None
