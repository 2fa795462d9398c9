"""Curated movie list used by the list-vs-list matcher."""

from sqlalchemy import Column, Integer, ForeignKey
from sqlalchemy.orm import relationship

from filmshare.models.base import Base, TimestampMixin, UUIDMixin, JSONType


class UserMovieProfile(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "user_movie_profiles"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    # [{tmdb_id, title, genres, language, ...}], replaced wholesale on save
    movies = Column(JSONType, nullable=False, default=list)

    # Relationships
    user = relationship("User", back_populates="movie_profile")
