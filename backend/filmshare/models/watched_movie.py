"""Watched movie model: an implicit taste signal."""

from sqlalchemy import Column, Integer, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from filmshare.models.base import Base, TimestampMixin, UUIDMixin


class WatchedMovie(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "watched_movies"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    tmdb_id = Column(Integer, nullable=False)

    # Relationships
    user = relationship("User", back_populates="watched_movies")

    __table_args__ = (
        UniqueConstraint("user_id", "tmdb_id", name="uq_watched_movies_user_movie"),
    )
