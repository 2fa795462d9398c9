"""Swipe rating model: one MY TYPE (+1) or Nahhh (-1) vote per user and movie."""

from sqlalchemy import Column, Integer, SmallInteger, String, Float, ForeignKey, UniqueConstraint, CheckConstraint
from sqlalchemy.orm import relationship

from filmshare.models.base import Base, TimestampMixin, UUIDMixin, JSONType


class MovieTasteRating(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "movie_taste_ratings"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    tmdb_movie_id = Column(Integer, nullable=False, index=True)
    rating = Column(SmallInteger, nullable=False)
    movie_title = Column(String(500))

    # Catalog data cached at write time so vectors rebuild without TMDB calls
    genres = Column(JSONType, nullable=False, default=list)
    popularity = Column(Float)

    # Relationships
    user = relationship("User", back_populates="taste_ratings")

    __table_args__ = (
        UniqueConstraint("user_id", "tmdb_movie_id", name="uq_movie_taste_ratings_user_movie"),
        CheckConstraint("rating IN (1, -1)", name="ck_movie_taste_ratings_rating"),
    )
