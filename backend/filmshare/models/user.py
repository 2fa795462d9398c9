"""User model: the owner of ratings, curated lists and taste vectors."""

from sqlalchemy import Column, Integer, String, Boolean
from sqlalchemy.orm import relationship

from filmshare.models.base import Base, TimestampMixin


class User(TimestampMixin, Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    display_name = Column(String(100), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    taste_ratings = relationship("MovieTasteRating", back_populates="user", cascade="all, delete-orphan")
    watched_movies = relationship("WatchedMovie", back_populates="user", cascade="all, delete-orphan")
    taste_vector = relationship("UserTasteVector", back_populates="user", uselist=False, cascade="all, delete-orphan")
    movie_profile = relationship("UserMovieProfile", back_populates="user", uselist=False, cascade="all, delete-orphan")
    taste_profile = relationship("UserTasteProfile", back_populates="user", uselist=False, cascade="all, delete-orphan")
