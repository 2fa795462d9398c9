"""Cached taste vector per user, deleted whenever a new signal arrives."""

from sqlalchemy import Column, Integer, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship

from filmshare.models.base import Base, UUIDMixin, JSONType


class UserTasteVector(UUIDMixin, Base):
    __tablename__ = "user_taste_vectors"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)

    # Genre name -> weight in [-1.0, 1.0]
    taste_vector = Column(JSONType, nullable=False, default=dict)
    total_rated_movies = Column(Integer, server_default="0", nullable=False, default=0)
    genres_count = Column(Integer, server_default="0", nullable=False, default=0)
    last_updated = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    # Relationships
    user = relationship("User", back_populates="taste_vector")
