"""Declared language preferences for curated-list matching."""

from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship

from filmshare.models.base import Base, TimestampMixin, UUIDMixin, JSONType


class UserTasteProfile(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "user_taste_profiles"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), unique=True, nullable=False)
    preferred_languages = Column(JSONType, nullable=False, default=list)
    movie_range_preference = Column(String(20), server_default="mixed", nullable=False, default="mixed")

    # Relationships
    user = relationship("User", back_populates="taste_profile")
