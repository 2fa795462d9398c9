"""Match report model: latest similarity result for a user pair."""

from sqlalchemy import Column, Integer, Float, Text, ForeignKey, UniqueConstraint

from filmshare.models.base import Base, TimestampMixin, UUIDMixin, JSONType


class TasteMatchReport(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "taste_match_reports"

    # user_id < friend_id always
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    friend_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    match_percentage = Column(Float, nullable=False)
    similarity_score = Column(Float, nullable=False)
    genre_compatibility = Column(JSONType, nullable=False, default=dict)
    summary = Column(Text, nullable=False)

    # Rating totals for user_id and friend_id at generation time
    user_total_ratings = Column(Integer, nullable=False)
    friend_total_ratings = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("user_id", "friend_id", name="uq_taste_match_reports_pair"),
    )
