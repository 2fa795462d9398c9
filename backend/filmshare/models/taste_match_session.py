"""Voting session model: one row per user pair, stored low id first."""

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, UniqueConstraint, CheckConstraint

from filmshare.models.base import Base, TimestampMixin, UUIDMixin

SESSION_VOTING = "voting_in_progress"
SESSION_ONE_SIDE_COMPLETE = "one_side_complete"
SESSION_REPORT_GENERATED = "report_generated"

# Written by older deployments for what is now SESSION_ONE_SIDE_COMPLETE
LEGACY_SESSION_BOTH_VOTED = "both_voted"

SESSION_STATUSES = (SESSION_VOTING, SESSION_ONE_SIDE_COMPLETE, SESSION_REPORT_GENERATED)


class TasteMatchSession(UUIDMixin, TimestampMixin, Base):
    __tablename__ = "taste_match_sessions"

    # user_id < friend_id always
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    friend_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)

    user_votes_count = Column(Integer, server_default="0", nullable=False, default=0)
    friend_votes_count = Column(Integer, server_default="0", nullable=False, default=0)
    user_completed_at = Column(DateTime(timezone=True))
    friend_completed_at = Column(DateTime(timezone=True))

    session_status = Column(String(30), server_default=SESSION_VOTING, nullable=False, default=SESSION_VOTING)

    __table_args__ = (
        UniqueConstraint("user_id", "friend_id", name="uq_taste_match_sessions_pair"),
        CheckConstraint("user_id < friend_id", name="ck_taste_match_sessions_ordered"),
    )
