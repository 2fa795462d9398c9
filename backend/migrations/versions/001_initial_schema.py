"""Initial schema: users, taste ratings, watch history and matching tables.

Creates:
- users: account rows owning every taste signal
- movie_taste_ratings: swipe votes with cached genres and popularity
- watched_movies: implicit watch-history signal
- user_taste_vectors: cached genre vectors per user
- taste_match_sessions / taste_match_reports: pairwise voting and results
- user_movie_profiles / user_taste_profiles: curated lists and language prefs

Revision ID: 001
Revises:
Create Date: 2026-03-02
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects.postgresql import UUID, JSONB

revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps():
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    ]


def _user_fk(name: str = "user_id", unique: bool = False):
    return sa.Column(name, sa.Integer, sa.ForeignKey("users.id", ondelete="CASCADE"), nullable=False, unique=unique)


def upgrade() -> None:
    # 1. users
    op.create_table(
        "users",
        sa.Column("id", sa.Integer, primary_key=True, autoincrement=True),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("display_name", sa.String(100), nullable=False),
        sa.Column("is_active", sa.Boolean, server_default=sa.text("true"), nullable=False),
        *_timestamps(),
    )
    op.create_index("ix_users_email", "users", ["email"], unique=True)

    # 2. movie_taste_ratings
    op.create_table(
        "movie_taste_ratings",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        _user_fk(),
        sa.Column("tmdb_movie_id", sa.Integer, nullable=False),
        sa.Column("rating", sa.SmallInteger, nullable=False),
        sa.Column("movie_title", sa.String(500)),
        sa.Column("genres", JSONB, server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column("popularity", sa.Float),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "tmdb_movie_id", name="uq_movie_taste_ratings_user_movie"),
        sa.CheckConstraint("rating IN (1, -1)", name="ck_movie_taste_ratings_rating"),
    )
    op.create_index("ix_movie_taste_ratings_user_id", "movie_taste_ratings", ["user_id"])
    op.create_index("ix_movie_taste_ratings_tmdb_movie_id", "movie_taste_ratings", ["tmdb_movie_id"])

    # 3. watched_movies
    op.create_table(
        "watched_movies",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        _user_fk(),
        sa.Column("tmdb_id", sa.Integer, nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "tmdb_id", name="uq_watched_movies_user_movie"),
    )
    op.create_index("ix_watched_movies_user_id", "watched_movies", ["user_id"])

    # 4. user_taste_vectors
    op.create_table(
        "user_taste_vectors",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        _user_fk(unique=True),
        sa.Column("taste_vector", JSONB, server_default=sa.text("'{}'::jsonb"), nullable=False),
        sa.Column("total_rated_movies", sa.Integer, server_default=sa.text("0"), nullable=False),
        sa.Column("genres_count", sa.Integer, server_default=sa.text("0"), nullable=False),
        sa.Column("last_updated", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    # 5. taste_match_sessions (pair stored low id first)
    op.create_table(
        "taste_match_sessions",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        _user_fk(),
        _user_fk("friend_id"),
        sa.Column("user_votes_count", sa.Integer, server_default=sa.text("0"), nullable=False),
        sa.Column("friend_votes_count", sa.Integer, server_default=sa.text("0"), nullable=False),
        sa.Column("user_completed_at", sa.DateTime(timezone=True)),
        sa.Column("friend_completed_at", sa.DateTime(timezone=True)),
        sa.Column("session_status", sa.String(30), server_default="voting_in_progress", nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "friend_id", name="uq_taste_match_sessions_pair"),
        sa.CheckConstraint("user_id < friend_id", name="ck_taste_match_sessions_ordered"),
    )

    # 6. taste_match_reports
    op.create_table(
        "taste_match_reports",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        _user_fk(),
        _user_fk("friend_id"),
        sa.Column("match_percentage", sa.Float, nullable=False),
        sa.Column("similarity_score", sa.Float, nullable=False),
        sa.Column("genre_compatibility", JSONB, server_default=sa.text("'{}'::jsonb"), nullable=False),
        sa.Column("summary", sa.Text, nullable=False),
        sa.Column("user_total_ratings", sa.Integer, nullable=False),
        sa.Column("friend_total_ratings", sa.Integer, nullable=False),
        *_timestamps(),
        sa.UniqueConstraint("user_id", "friend_id", name="uq_taste_match_reports_pair"),
    )

    # 7. user_movie_profiles
    op.create_table(
        "user_movie_profiles",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        _user_fk(unique=True),
        sa.Column("movies", JSONB, server_default=sa.text("'[]'::jsonb"), nullable=False),
        *_timestamps(),
    )

    # 8. user_taste_profiles
    op.create_table(
        "user_taste_profiles",
        sa.Column("id", UUID(as_uuid=True), primary_key=True),
        _user_fk(unique=True),
        sa.Column("preferred_languages", JSONB, server_default=sa.text("'[]'::jsonb"), nullable=False),
        sa.Column("movie_range_preference", sa.String(20), server_default="mixed", nullable=False),
        *_timestamps(),
    )


def downgrade() -> None:
    op.drop_table("user_taste_profiles")
    op.drop_table("user_movie_profiles")
    op.drop_table("taste_match_reports")
    op.drop_table("taste_match_sessions")
    op.drop_table("user_taste_vectors")
    op.drop_table("watched_movies")
    op.drop_table("movie_taste_ratings")
    op.drop_table("users")
