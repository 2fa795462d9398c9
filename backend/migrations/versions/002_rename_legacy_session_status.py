"""Rename the legacy both_voted session status to one_side_complete.

Older deployments wrote both_voted when only one side had finished
voting. The application still reads it, but new rows use the new name.

Revision ID: 002
Revises: 001
Create Date: 2026-03-09
"""
from typing import Sequence, Union

from alembic import op

revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.execute(
        "UPDATE taste_match_sessions SET session_status = 'one_side_complete' "
        "WHERE session_status = 'both_voted'"
    )


def downgrade() -> None:
    op.execute(
        "UPDATE taste_match_sessions SET session_status = 'both_voted' "
        "WHERE session_status = 'one_side_complete'"
    )
