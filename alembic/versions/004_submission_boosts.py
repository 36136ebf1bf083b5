"""Submission boosts.

Revision ID: 004_submission_boosts
Revises: 003_ad_events
Create Date: 2026-10-07
"""

from collections.abc import Sequence

from alembic import op

revision: str = "004_submission_boosts"
down_revision: str | None = "003_ad_events"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS submission_boosts (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            submission_id UUID NOT NULL REFERENCES submissions(id) ON DELETE CASCADE,
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            tier VARCHAR(20) NOT NULL,
            coin_amount INTEGER NOT NULL,
            boost_value NUMERIC(5, 2) NOT NULL,
            started_at TIMESTAMPTZ NOT NULL,
            expires_at TIMESTAMPTZ NOT NULL
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_submission_boosts_sub_expires
        ON submission_boosts(submission_id, expires_at)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_submission_boosts_user_id
        ON submission_boosts(user_id)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_submission_boosts_expires_at
        ON submission_boosts(expires_at)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS submission_boosts CASCADE")
