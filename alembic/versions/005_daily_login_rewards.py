"""Daily login rewards. UNIQUE(user_id, reward_date) is the once-per-day guard.

Revision ID: 005_daily_login_rewards
Revises: 004_submission_boosts
Create Date: 2026-10-08
"""

from collections.abc import Sequence

from alembic import op

revision: str = "005_daily_login_rewards"
down_revision: str | None = "004_submission_boosts"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS daily_login_rewards (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            reward_date DATE NOT NULL,
            coin_amount INTEGER NOT NULL,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            UNIQUE (user_id, reward_date)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_daily_login_rewards_user_id
        ON daily_login_rewards(user_id)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS daily_login_rewards CASCADE")
