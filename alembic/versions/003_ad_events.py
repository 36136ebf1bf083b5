"""Ad event log.

Revision ID: 003_ad_events
Revises: 002_coins_and_gifts
Create Date: 2026-10-06
"""

from collections.abc import Sequence

from alembic import op

revision: str = "003_ad_events"
down_revision: str | None = "002_coins_and_gifts"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute("""
        CREATE TABLE IF NOT EXISTS ad_events (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID REFERENCES users(id) ON DELETE SET NULL,
            ad_type VARCHAR(16) NOT NULL,
            placement VARCHAR(50) NOT NULL,
            ad_network VARCHAR(50) NOT NULL DEFAULT 'admob',
            ad_unit_id VARCHAR(100),
            event_type VARCHAR(16) NOT NULL,
            reward_type VARCHAR(50),
            reward_amount INTEGER,
            created_at TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_ad_events_user_type_created
        ON ad_events(user_id, ad_type, created_at)
    """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS ad_events CASCADE")
