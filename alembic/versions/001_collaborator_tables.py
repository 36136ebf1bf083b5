"""Baseline: the slices of users, submissions and notifications this service touches.

In production these tables belong to the account, content and notification
services and already exist, so every statement is IF NOT EXISTS. On a fresh
database (local, CI) this creates just enough of them to run the economy.

Revision ID: 001_collaborator_tables
Revises: None
Create Date: 2026-10-05
"""

from collections.abc import Sequence

from alembic import op

revision: str = "001_collaborator_tables"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.execute('CREATE EXTENSION IF NOT EXISTS "pgcrypto"')

    # --- Users ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS users (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            username VARCHAR(30) UNIQUE NOT NULL,
            display_name VARCHAR(50),
            avatar_url TEXT,
            coin_balance INTEGER NOT NULL DEFAULT 0,
            total_coins_earned INTEGER NOT NULL DEFAULT 0,
            total_coins_spent INTEGER NOT NULL DEFAULT 0,
            subscription_tier VARCHAR(16) NOT NULL DEFAULT 'free',
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT users_coin_balance_non_negative_check CHECK (coin_balance >= 0)
        )
    """)

    # --- Submissions ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS submissions (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            transcode_status VARCHAR(16) NOT NULL DEFAULT 'pending',
            moderation_status VARCHAR(16) NOT NULL DEFAULT 'pending',
            boost_score NUMERIC(5, 2) NOT NULL DEFAULT 0,
            gift_coins_received INTEGER NOT NULL DEFAULT 0,
            deleted_at TIMESTAMPTZ,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_submissions_user
        ON submissions(user_id)
    """)

    # --- Notifications ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS notifications (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            type VARCHAR(32) NOT NULL,
            title VARCHAR(256) NOT NULL,
            body TEXT,
            data JSONB NOT NULL DEFAULT '{}',
            read BOOLEAN NOT NULL DEFAULT false,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_notifications_user_created
        ON notifications(user_id, created_at DESC)
    """)


def downgrade() -> None:
    """Collaborator tables are owned elsewhere; never dropped from here."""
