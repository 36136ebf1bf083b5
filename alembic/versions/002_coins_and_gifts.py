"""Coin ledger, gift catalog and gift transactions.

Revision ID: 002_coins_and_gifts
Revises: 001_collaborator_tables
Create Date: 2026-10-05
"""

from collections.abc import Sequence

from alembic import op

revision: str = "002_coins_and_gifts"
down_revision: str | None = "001_collaborator_tables"
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    # --- Coin Transactions (append-only ledger) ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS coin_transactions (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
            type VARCHAR(32) NOT NULL,
            amount INTEGER NOT NULL,
            balance_after INTEGER NOT NULL,
            reference_type VARCHAR(50),
            reference_id VARCHAR(64),
            description VARCHAR(255),
            created_at TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp(),
            CONSTRAINT coin_transactions_amount_non_zero_check CHECK (amount <> 0)
        )
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS ix_coin_transactions_user_id
        ON coin_transactions(user_id)
    """)
    op.execute("""
        CREATE INDEX IF NOT EXISTS idx_coin_transactions_user_type_created
        ON coin_transactions(user_id, type, created_at)
    """)

    # --- Gift Catalog ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS gift_catalog (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            name VARCHAR(50) UNIQUE NOT NULL,
            name_ja VARCHAR(50),
            icon_url TEXT NOT NULL,
            animation_url TEXT,
            category VARCHAR(20) NOT NULL,
            coin_cost INTEGER NOT NULL,
            creator_coin_share INTEGER NOT NULL,
            is_active BOOLEAN NOT NULL DEFAULT true,
            sort_order INTEGER NOT NULL DEFAULT 0,
            created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
            CONSTRAINT gift_catalog_creator_share_within_cost_check CHECK (creator_coin_share <= coin_cost)
        )
    """)

    # --- Gift Transactions ---
    op.execute("""
        CREATE TABLE IF NOT EXISTS gift_transactions (
            id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
            sender_id UUID REFERENCES users(id) ON DELETE SET NULL,
            receiver_id UUID REFERENCES users(id) ON DELETE SET NULL,
            submission_id UUID REFERENCES submissions(id) ON DELETE SET NULL,
            gift_id UUID REFERENCES gift_catalog(id) ON DELETE SET NULL,
            coin_amount INTEGER NOT NULL,
            creator_share INTEGER NOT NULL,
            platform_share INTEGER NOT NULL,
            message VARCHAR(100),
            created_at TIMESTAMPTZ NOT NULL DEFAULT clock_timestamp()
        )
    """)
    for column in ("sender_id", "receiver_id", "submission_id"):
        op.execute(f"""
            CREATE INDEX IF NOT EXISTS ix_gift_transactions_{column}
            ON gift_transactions({column})
        """)


def downgrade() -> None:
    op.execute("DROP TABLE IF EXISTS gift_transactions CASCADE")
    op.execute("DROP TABLE IF EXISTS gift_catalog CASCADE")
    op.execute("DROP TABLE IF EXISTS coin_transactions CASCADE")
