"""ORM models for the economy tables.

``users``, ``submissions`` and ``notifications`` are owned by other
subsystems; only the columns this service reads or writes are mapped here.
"""

from __future__ import annotations

import uuid
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB, UUID
from sqlalchemy.orm import Mapped, mapped_column

from sparks.db.base import Base


def _uuid() -> str:
    return str(uuid.uuid4())


# ---------------------------------------------------------------------------
# Users (account subsystem)
# ---------------------------------------------------------------------------


class User(Base):
    """Balance columns of the 'users' table."""

    __tablename__ = "users"
    __table_args__ = (
        CheckConstraint("coin_balance >= 0", name="coin_balance_non_negative"),
    )

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    username: Mapped[str] = mapped_column(String(30), unique=True, nullable=False)
    display_name: Mapped[str | None] = mapped_column(String(50), nullable=True)
    avatar_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    coin_balance: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    total_coins_earned: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    total_coins_spent: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    subscription_tier: Mapped[str] = mapped_column(String(16), nullable=False, server_default="free")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))


# ---------------------------------------------------------------------------
# Submissions (content store)
# ---------------------------------------------------------------------------


class Submission(Base):
    """User-generated content item that can receive boosts and gifts."""

    __tablename__ = "submissions"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    transcode_status: Mapped[str] = mapped_column(String(16), nullable=False, server_default="pending")
    moderation_status: Mapped[str] = mapped_column(String(16), nullable=False, server_default="pending")
    boost_score: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, server_default="0")
    gift_coins_received: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    deleted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))


# ---------------------------------------------------------------------------
# Coin ledger
# ---------------------------------------------------------------------------


class CoinTransaction(Base):
    """Append-only coin ledger entry. Never updated or deleted."""

    __tablename__ = "coin_transactions"
    __mapper_args__ = {"eager_defaults": True}  # noqa: RUF012
    __table_args__ = (
        CheckConstraint("amount <> 0", name="amount_non_zero"),
        Index("idx_coin_transactions_user_type_created", "user_id", "type", "created_at"),
    )

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    balance_after: Mapped[int] = mapped_column(Integer, nullable=False)
    reference_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    reference_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    description: Mapped[str | None] = mapped_column(String(255), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("clock_timestamp()")
    )


class DailyLoginReward(Base):
    """One row per user per UTC calendar day. The unique key is the guard."""

    __tablename__ = "daily_login_rewards"
    __table_args__ = (UniqueConstraint("user_id", "reward_date"),)

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    reward_date: Mapped[date] = mapped_column(Date, nullable=False)
    coin_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))


# ---------------------------------------------------------------------------
# Ads
# ---------------------------------------------------------------------------


class AdEvent(Base):
    """Append-only ad event log. Reward eligibility is derived from it."""

    __tablename__ = "ad_events"
    __mapper_args__ = {"eager_defaults": True}  # noqa: RUF012
    __table_args__ = (
        Index("idx_ad_events_user_type_created", "user_id", "ad_type", "created_at"),
    )

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    user_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    ad_type: Mapped[str] = mapped_column(String(16), nullable=False)
    placement: Mapped[str] = mapped_column(String(50), nullable=False)
    ad_network: Mapped[str] = mapped_column(String(50), nullable=False, server_default="admob")
    ad_unit_id: Mapped[str | None] = mapped_column(String(100), nullable=True)
    event_type: Mapped[str] = mapped_column(String(16), nullable=False)
    reward_type: Mapped[str | None] = mapped_column(String(50), nullable=True)
    reward_amount: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("clock_timestamp()")
    )


# ---------------------------------------------------------------------------
# Boosts
# ---------------------------------------------------------------------------


class SubmissionBoost(Base):
    """A purchased visibility boost. Deleted by the sweep once expired."""

    __tablename__ = "submission_boosts"
    __table_args__ = (
        Index("idx_submission_boosts_sub_expires", "submission_id", "expires_at"),
    )

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    submission_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("submissions.id", ondelete="CASCADE"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    tier: Mapped[str] = mapped_column(String(20), nullable=False)
    coin_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    boost_value: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False)
    started_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    expires_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, index=True)


# ---------------------------------------------------------------------------
# Gifts
# ---------------------------------------------------------------------------


class GiftCatalogEntry(Base):
    """A purchasable gift. ``creator_coin_share`` goes to the content owner."""

    __tablename__ = "gift_catalog"
    __table_args__ = (
        CheckConstraint("creator_coin_share <= coin_cost", name="creator_share_within_cost"),
    )

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    name: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    name_ja: Mapped[str | None] = mapped_column(String(50), nullable=True)
    icon_url: Mapped[str] = mapped_column(Text, nullable=False)
    animation_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str] = mapped_column(String(20), nullable=False)
    coin_cost: Mapped[int] = mapped_column(Integer, nullable=False)
    creator_coin_share: Mapped[int] = mapped_column(Integer, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="true")
    sort_order: Mapped[int] = mapped_column(Integer, nullable=False, server_default="0")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))


class GiftTransaction(Base):
    """Immutable record of one gift, with the creator/platform split."""

    __tablename__ = "gift_transactions"
    __mapper_args__ = {"eager_defaults": True}  # noqa: RUF012

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    sender_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    receiver_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True
    )
    submission_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("submissions.id", ondelete="SET NULL"), nullable=True, index=True
    )
    gift_id: Mapped[str | None] = mapped_column(
        UUID(as_uuid=False), ForeignKey("gift_catalog.id", ondelete="SET NULL"), nullable=True
    )
    coin_amount: Mapped[int] = mapped_column(Integer, nullable=False)
    creator_share: Mapped[int] = mapped_column(Integer, nullable=False)
    platform_share: Mapped[int] = mapped_column(Integer, nullable=False)
    message: Mapped[str | None] = mapped_column(String(100), nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("clock_timestamp()")
    )


# ---------------------------------------------------------------------------
# Notifications (notification store)
# ---------------------------------------------------------------------------


class Notification(Base):
    """Persisted in-app notification."""

    __tablename__ = "notifications"

    id: Mapped[str] = mapped_column(UUID(as_uuid=False), primary_key=True, default=_uuid)
    user_id: Mapped[str] = mapped_column(
        UUID(as_uuid=False), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(String(256), nullable=False)
    body: Mapped[str | None] = mapped_column(Text, nullable=True)
    data: Mapped[dict[str, Any]] = mapped_column(JSONB, nullable=False, server_default="{}")
    read: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="false")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, server_default=text("NOW()"))
