"""Coin ledger core: locked credit/debit against a user's balance.

Every mutation of ``users.coin_balance`` goes through here:
1. Lock the user row (SELECT ... FOR UPDATE)
2. Append a coin_transactions row carrying the post-mutation balance
3. Update the balance and the matching lifetime counter

``credit_coins`` / ``debit_coins`` are complete units of work. The
``lock_user`` + ``apply_credit`` / ``apply_debit`` primitives let the gift,
boost and reward engines run ledger writes inside their own transaction.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sparks.db.models import CoinTransaction, User
from sparks.errors import NotFoundError, ValidationError
from sparks.pagination import Page, build_page, count_rows, normalize_page_params
from sparks.redis_client import invalidate_profiles

logger = structlog.get_logger()

# coin_transactions.type values
TX_PURCHASE = "purchase"
TX_GIFT_SENT = "gift_sent"
TX_GIFT_RECEIVED = "gift_received"
TX_REWARD = "reward"
TX_ACHIEVEMENT = "achievement"
TX_REFUND = "refund"
TX_ADMIN_ADJUSTMENT = "admin_adjustment"
TX_BOOST_SPENT = "boost_spent"

TRANSACTION_TYPES = frozenset({
    TX_PURCHASE,
    TX_GIFT_SENT,
    TX_GIFT_RECEIVED,
    TX_REWARD,
    TX_ACHIEVEMENT,
    TX_REFUND,
    TX_ADMIN_ADJUSTMENT,
    TX_BOOST_SPENT,
})


def validate_amount(amount: Any) -> int:  # noqa: ANN401
    """Reject anything that is not a positive integer."""
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        raise ValidationError.for_field("Invalid coin amount", "amount", "Amount must be positive")
    return amount


def _validate_type(tx_type: str) -> None:
    if tx_type not in TRANSACTION_TYPES:
        raise ValidationError.for_field(
            "Invalid transaction type", "type", f"Unknown transaction type: {tx_type}"
        )


async def lock_user(db: AsyncSession, user_id: str) -> User:
    """Load a user row under an exclusive row lock. Raises NotFoundError."""
    result = await db.execute(
        select(User)
        .where(User.id == user_id)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    user = result.scalar_one_or_none()
    if user is None:
        raise NotFoundError("User", user_id)
    return user


def ensure_funds(user: User, amount: int, field: str = "amount") -> None:
    """Raise ValidationError if a locked user cannot cover ``amount``."""
    if user.coin_balance < amount:
        raise ValidationError.for_field(
            "Insufficient balance",
            field,
            f"Insufficient coin balance. Current: {user.coin_balance}, Required: {amount}",
        )


async def apply_credit(
    db: AsyncSession,
    user: User,
    amount: int,
    tx_type: str,
    reference_type: str | None = None,
    reference_id: str | None = None,
    description: str | None = None,
) -> CoinTransaction:
    """Credit a locked user inside the caller's transaction (no commit)."""
    new_balance = user.coin_balance + amount
    entry = CoinTransaction(
        user_id=user.id,
        type=tx_type,
        amount=amount,
        balance_after=new_balance,
        reference_type=reference_type,
        reference_id=reference_id,
        description=description,
    )
    db.add(entry)

    user.coin_balance = new_balance
    user.total_coins_earned += amount
    user.updated_at = datetime.now(timezone.utc)

    await db.flush()
    return entry


async def apply_debit(
    db: AsyncSession,
    user: User,
    amount: int,
    tx_type: str,
    reference_type: str | None = None,
    reference_id: str | None = None,
    description: str | None = None,
    field: str = "amount",
) -> CoinTransaction:
    """Debit a locked user inside the caller's transaction (no commit)."""
    ensure_funds(user, amount, field)

    new_balance = user.coin_balance - amount
    entry = CoinTransaction(
        user_id=user.id,
        type=tx_type,
        amount=-amount,
        balance_after=new_balance,
        reference_type=reference_type,
        reference_id=reference_id,
        description=description,
    )
    db.add(entry)

    user.coin_balance = new_balance
    user.total_coins_spent += amount
    user.updated_at = datetime.now(timezone.utc)

    await db.flush()
    return entry


async def credit_coins(
    db: AsyncSession,
    redis: Any,  # noqa: ANN401
    user_id: str,
    amount: int,
    tx_type: str,
    reference_type: str | None = None,
    reference_id: str | None = None,
    description: str | None = None,
) -> CoinTransaction:
    """Credit coins to a user as one atomic unit of work."""
    validate_amount(amount)
    _validate_type(tx_type)

    try:
        user = await lock_user(db, user_id)
        entry = await apply_credit(db, user, amount, tx_type, reference_type, reference_id, description)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await invalidate_profiles(redis, user_id)
    logger.info(
        "coins_credited",
        user_id=user_id,
        amount=amount,
        type=tx_type,
        reference_type=reference_type,
        reference_id=reference_id,
        balance_after=entry.balance_after,
    )
    return entry


async def debit_coins(
    db: AsyncSession,
    redis: Any,  # noqa: ANN401
    user_id: str,
    amount: int,
    tx_type: str,
    reference_type: str | None = None,
    reference_id: str | None = None,
    description: str | None = None,
) -> CoinTransaction:
    """Debit coins from a user as one atomic unit of work.

    The row lock serializes concurrent debits for the same user: the second
    one sees the first's committed balance and fails if funds ran out.
    """
    validate_amount(amount)
    _validate_type(tx_type)

    try:
        user = await lock_user(db, user_id)
        entry = await apply_debit(db, user, amount, tx_type, reference_type, reference_id, description)
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await invalidate_profiles(redis, user_id)
    logger.info(
        "coins_debited",
        user_id=user_id,
        amount=amount,
        type=tx_type,
        reference_type=reference_type,
        reference_id=reference_id,
        balance_after=entry.balance_after,
    )
    return entry


async def get_balance(db: AsyncSession, user_id: str) -> int:
    """Current coin balance. Raises NotFoundError for unknown users."""
    result = await db.execute(select(User.coin_balance).where(User.id == user_id))
    balance = result.scalar_one_or_none()
    if balance is None:
        raise NotFoundError("User", user_id)
    return balance


async def get_transaction_history(
    db: AsyncSession,
    user_id: str,
    page: int | None = None,
    limit: int | None = None,
) -> Page[CoinTransaction]:
    """Paginated ledger entries for a user, newest first."""
    params = normalize_page_params(page, limit)
    query = select(CoinTransaction).where(CoinTransaction.user_id == user_id)

    total = await count_rows(db, query)
    result = await db.execute(
        query.order_by(CoinTransaction.created_at.desc(), CoinTransaction.id.desc())
        .offset(params.offset)
        .limit(params.limit)
    )
    return build_page(list(result.scalars().all()), total, params)
