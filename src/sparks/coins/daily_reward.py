"""Daily login reward: a fixed coin bonus, once per user per UTC day.

No pre-check and no lock: the insert into daily_login_rewards either wins
the UNIQUE(user_id, reward_date) race or fails with a unique violation,
which is reported as "not claimed".
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from sparks.coins.ledger import TX_REWARD, apply_credit, lock_user
from sparks.db.models import DailyLoginReward
from sparks.errors import NotFoundError
from sparks.redis_client import invalidate_profiles

logger = structlog.get_logger()

DAILY_REWARD_AMOUNT = 3

UNIQUE_VIOLATION = "23505"
FOREIGN_KEY_VIOLATION = "23503"


def utc_today(now: datetime | None = None) -> date:
    """Current calendar date in UTC."""
    if now is None:
        now = datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).date()


def sqlstate(exc: IntegrityError) -> str | None:
    """SQLSTATE reported by the driver, looking through asyncpg's wrapping."""
    orig = exc.orig
    for candidate in (orig, getattr(orig, "__cause__", None)):
        if candidate is None:
            continue
        code = getattr(candidate, "pgcode", None) or getattr(candidate, "sqlstate", None)
        if code:
            return code
    return None


def is_unique_violation(exc: IntegrityError) -> bool:
    return sqlstate(exc) == UNIQUE_VIOLATION


async def claim_daily_reward(
    db: AsyncSession,
    redis: Any,  # noqa: ANN401
    user_id: str,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Claim today's login bonus. Returns {"claimed": bool, "amount": int}."""
    today = utc_today(now)

    reward = DailyLoginReward(
        user_id=user_id,
        reward_date=today,
        coin_amount=DAILY_REWARD_AMOUNT,
    )
    db.add(reward)

    try:
        await db.flush()
    except IntegrityError as exc:
        await db.rollback()
        if is_unique_violation(exc):
            return {"claimed": False, "amount": 0}
        if sqlstate(exc) == FOREIGN_KEY_VIOLATION:
            raise NotFoundError("User", user_id) from exc
        raise

    try:
        user = await lock_user(db, user_id)
        await apply_credit(
            db,
            user,
            DAILY_REWARD_AMOUNT,
            TX_REWARD,
            reference_type="daily_login",
            reference_id=reward.id,
            description="Daily login bonus",
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await invalidate_profiles(redis, user_id)
    logger.info("daily_reward_claimed", user_id=user_id, amount=DAILY_REWARD_AMOUNT, date=today.isoformat())

    return {"claimed": True, "amount": DAILY_REWARD_AMOUNT}


async def get_daily_reward_status(
    db: AsyncSession,
    user_id: str,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Whether today's bonus was claimed. ``amount`` is always the fixed bonus."""
    result = await db.execute(
        select(DailyLoginReward.id).where(
            DailyLoginReward.user_id == user_id,
            DailyLoginReward.reward_date == utc_today(now),
        )
    )
    return {
        "claimed_today": result.scalar_one_or_none() is not None,
        "amount": DAILY_REWARD_AMOUNT,
    }
