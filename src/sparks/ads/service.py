"""Ad event logging and capped rewards for watched ads.

Reward eligibility is derived from the ad_events log itself:
- a claim needs a ``completed`` event for the same placement within the
  freshness window
- daily caps count today's ``reward_granted`` events per reward type

Placements containing "super_vote" grant an in-kind super vote (Redis
counter, not the coin ledger); every other placement grants bonus coins.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, time, timedelta, timezone
from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sparks.coins.ledger import TX_REWARD, apply_credit, lock_user
from sparks.db.models import AdEvent, User
from sparks.errors import NotFoundError, ValidationError
from sparks.redis_client import invalidate_profiles

logger = structlog.get_logger()

AD_TYPES = frozenset({"interstitial", "rewarded", "banner", "native"})
AD_EVENT_TYPES = frozenset({"impression", "click", "completed", "reward_granted", "failed"})

REWARD_SUPER_VOTE = "super_vote"
REWARD_BONUS_COINS = "bonus_coins"

MAX_SUPER_VOTE_REWARDS_PER_DAY = 5
MAX_BONUS_COIN_REWARDS_PER_DAY = 10
SUPER_VOTE_REWARD_AMOUNT = 1
BONUS_COIN_REWARD_AMOUNT = 10

COMPLETION_FRESHNESS = timedelta(minutes=5)

SUPER_VOTE_KEY = "user:{user_id}:super_votes"

FREE_TIER_PLACEMENTS = {
    "interstitial": ["after_vote", "between_challenges"],
    "banner": ["feed_bottom", "leaderboard_bottom"],
    "rewarded": ["super_vote", "bonus_coins", "extra_submission"],
}


@dataclass(frozen=True)
class RewardRule:
    reward_type: str
    amount: int
    max_daily: int


SUPER_VOTE_RULE = RewardRule(REWARD_SUPER_VOTE, SUPER_VOTE_REWARD_AMOUNT, MAX_SUPER_VOTE_REWARDS_PER_DAY)
BONUS_COINS_RULE = RewardRule(REWARD_BONUS_COINS, BONUS_COIN_REWARD_AMOUNT, MAX_BONUS_COIN_REWARDS_PER_DAY)


def classify_placement(placement: str) -> RewardRule:
    """Pick the reward rule for a placement name."""
    if "super_vote" in placement:
        return SUPER_VOTE_RULE
    return BONUS_COINS_RULE


def remaining_after_claim(max_daily: int, count_before: int) -> int:
    """Rewards left today after one more grant, never negative."""
    return max(0, max_daily - count_before - 1)


def start_of_utc_day(now: datetime) -> datetime:
    return datetime.combine(now.astimezone(timezone.utc).date(), time.min, tzinfo=timezone.utc)


def _validate_ad_type(ad_type: str) -> None:
    if ad_type not in AD_TYPES:
        raise ValidationError.for_field("Invalid ad type", "ad_type", f"Unknown ad type: {ad_type}")


async def log_ad_event(
    db: AsyncSession,
    user_id: str | None,
    ad_type: str,
    placement: str,
    event_type: str,
    reward_type: str | None = None,
    reward_amount: int | None = None,
    ad_network: str = "admob",
    ad_unit_id: str | None = None,
) -> AdEvent:
    """Record a client-reported ad event. ``user_id`` may be None."""
    _validate_ad_type(ad_type)
    if event_type not in AD_EVENT_TYPES:
        raise ValidationError.for_field("Invalid ad event", "event_type", f"Unknown event type: {event_type}")

    event = AdEvent(
        user_id=user_id,
        ad_type=ad_type,
        placement=placement,
        ad_network=ad_network,
        ad_unit_id=ad_unit_id,
        event_type=event_type,
        reward_type=reward_type,
        reward_amount=reward_amount,
    )
    db.add(event)
    try:
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    logger.debug("ad_event_logged", user_id=user_id, ad_type=ad_type, placement=placement, event_type=event_type)
    return event


async def find_recent_completion(
    db: AsyncSession,
    user_id: str,
    ad_type: str,
    placement: str,
    now: datetime,
) -> AdEvent | None:
    """Newest ``completed`` event for the placement inside the freshness window."""
    result = await db.execute(
        select(AdEvent)
        .where(
            AdEvent.user_id == user_id,
            AdEvent.ad_type == ad_type,
            AdEvent.placement == placement,
            AdEvent.event_type == "completed",
            AdEvent.created_at > now - COMPLETION_FRESHNESS,
        )
        .order_by(AdEvent.created_at.desc())
        .limit(1)
    )
    return result.scalar_one_or_none()


async def count_rewards_today(
    db: AsyncSession,
    user_id: str,
    reward_type: str,
    now: datetime,
) -> int:
    """Number of rewards of ``reward_type`` granted since UTC midnight."""
    result = await db.execute(
        select(func.count(AdEvent.id)).where(
            AdEvent.user_id == user_id,
            AdEvent.event_type == "reward_granted",
            AdEvent.reward_type == reward_type,
            AdEvent.created_at >= start_of_utc_day(now),
        )
    )
    return int(result.scalar_one())


async def claim_ad_reward(
    db: AsyncSession,
    redis: Any,  # noqa: ANN401
    user_id: str,
    ad_type: str,
    placement: str,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Grant the reward for a freshly completed ad.

    Returns {"reward_type", "reward_amount", "remaining_today"}.
    """
    _validate_ad_type(ad_type)
    if now is None:
        now = datetime.now(timezone.utc)

    completion = await find_recent_completion(db, user_id, ad_type, placement, now)
    if completion is None:
        raise ValidationError.for_field(
            "No eligible ad completion",
            "placement",
            "No recently completed rewarded ad found for this placement",
        )

    rule = classify_placement(placement)

    try:
        # Counting under the user lock keeps concurrent claims inside the cap
        user = await lock_user(db, user_id)
        count_before = await count_rewards_today(db, user_id, rule.reward_type, now)
        if count_before >= rule.max_daily:
            raise ValidationError.for_field(
                "Daily limit reached",
                "placement",
                f"You have reached the daily limit of {rule.max_daily} {rule.reward_type} rewards",
            )

        if rule.reward_type == REWARD_BONUS_COINS:
            await apply_credit(
                db,
                user,
                rule.amount,
                TX_REWARD,
                reference_type="ad_reward",
                reference_id=completion.id,
                description="Bonus coins from watching ad",
            )

        db.add(AdEvent(
            user_id=user_id,
            ad_type=ad_type,
            placement=placement,
            event_type="reward_granted",
            reward_type=rule.reward_type,
            reward_amount=rule.amount,
        ))
        await db.flush()
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    # Only committed grants reach the super-vote counter
    if rule.reward_type == REWARD_SUPER_VOTE:
        await redis.incrby(SUPER_VOTE_KEY.format(user_id=user_id), rule.amount)
    else:
        await invalidate_profiles(redis, user_id)

    remaining = remaining_after_claim(rule.max_daily, count_before)
    logger.info(
        "ad_reward_claimed",
        user_id=user_id,
        reward_type=rule.reward_type,
        reward_amount=rule.amount,
        remaining_today=remaining,
    )

    return {
        "reward_type": rule.reward_type,
        "reward_amount": rule.amount,
        "remaining_today": remaining,
    }


async def get_daily_ad_stats(
    db: AsyncSession,
    user_id: str,
    now: datetime | None = None,
) -> dict[str, int]:
    """Rewards granted and remaining today, plus rewarded ads completed."""
    if now is None:
        now = datetime.now(timezone.utc)

    super_votes = await count_rewards_today(db, user_id, REWARD_SUPER_VOTE, now)
    bonus_coins = await count_rewards_today(db, user_id, REWARD_BONUS_COINS, now)

    watched = await db.execute(
        select(func.count(AdEvent.id)).where(
            AdEvent.user_id == user_id,
            AdEvent.ad_type == "rewarded",
            AdEvent.event_type == "completed",
            AdEvent.created_at >= start_of_utc_day(now),
        )
    )

    return {
        "super_vote_rewards_today": super_votes,
        "super_vote_rewards_remaining": max(0, MAX_SUPER_VOTE_REWARDS_PER_DAY - super_votes),
        "bonus_coin_rewards_today": bonus_coins,
        "bonus_coin_rewards_remaining": max(0, MAX_BONUS_COIN_REWARDS_PER_DAY - bonus_coins),
        "total_ads_watched_today": int(watched.scalar_one()),
    }


async def get_ad_config(db: AsyncSession, user_id: str) -> dict[str, Any]:
    """Which ad formats to show. Pro subscribers see none."""
    result = await db.execute(select(User.subscription_tier).where(User.id == user_id))
    tier = result.scalar_one_or_none()
    if tier is None:
        raise NotFoundError("User", user_id)

    if tier == "pro":
        return {
            "show_interstitial": False,
            "show_banner": False,
            "show_rewarded": False,
            "placements": {kind: [] for kind in FREE_TIER_PLACEMENTS},
        }

    return {
        "show_interstitial": True,
        "show_banner": True,
        "show_rewarded": True,
        "placements": {kind: list(names) for kind, names in FREE_TIER_PLACEMENTS.items()},
    }


async def get_super_vote_balance(redis: Any, user_id: str) -> int:  # noqa: ANN401
    """Super votes earned from ads and not yet spent."""
    value = await redis.get(SUPER_VOTE_KEY.format(user_id=user_id))
    return int(value or 0)
