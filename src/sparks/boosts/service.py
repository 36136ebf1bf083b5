"""Paid visibility boosts on submissions.

A submission's ``boost_score`` is the sum of ``boost_value`` over its
non-expired boosts, capped at MAX_BOOST_SCORE. Purchases recompute it
inside the purchase transaction; ``expire_boosts`` (run by the
maintenance worker) recomputes affected submissions and deletes the
expired rows.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Any

import structlog
from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from sparks.coins.ledger import TX_BOOST_SPENT, apply_debit, lock_user
from sparks.db.models import Submission, SubmissionBoost
from sparks.errors import NotFoundError, ValidationError
from sparks.pagination import Page, build_page, count_rows, normalize_page_params
from sparks.redis_client import invalidate_profiles

logger = structlog.get_logger()

MAX_BOOST_SCORE = Decimal("2.0")
FREE_TRIAL_TIER = "small"


@dataclass(frozen=True)
class BoostTier:
    tier: str
    cost: int
    boost_value: Decimal
    duration_hours: int

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["boost_value"] = float(self.boost_value)
        return data


BOOST_TIERS: dict[str, BoostTier] = {
    "small": BoostTier("small", 50, Decimal("0.1"), 12),
    "medium": BoostTier("medium", 200, Decimal("0.3"), 24),
    "large": BoostTier("large", 500, Decimal("0.5"), 48),
}


def get_tiers() -> list[BoostTier]:
    return list(BOOST_TIERS.values())


def get_tier(name: str) -> BoostTier:
    """Look up a tier by name. Raises ValidationError for unknown tiers."""
    tier = BOOST_TIERS.get(name)
    if tier is None:
        raise ValidationError.for_field("Invalid boost tier", "tier", f"Unknown tier: {name}")
    return tier


def boost_cost(tier: BoostTier, first_boost: bool) -> int:
    """A user's very first boost is free when it is a small one."""
    if first_boost and tier.tier == FREE_TRIAL_TIER:
        return 0
    return tier.cost


def clamp_boost_score(total: Decimal | float | int | None) -> Decimal:
    """Clamp a raw boost sum into [0, MAX_BOOST_SCORE]."""
    if not total:
        return Decimal("0")
    return min(Decimal(str(total)), MAX_BOOST_SCORE)


async def is_first_boost(db: AsyncSession, user_id: str) -> bool:
    """True if the user has never bought a boost (expired ones count)."""
    result = await db.execute(
        select(func.count(SubmissionBoost.id)).where(SubmissionBoost.user_id == user_id)
    )
    return int(result.scalar_one()) == 0


async def get_tiers_for_user(db: AsyncSession, user_id: str | None = None) -> dict[str, Any]:
    """Tiers plus whether this user still qualifies for the free first boost."""
    first_free = await is_first_boost(db, user_id) if user_id else False
    return {"tiers": get_tiers(), "first_boost_free": first_free}


async def recalculate_boost_score(
    db: AsyncSession,
    submission_id: str,
    now: datetime | None = None,
) -> Decimal:
    """Capped sum of boost_value over the submission's active boosts."""
    if now is None:
        now = datetime.now(timezone.utc)
    result = await db.execute(
        select(func.sum(SubmissionBoost.boost_value)).where(
            SubmissionBoost.submission_id == submission_id,
            SubmissionBoost.expires_at > now,
        )
    )
    return clamp_boost_score(result.scalar_one_or_none())


async def _get_boostable_submission(db: AsyncSession, submission_id: str, lock: bool = False) -> Submission:
    """Live, approved submission below the boost cap. ``lock`` reads it FOR UPDATE."""
    query = select(Submission).where(
        Submission.id == submission_id,
        Submission.transcode_status == "completed",
        Submission.moderation_status == "approved",
        Submission.deleted_at.is_(None),
    )
    if lock:
        query = query.with_for_update().execution_options(populate_existing=True)

    result = await db.execute(query)
    submission = result.scalar_one_or_none()
    if submission is None:
        raise NotFoundError("Submission", submission_id)

    if Decimal(submission.boost_score or 0) >= MAX_BOOST_SCORE:
        raise ValidationError.for_field(
            "Boost limit reached",
            "submission_id",
            f"Submission has reached the maximum boost score of {MAX_BOOST_SCORE}",
        )
    return submission


async def purchase_boost(
    db: AsyncSession,
    redis: Any,  # noqa: ANN401
    user_id: str,
    submission_id: str,
    tier_name: str,
    now: datetime | None = None,
) -> SubmissionBoost:
    """Spend coins to boost a submission.

    The first-boost check runs after the user row is locked so two
    concurrent "first" purchases cannot both be free.
    """
    tier = get_tier(tier_name)
    await _get_boostable_submission(db, submission_id)

    if now is None:
        now = datetime.now(timezone.utc)

    try:
        user = await lock_user(db, user_id)
        first_boost = await is_first_boost(db, user_id)
        cost = boost_cost(tier, first_boost)

        if cost > 0:
            await apply_debit(
                db,
                user,
                cost,
                TX_BOOST_SPENT,
                reference_type="submission_boost",
                reference_id=submission_id,
                description=f"{tier.tier} boost on submission",
                field="tier",
            )

        # Users are always locked before submissions
        submission = await _get_boostable_submission(db, submission_id, lock=True)

        boost = SubmissionBoost(
            submission_id=submission_id,
            user_id=user_id,
            tier=tier.tier,
            coin_amount=cost,
            boost_value=tier.boost_value,
            started_at=now,
            expires_at=now + timedelta(hours=tier.duration_hours),
        )
        db.add(boost)
        await db.flush()

        submission.boost_score = await recalculate_boost_score(db, submission_id, now)
        submission.updated_at = now
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    if cost > 0:
        await invalidate_profiles(redis, user_id)

    logger.info(
        "boost_purchased",
        user_id=user_id,
        submission_id=submission_id,
        tier=tier.tier,
        cost=cost,
        boost_value=float(tier.boost_value),
        first_boost_free=cost == 0,
    )
    return boost


async def get_submission_boosts(
    db: AsyncSession,
    submission_id: str,
    now: datetime | None = None,
) -> list[SubmissionBoost]:
    """Active boosts on a submission, newest first."""
    if now is None:
        now = datetime.now(timezone.utc)
    result = await db.execute(
        select(SubmissionBoost)
        .where(
            SubmissionBoost.submission_id == submission_id,
            SubmissionBoost.expires_at > now,
        )
        .order_by(SubmissionBoost.started_at.desc())
    )
    return list(result.scalars().all())


async def get_boost_history(
    db: AsyncSession,
    user_id: str,
    page: int | None = None,
    limit: int | None = None,
) -> Page[SubmissionBoost]:
    """Boosts bought by a user that have not been swept yet, newest first."""
    params = normalize_page_params(page, limit)
    query = select(SubmissionBoost).where(SubmissionBoost.user_id == user_id)

    total = await count_rows(db, query)
    result = await db.execute(
        query.order_by(SubmissionBoost.started_at.desc())
        .offset(params.offset)
        .limit(params.limit)
    )
    return build_page(list(result.scalars().all()), total, params)


async def expire_boosts(db: AsyncSession, now: datetime | None = None) -> int:
    """Sweep expired boosts.

    1. Find submissions with boosts whose expires_at has passed
    2. Recompute each one's score from its remaining active boosts
    3. Delete the expired rows

    Returns the number of boost rows deleted.
    """
    if now is None:
        now = datetime.now(timezone.utc)

    try:
        affected = await db.execute(
            select(SubmissionBoost.submission_id)
            .where(SubmissionBoost.expires_at <= now)
            .group_by(SubmissionBoost.submission_id)
        )
        submission_ids = [row[0] for row in affected]
        if not submission_ids:
            await db.rollback()
            return 0

        for submission_id in submission_ids:
            result = await db.execute(
                select(Submission)
                .where(Submission.id == submission_id)
                .with_for_update()
                .execution_options(populate_existing=True)
            )
            submission = result.scalar_one_or_none()
            if submission is None:
                continue
            submission.boost_score = await recalculate_boost_score(db, submission_id, now)
            submission.updated_at = now

        deleted = await db.execute(
            delete(SubmissionBoost).where(SubmissionBoost.expires_at <= now)
        )
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    count = deleted.rowcount or 0
    if count > 0:
        logger.info("boosts_expired", submissions_affected=len(submission_ids), boosts_deleted=count)
    return count
