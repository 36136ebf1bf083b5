"""Gift catalog and coin gifts on submissions.

A gift moves the full ``coin_cost`` out of the sender's balance; the
submission owner receives ``creator_coin_share`` and the platform keeps
the rest. Everything (both ledger entries, the gift record, the
submission aggregate and the receiver's notification) commits together.
"""

from __future__ import annotations

import json
import uuid
from datetime import datetime, timezone
from typing import Any

import structlog
from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from sparks.coins.ledger import TX_GIFT_RECEIVED, TX_GIFT_SENT, apply_credit, apply_debit, lock_user
from sparks.config import get_settings
from sparks.db.models import GiftCatalogEntry, GiftTransaction, Submission, User
from sparks.errors import ForbiddenError, NotFoundError, ValidationError
from sparks.notifications.service import TYPE_GIFT_RECEIVED, build_notification, push_notification
from sparks.pagination import Page, build_page, count_rows, normalize_page_params
from sparks.redis_client import invalidate_profiles

logger = structlog.get_logger()

CATALOG_CACHE_KEY = "gift:catalog"
GIFT_CATEGORIES = ("quick_reaction", "standard", "premium")
REFERENCE_GIFT_TRANSACTION = "gift_transaction"
MAX_MESSAGE_LENGTH = 100


# ---------------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------------


def _iso(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def catalog_entry_to_dict(gift: GiftCatalogEntry) -> dict[str, Any]:
    return {
        "id": gift.id,
        "name": gift.name,
        "name_ja": gift.name_ja,
        "icon_url": gift.icon_url,
        "animation_url": gift.animation_url,
        "category": gift.category,
        "coin_cost": gift.coin_cost,
        "creator_coin_share": gift.creator_coin_share,
        "sort_order": gift.sort_order,
    }


def gift_transaction_to_dict(tx: GiftTransaction) -> dict[str, Any]:
    return {
        "id": tx.id,
        "sender_id": tx.sender_id,
        "receiver_id": tx.receiver_id,
        "submission_id": tx.submission_id,
        "gift_id": tx.gift_id,
        "coin_amount": tx.coin_amount,
        "creator_share": tx.creator_share,
        "platform_share": tx.platform_share,
        "message": tx.message,
        "created_at": _iso(tx.created_at),
    }


def group_catalog(gifts: list[GiftCatalogEntry]) -> dict[str, list[dict[str, Any]]]:
    """Bucket active gifts by category, keeping sort order within each."""
    grouped: dict[str, list[dict[str, Any]]] = {category: [] for category in GIFT_CATEGORIES}
    for gift in gifts:
        grouped.setdefault(gift.category, []).append(catalog_entry_to_dict(gift))
    return grouped


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------


async def get_catalog(db: AsyncSession, redis: Any | None = None) -> dict[str, list[dict[str, Any]]]:  # noqa: ANN401
    """Active gifts grouped by category, cached in Redis."""
    if redis is not None:
        cached = await redis.get(CATALOG_CACHE_KEY)
        if cached:
            return json.loads(cached)

    result = await db.execute(
        select(GiftCatalogEntry)
        .where(GiftCatalogEntry.is_active.is_(True))
        .order_by(GiftCatalogEntry.sort_order.asc())
    )
    grouped = group_catalog(list(result.scalars().all()))

    if redis is not None:
        await redis.set(
            CATALOG_CACHE_KEY,
            json.dumps(grouped),
            ex=get_settings().gift_catalog_cache_ttl_seconds,
        )
    return grouped


async def _get_active_gift(db: AsyncSession, gift_id: str) -> GiftCatalogEntry:
    result = await db.execute(
        select(GiftCatalogEntry).where(
            GiftCatalogEntry.id == gift_id,
            GiftCatalogEntry.is_active.is_(True),
        )
    )
    gift = result.scalar_one_or_none()
    if gift is None:
        raise NotFoundError("Gift", gift_id)
    return gift


async def _get_live_submission(db: AsyncSession, submission_id: str) -> Submission:
    result = await db.execute(
        select(Submission).where(
            Submission.id == submission_id,
            Submission.deleted_at.is_(None),
        )
    )
    submission = result.scalar_one_or_none()
    if submission is None:
        raise NotFoundError("Submission", submission_id)
    return submission


# ---------------------------------------------------------------------------
# Sending
# ---------------------------------------------------------------------------


async def send_gift(
    db: AsyncSession,
    redis: Any,  # noqa: ANN401
    sender_id: str,
    receiver_id: str,
    submission_id: str,
    gift_id: str,
    message: str | None = None,
) -> dict[str, Any]:
    """Send a catalog gift to the owner of a submission.

    Returns the gift transaction as a dict with ``gift_name`` and
    ``gift_icon_url`` added.
    """
    if sender_id == receiver_id:
        raise ForbiddenError("You cannot send a gift to yourself")
    if message is not None and len(message) > MAX_MESSAGE_LENGTH:
        raise ValidationError.for_field(
            "Invalid message", "message", f"Message must be at most {MAX_MESSAGE_LENGTH} characters"
        )

    gift = await _get_active_gift(db, gift_id)
    submission = await _get_live_submission(db, submission_id)
    if submission.user_id != receiver_id:
        raise ValidationError.for_field("Invalid receiver", "receiver_id", "Receiver must be the submission owner")

    creator_share = gift.creator_coin_share
    platform_share = gift.coin_cost - creator_share
    gift_tx_id = str(uuid.uuid4())
    now = datetime.now(timezone.utc)

    try:
        # Sender is always locked before receiver
        sender = await lock_user(db, sender_id)
        await apply_debit(
            db,
            sender,
            gift.coin_cost,
            TX_GIFT_SENT,
            reference_type=REFERENCE_GIFT_TRANSACTION,
            reference_id=gift_tx_id,
            description=f"Sent {gift.name} gift",
            field="gift_id",
        )

        receiver = await lock_user(db, receiver_id)
        if creator_share > 0:
            await apply_credit(
                db,
                receiver,
                creator_share,
                TX_GIFT_RECEIVED,
                reference_type=REFERENCE_GIFT_TRANSACTION,
                reference_id=gift_tx_id,
                description=f"Received {gift.name} gift",
            )

        gift_tx = GiftTransaction(
            id=gift_tx_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            submission_id=submission_id,
            gift_id=gift_id,
            coin_amount=gift.coin_cost,
            creator_share=creator_share,
            platform_share=platform_share,
            message=message or None,
        )
        db.add(gift_tx)

        await db.execute(
            update(Submission)
            .where(Submission.id == submission_id)
            .values(
                gift_coins_received=Submission.gift_coins_received + gift.coin_cost,
                updated_at=now,
            )
        )

        notification = build_notification(
            db,
            receiver_id,
            TYPE_GIFT_RECEIVED,
            title=f"You received a {gift.name}!",
            body=message or f"Someone sent you a {gift.name} on your submission",
            data={
                "gift_id": gift_id,
                "gift_name": gift.name,
                "gift_icon_url": gift.icon_url,
                "sender_id": sender_id,
                "submission_id": submission_id,
                "coin_amount": creator_share,
            },
        )
        await db.flush()
        await db.commit()
    except Exception:
        await db.rollback()
        raise

    await invalidate_profiles(redis, sender_id, receiver_id)
    await push_notification(redis, notification)

    logger.info(
        "gift_sent",
        sender_id=sender_id,
        receiver_id=receiver_id,
        submission_id=submission_id,
        gift_id=gift_id,
        gift_name=gift.name,
        coin_cost=gift.coin_cost,
        creator_share=creator_share,
        platform_share=platform_share,
    )

    data = gift_transaction_to_dict(gift_tx)
    data["gift_name"] = gift.name
    data["gift_icon_url"] = gift.icon_url
    return data


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


async def _gift_page(
    db: AsyncSession,
    condition: Any,  # noqa: ANN401
    counterpart_column: Any,  # noqa: ANN401
    counterpart_prefix: str,
    page: int | None,
    limit: int | None,
) -> Page[dict[str, Any]]:
    """One page of gift transactions joined with catalog and counterpart user."""
    params = normalize_page_params(page, limit)
    total = await count_rows(db, select(GiftTransaction.id).where(condition))

    counterpart = aliased(User)
    result = await db.execute(
        select(
            GiftTransaction,
            GiftCatalogEntry.name,
            GiftCatalogEntry.icon_url,
            GiftCatalogEntry.animation_url,
            counterpart.username,
            counterpart.display_name,
            counterpart.avatar_url,
        )
        .outerjoin(GiftCatalogEntry, GiftTransaction.gift_id == GiftCatalogEntry.id)
        .outerjoin(counterpart, counterpart_column == counterpart.id)
        .where(condition)
        .order_by(GiftTransaction.created_at.desc(), GiftTransaction.id.desc())
        .offset(params.offset)
        .limit(params.limit)
    )

    rows = []
    for tx, gift_name, icon_url, animation_url, username, display_name, avatar_url in result.all():
        data = gift_transaction_to_dict(tx)
        data["gift_name"] = gift_name
        data["gift_icon_url"] = icon_url
        data["gift_animation_url"] = animation_url
        data[f"{counterpart_prefix}_username"] = username
        data[f"{counterpart_prefix}_display_name"] = display_name
        data[f"{counterpart_prefix}_avatar_url"] = avatar_url
        rows.append(data)
    return build_page(rows, total, params)


async def get_received_gifts(
    db: AsyncSession,
    user_id: str,
    page: int | None = None,
    limit: int | None = None,
) -> Page[dict[str, Any]]:
    return await _gift_page(
        db, GiftTransaction.receiver_id == user_id, GiftTransaction.sender_id, "sender", page, limit
    )


async def get_sent_gifts(
    db: AsyncSession,
    user_id: str,
    page: int | None = None,
    limit: int | None = None,
) -> Page[dict[str, Any]]:
    return await _gift_page(
        db, GiftTransaction.sender_id == user_id, GiftTransaction.receiver_id, "receiver", page, limit
    )


async def get_submission_gifts(
    db: AsyncSession,
    submission_id: str,
    page: int | None = None,
    limit: int | None = None,
) -> Page[dict[str, Any]]:
    """Gifts on a submission. Raises NotFoundError for missing or deleted ones."""
    await _get_live_submission(db, submission_id)
    return await _gift_page(
        db, GiftTransaction.submission_id == submission_id, GiftTransaction.sender_id, "sender", page, limit
    )
