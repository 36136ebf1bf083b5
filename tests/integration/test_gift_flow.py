"""Gift transfers against PostgreSQL."""

from __future__ import annotations

import json

import pytest
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from sparks.coins.ledger import get_balance
from sparks.db.models import CoinTransaction, GiftTransaction, Notification, Submission
from sparks.errors import NotFoundError, ValidationError
from sparks.gifts.seed import seed_gift_catalog
from sparks.gifts.service import (
    CATALOG_CACHE_KEY,
    get_catalog,
    get_received_gifts,
    get_sent_gifts,
    get_submission_gifts,
    send_gift,
)


@pytest.mark.asyncio
async def test_split_between_creator_and_platform(
    db_session: AsyncSession, make_user, make_submission, make_gift, fake_redis
) -> None:
    sender = await make_user(balance=200)
    receiver = await make_user(balance=10)
    submission = await make_submission(receiver)
    gift = await make_gift(coin_cost=100, creator_coin_share=50)

    result = await send_gift(db_session, fake_redis, sender.id, receiver.id, submission.id, gift.id, "nice")

    assert (result["coin_amount"], result["creator_share"], result["platform_share"]) == (100, 50, 50)
    assert result["gift_name"] == "Trophy"
    assert result["gift_icon_url"] == "/assets/gifts/trophy.png"
    assert await get_balance(db_session, sender.id) == 100
    assert await get_balance(db_session, receiver.id) == 60

    received = await db_session.execute(
        select(Submission.gift_coins_received).where(Submission.id == submission.id)
    )
    assert received.scalar_one() == 100

    entries = (await db_session.execute(
        select(CoinTransaction).order_by(CoinTransaction.created_at)
    )).scalars().all()
    assert [(e.user_id, e.type, e.amount) for e in entries] == [
        (sender.id, "gift_sent", -100),
        (receiver.id, "gift_received", 50),
    ]
    assert all(e.reference_type == "gift_transaction" and e.reference_id == result["id"] for e in entries)

    notification = (await db_session.execute(
        select(Notification).where(Notification.user_id == receiver.id)
    )).scalar_one()
    assert notification.type == "gift_received"
    assert notification.data["coin_amount"] == 50

    fake_redis.delete.assert_awaited_once_with(f"user:{sender.id}", f"user:{receiver.id}")
    channel, payload = fake_redis.publish.await_args.args
    assert channel == f"ws:user:{receiver.id}"
    assert json.loads(payload)["data"]["title"] == "You received a Trophy!"


@pytest.mark.asyncio
async def test_zero_creator_share_skips_credit(
    db_session: AsyncSession, make_user, make_submission, make_gift
) -> None:
    sender = await make_user(balance=20)
    receiver = await make_user()
    submission = await make_submission(receiver)
    gift = await make_gift(name="Wave", coin_cost=5, creator_coin_share=0, category="quick_reaction")

    result = await send_gift(db_session, None, sender.id, receiver.id, submission.id, gift.id)

    assert result["platform_share"] == 5
    assert await get_balance(db_session, receiver.id) == 0
    receiver_entries = (await db_session.execute(
        select(CoinTransaction).where(CoinTransaction.user_id == receiver.id)
    )).scalars().all()
    assert receiver_entries == []


@pytest.mark.asyncio
async def test_insufficient_balance_rolls_back_everything(
    db_session: AsyncSession, make_user, make_submission, make_gift
) -> None:
    sender = await make_user(balance=99)
    receiver = await make_user()
    submission = await make_submission(receiver)
    gift = await make_gift()
    sender_id = sender.id

    with pytest.raises(ValidationError, match="Insufficient balance"):
        await send_gift(db_session, None, sender_id, receiver.id, submission.id, gift.id)

    assert await get_balance(db_session, sender_id) == 99
    assert (await db_session.execute(select(GiftTransaction))).scalars().all() == []
    assert (await db_session.execute(select(Notification))).scalars().all() == []


@pytest.mark.asyncio
async def test_lookups(db_session: AsyncSession, make_user, make_submission, make_gift) -> None:
    sender = await make_user(balance=500)
    receiver = await make_user()
    other = await make_user()
    submission = await make_submission(receiver)
    deleted = await make_submission(receiver, deleted=True)
    gift = await make_gift()
    retired = await make_gift(name="Retired", is_active=False)

    with pytest.raises(ValidationError, match="Invalid receiver"):
        await send_gift(db_session, None, sender.id, other.id, submission.id, gift.id)
    with pytest.raises(NotFoundError):
        await send_gift(db_session, None, sender.id, receiver.id, deleted.id, gift.id)
    with pytest.raises(NotFoundError):
        await send_gift(db_session, None, sender.id, receiver.id, submission.id, retired.id)

    assert await get_balance(db_session, sender.id) == 500


@pytest.mark.asyncio
async def test_histories(db_session: AsyncSession, make_user, make_submission, make_gift) -> None:
    sender = await make_user(balance=500, username="alice")
    receiver = await make_user(username="bob")
    submission = await make_submission(receiver)
    gift = await make_gift()

    await send_gift(db_session, None, sender.id, receiver.id, submission.id, gift.id)
    await send_gift(db_session, None, sender.id, receiver.id, submission.id, gift.id)

    received = await get_received_gifts(db_session, receiver.id)
    sent = await get_sent_gifts(db_session, sender.id, limit=1)
    on_submission = await get_submission_gifts(db_session, submission.id)

    assert received.total == 2
    assert received.data[0]["sender_username"] == "alice"
    assert received.data[0]["gift_name"] == "Trophy"
    assert sent.total == 2
    assert sent.total_pages == 2
    assert sent.data[0]["receiver_username"] == "bob"
    assert on_submission.total == 2


@pytest.mark.asyncio
async def test_submission_gifts_missing_submission(db_session: AsyncSession) -> None:
    with pytest.raises(NotFoundError):
        await get_submission_gifts(db_session, "00000000-0000-0000-0000-000000000000")


@pytest.mark.asyncio
async def test_catalog_seeded_grouped_and_cached(db_session: AsyncSession, fake_redis) -> None:
    assert await seed_gift_catalog(db_session) == 12
    # Seeding is idempotent
    assert await seed_gift_catalog(db_session) == 12

    catalog = await get_catalog(db_session, fake_redis)

    assert [g["name"] for g in catalog["quick_reaction"]] == ["Fire", "Clap", "Heart Eyes", "LOL", "Mind Blown"]
    assert [g["coin_cost"] for g in catalog["premium"]] == [500, 1000, 2000]
    assert catalog["standard"][0]["creator_coin_share"] == 25

    key, cached = fake_redis.set.await_args.args
    assert key == CATALOG_CACHE_KEY
    assert json.loads(cached) == catalog
    assert fake_redis.set.await_args.kwargs["ex"] == 3600


@pytest.mark.asyncio
async def test_catalog_served_from_cache(db_session: AsyncSession, fake_redis) -> None:
    fake_redis.get.return_value = json.dumps({"quick_reaction": [], "standard": [], "premium": []})
    catalog = await get_catalog(db_session, fake_redis)
    assert catalog == {"quick_reaction": [], "standard": [], "premium": []}
    fake_redis.set.assert_not_awaited()
