"""Notification staging and pub/sub push."""

from __future__ import annotations

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from sparks.notifications.service import build_notification, push_notification


def _notification():
    db = MagicMock()
    notification = build_notification(
        db, "u2", "gift_received", "You received a Star!", data={"gift_name": "Star"}
    )
    notification.id = "n-1"
    return db, notification


def test_build_adds_to_session():
    db, notification = _notification()
    db.add.assert_called_once_with(notification)
    assert notification.read is False
    assert notification.created_at is not None


@pytest.mark.asyncio
async def test_push_publishes_to_user_channel():
    _, notification = _notification()
    redis = AsyncMock()

    await push_notification(redis, notification)

    channel, payload = redis.publish.await_args.args
    assert channel == "ws:user:u2"
    message = json.loads(payload)
    assert message["event"] == "notification"
    assert message["data"]["id"] == "n-1"
    assert message["data"]["data"] == {"gift_name": "Star"}


@pytest.mark.asyncio
async def test_push_failure_is_swallowed():
    _, notification = _notification()
    redis = AsyncMock()
    redis.publish.side_effect = ConnectionError("redis gone")
    await push_notification(redis, notification)


@pytest.mark.asyncio
async def test_push_without_redis_is_noop():
    _, notification = _notification()
    await push_notification(None, notification)
