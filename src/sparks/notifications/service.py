"""In-app notifications raised by economy events.

Notifications are:
1. Added to the caller's unit of work (committed with the event itself)
2. Pushed to the user via Redis pub/sub once the commit has succeeded
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from sparks.db.models import Notification

logger = logging.getLogger(__name__)

TYPE_GIFT_RECEIVED = "gift_received"

WS_CHANNEL = "ws:user:{user_id}"


def build_notification(
    db: AsyncSession,
    user_id: str,
    type_: str,
    title: str,
    body: str | None = None,
    data: dict[str, Any] | None = None,
) -> Notification:
    """Stage a notification row in the current session (no flush/commit)."""
    notification = Notification(
        user_id=user_id,
        type=type_,
        title=title,
        body=body,
        data=data or {},
        read=False,
        created_at=datetime.now(timezone.utc),
    )
    db.add(notification)
    return notification


def notification_payload(notification: Notification) -> dict[str, Any]:
    return {
        "event": "notification",
        "data": {
            "id": str(notification.id),
            "type": notification.type,
            "title": notification.title,
            "body": notification.body,
            "data": notification.data,
            "timestamp": notification.created_at.isoformat() if notification.created_at else None,
            "read": False,
        },
    }


async def push_notification(redis: Any | None, notification: Notification) -> None:  # noqa: ANN401
    """Publish a committed notification to ws:user:{user_id}.

    Delivery is best effort: the row is already stored, so a publish
    failure is only logged.
    """
    if redis is None:
        return
    try:
        await redis.publish(
            WS_CHANNEL.format(user_id=notification.user_id),
            json.dumps(notification_payload(notification)),
        )
    except Exception:
        logger.warning("Failed to push notification via ws:user:%s", notification.user_id, exc_info=True)
