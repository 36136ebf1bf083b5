"""Gift endpoints (services mocked)."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from sparks.errors import ForbiddenError
from sparks.pagination import build_page, normalize_page_params

SENDER_ID = "0b6f4a52-1c1e-4d8b-9a3e-5d2c7f1e0001"
RECEIVER_ID = "0b6f4a52-1c1e-4d8b-9a3e-5d2c7f1e0002"
SUBMISSION_ID = "0b6f4a52-1c1e-4d8b-9a3e-5d2c7f1e0003"
GIFT_ID = "0b6f4a52-1c1e-4d8b-9a3e-5d2c7f1e0004"
SEND_URL = f"/api/v1/users/{SENDER_ID}/gifts"


def _gift_tx(**extra):
    row = {
        "id": "gt-1",
        "sender_id": SENDER_ID,
        "receiver_id": RECEIVER_ID,
        "submission_id": SUBMISSION_ID,
        "gift_id": GIFT_ID,
        "coin_amount": 100,
        "creator_share": 50,
        "platform_share": 50,
        "message": None,
        "created_at": "2026-10-19T00:00:00+00:00",
        "gift_name": "Trophy",
        "gift_icon_url": "/assets/gifts/trophy.png",
    }
    row.update(extra)
    return row


def _send_body(**overrides):
    body = {"receiver_id": RECEIVER_ID, "submission_id": SUBMISSION_ID, "gift_id": GIFT_ID}
    body.update(overrides)
    return body


@pytest.mark.asyncio
async def test_catalog(api_client: AsyncClient, monkeypatch) -> None:
    star = {
        "id": GIFT_ID,
        "name": "Star",
        "name_ja": None,
        "icon_url": "/assets/gifts/star.png",
        "animation_url": None,
        "category": "standard",
        "coin_cost": 50,
        "creator_coin_share": 25,
        "sort_order": 10,
    }
    monkeypatch.setattr(
        "sparks.gifts.service.get_catalog",
        AsyncMock(return_value={"quick_reaction": [], "standard": [star], "premium": []}),
    )
    response = await api_client.get("/api/v1/gifts/catalog")
    assert response.status_code == 200
    assert response.json()["standard"][0]["name"] == "Star"


@pytest.mark.asyncio
async def test_send(api_client: AsyncClient, monkeypatch) -> None:
    send = AsyncMock(return_value=_gift_tx())
    monkeypatch.setattr("sparks.gifts.service.send_gift", send)

    response = await api_client.post(SEND_URL, json=_send_body(message="gg"))

    assert response.status_code == 201
    assert response.json()["platform_share"] == 50
    assert send.await_args.args[2:] == (SENDER_ID, RECEIVER_ID, SUBMISSION_ID, GIFT_ID, "gg")


@pytest.mark.asyncio
async def test_send_to_self(api_client: AsyncClient, monkeypatch) -> None:
    monkeypatch.setattr(
        "sparks.gifts.service.send_gift",
        AsyncMock(side_effect=ForbiddenError("You cannot send a gift to yourself")),
    )
    response = await api_client.post(SEND_URL, json=_send_body(receiver_id=SENDER_ID))
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_message_length_checked_at_the_edge(api_client: AsyncClient) -> None:
    response = await api_client.post(SEND_URL, json=_send_body(message="x" * 101))
    assert response.status_code == 422


@pytest.mark.asyncio
@pytest.mark.parametrize("field", ["receiver_id", "submission_id", "gift_id"])
async def test_malformed_ids_rejected(api_client: AsyncClient, monkeypatch, field: str) -> None:
    send = AsyncMock()
    monkeypatch.setattr("sparks.gifts.service.send_gift", send)

    response = await api_client.post(SEND_URL, json=_send_body(**{field: "not-a-uuid"}))

    assert response.status_code == 422
    assert response.json()["code"] == "REQUEST_INVALID"
    send.assert_not_awaited()


@pytest.mark.asyncio
async def test_malformed_sender_in_path(api_client: AsyncClient) -> None:
    response = await api_client.post("/api/v1/users/abc/gifts", json=_send_body())
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_received(api_client: AsyncClient, monkeypatch) -> None:
    page = build_page([_gift_tx(sender_username="alice")], 1, normalize_page_params())
    monkeypatch.setattr("sparks.gifts.service.get_received_gifts", AsyncMock(return_value=page))

    response = await api_client.get(f"/api/v1/users/{RECEIVER_ID}/gifts/received")

    assert response.status_code == 200
    assert response.json()["data"][0]["sender_username"] == "alice"
