"""Boost endpoints (services mocked)."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from sparks.boosts.service import get_tiers
from sparks.db.models import SubmissionBoost
from sparks.errors import NotFoundError

USER_ID = "0b6f4a52-1c1e-4d8b-9a3e-5d2c7f1e0001"
SUBMISSION_ID = "0b6f4a52-1c1e-4d8b-9a3e-5d2c7f1e0003"
MISSING_SUBMISSION_ID = "0b6f4a52-1c1e-4d8b-9a3e-5d2c7f1e00ff"


@pytest.mark.asyncio
async def test_tiers(api_client: AsyncClient, monkeypatch) -> None:
    tiers = AsyncMock(return_value={"tiers": get_tiers(), "first_boost_free": True})
    monkeypatch.setattr("sparks.boosts.service.get_tiers_for_user", tiers)

    response = await api_client.get(f"/api/v1/boosts/tiers?user_id={USER_ID}")

    assert response.status_code == 200
    body = response.json()
    assert body["first_boost_free"] is True
    assert [t["tier"] for t in body["tiers"]] == ["small", "medium", "large"]
    assert body["tiers"][1]["boost_value"] == 0.3
    assert tiers.await_args.args[1] == USER_ID


@pytest.mark.asyncio
async def test_purchase(api_client: AsyncClient, monkeypatch) -> None:
    started = datetime(2026, 10, 19, tzinfo=timezone.utc)
    boost = SubmissionBoost(
        id="b-1",
        submission_id=SUBMISSION_ID,
        user_id=USER_ID,
        tier="small",
        coin_amount=0,
        boost_value=Decimal("0.1"),
        started_at=started,
        expires_at=started + timedelta(hours=12),
    )
    purchase = AsyncMock(return_value=boost)
    monkeypatch.setattr("sparks.boosts.service.purchase_boost", purchase)

    response = await api_client.post(
        f"/api/v1/users/{USER_ID}/boosts", json={"submission_id": SUBMISSION_ID, "tier": "small"}
    )

    assert response.status_code == 201
    assert response.json()["coin_amount"] == 0
    assert purchase.await_args.args[2:] == (USER_ID, SUBMISSION_ID, "small")


@pytest.mark.asyncio
async def test_purchase_missing_submission(api_client: AsyncClient, monkeypatch) -> None:
    monkeypatch.setattr(
        "sparks.boosts.service.purchase_boost",
        AsyncMock(side_effect=NotFoundError("Submission", MISSING_SUBMISSION_ID)),
    )
    response = await api_client.post(
        f"/api/v1/users/{USER_ID}/boosts", json={"submission_id": MISSING_SUBMISSION_ID, "tier": "small"}
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_purchase_malformed_submission_id(api_client: AsyncClient, monkeypatch) -> None:
    purchase = AsyncMock()
    monkeypatch.setattr("sparks.boosts.service.purchase_boost", purchase)

    response = await api_client.post(
        f"/api/v1/users/{USER_ID}/boosts", json={"submission_id": "not-a-uuid", "tier": "small"}
    )

    assert response.status_code == 422
    assert response.json()["code"] == "REQUEST_INVALID"
    purchase.assert_not_awaited()


@pytest.mark.asyncio
async def test_submission_boosts_malformed_id(api_client: AsyncClient) -> None:
    response = await api_client.get("/api/v1/submissions/not-a-uuid/boosts")
    assert response.status_code == 422
