"""Middleware: request ids, rate limiting, health endpoints."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import pytest
from httpx import AsyncClient

from sparks.middleware.rate_limit import rate_limit_key

CLAIM_URL = "/api/v1/users/0b6f4a52-1c1e-4d8b-9a3e-5d2c7f1e0001/daily-reward/claim"


def _fake_redis(count: int) -> MagicMock:
    pipe = MagicMock()
    pipe.execute = AsyncMock(return_value=[count, True])
    redis = MagicMock()
    redis.pipeline.return_value = pipe
    return redis


@pytest.mark.asyncio
async def test_request_id_generated(api_client: AsyncClient) -> None:
    response = await api_client.get("/health")
    assert len(response.headers["x-request-id"]) == 36


@pytest.mark.asyncio
async def test_request_id_preserved(api_client: AsyncClient) -> None:
    response = await api_client.get("/health", headers={"X-Request-Id": "req-abc-123"})
    assert response.headers["x-request-id"] == "req-abc-123"


@pytest.mark.asyncio
async def test_health_and_version(api_client: AsyncClient) -> None:
    assert (await api_client.get("/health")).json() == {"status": "healthy"}
    version = (await api_client.get("/version")).json()
    assert version["service"] == "sparks-economy"


@pytest.mark.asyncio
async def test_reads_not_rate_limited(api_client: AsyncClient) -> None:
    response = await api_client.get("/health")
    assert "x-ratelimit-limit" not in response.headers


@pytest.mark.asyncio
async def test_mutation_under_limit(api_client: AsyncClient, monkeypatch) -> None:
    monkeypatch.setattr("sparks.middleware.rate_limit.get_redis", lambda: _fake_redis(1))
    monkeypatch.setattr(
        "sparks.coins.daily_reward.claim_daily_reward",
        AsyncMock(return_value={"claimed": True, "amount": 3}),
    )

    response = await api_client.post(CLAIM_URL, headers={"X-Caller-Id": "api"})

    assert response.status_code == 200
    assert response.headers["x-ratelimit-remaining"] == "119"


@pytest.mark.asyncio
async def test_mutation_over_limit(api_client: AsyncClient, monkeypatch) -> None:
    monkeypatch.setattr("sparks.middleware.rate_limit.get_redis", lambda: _fake_redis(121))
    claim = AsyncMock()
    monkeypatch.setattr("sparks.coins.daily_reward.claim_daily_reward", claim)

    response = await api_client.post(CLAIM_URL)

    assert response.status_code == 429
    assert response.headers["retry-after"] == "60"
    assert response.json()["code"] == "RATE_LIMITED"
    claim.assert_not_awaited()


def test_rate_limit_key_window():
    assert rate_limit_key("api", 60, now=125.0) == "ratelimit:api:2"
