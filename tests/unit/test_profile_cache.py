"""Profile cache invalidation after balance changes."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from sparks.redis_client import invalidate_profiles, profile_cache_key


def test_key_format():
    assert profile_cache_key("abc") == "user:abc"


@pytest.mark.asyncio
async def test_deletes_all_keys_in_one_call():
    redis = AsyncMock()
    await invalidate_profiles(redis, "a", "b")
    redis.delete.assert_awaited_once_with("user:a", "user:b")


@pytest.mark.asyncio
async def test_redis_failure_does_not_raise():
    redis = AsyncMock()
    redis.delete.side_effect = ConnectionError("down")
    await invalidate_profiles(redis, "a")


@pytest.mark.asyncio
async def test_noop_without_client():
    await invalidate_profiles(None, "a")
