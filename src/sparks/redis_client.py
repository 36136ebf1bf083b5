"""Redis connection pool and profile-cache helpers."""

import logging

import redis.asyncio as redis

logger = logging.getLogger(__name__)

_pool: redis.Redis | None = None


async def init_redis(url: str) -> None:
    """Initialize the Redis connection pool."""
    global _pool  # noqa: PLW0603
    _pool = redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=50,
    )


async def close_redis() -> None:
    """Close the Redis connection pool."""
    global _pool  # noqa: PLW0603
    if _pool:
        await _pool.aclose()
        _pool = None


def get_redis() -> redis.Redis:
    """Get the Redis client (FastAPI dependency)."""
    if _pool is None:
        msg = "Redis not initialized. Call init_redis() first."
        raise RuntimeError(msg)
    return _pool


def profile_cache_key(user_id: str) -> str:
    """Cache key holding a user's serialized profile (balance included)."""
    return f"user:{user_id}"


async def invalidate_profiles(redis_client: redis.Redis | None, *user_ids: str) -> None:
    """Drop cached profile data after a balance-affecting event.

    Runs after commit, so a Redis failure must not surface as a failed
    ledger operation; the cache entry simply lives until its TTL.
    """
    if redis_client is None or not user_ids:
        return
    try:
        await redis_client.delete(*(profile_cache_key(uid) for uid in user_ids))
    except Exception:
        logger.warning("Failed to invalidate profile cache for %s", user_ids, exc_info=True)
