"""Maintenance arq worker: periodic boost-expiry sweep.

Several worker replicas may run the cron; a short Redis lock makes sure
only one of them sweeps per interval.
"""

from __future__ import annotations

import logging
import uuid

import redis.asyncio as aioredis
from arq import cron
from arq.connections import RedisSettings
from sqlalchemy.ext.asyncio import AsyncSession

from sparks.boosts.service import expire_boosts
from sparks.config import get_settings
from sparks.database import close_db, get_session, init_db
from sparks.middleware.logging import setup_logging

logger = logging.getLogger(__name__)

SWEEP_LOCK_KEY = "lock:boost_expiry_sweep"
SWEEP_MINUTES = set(range(0, 60, 5))


async def _get_db_session() -> AsyncSession:
    """Get a database session for the worker."""
    async for session in get_session():
        return session
    raise RuntimeError("Failed to get database session")


async def acquire_lock(redis_client: aioredis.Redis, key: str, ttl_seconds: int) -> str | None:
    """SET NX EX. Returns the owner token, or None if someone else holds it."""
    token = str(uuid.uuid4())
    acquired = await redis_client.set(key, token, nx=True, ex=ttl_seconds)
    return token if acquired else None


async def release_lock(redis_client: aioredis.Redis, key: str, token: str) -> None:
    """Drop the lock only if it is still ours (it may have expired and moved on)."""
    if await redis_client.get(key) == token:
        await redis_client.delete(key)


async def maintenance_startup(ctx: dict) -> None:  # type: ignore[type-arg]
    """Initialize logging, DB and Redis on worker startup."""
    settings = get_settings()
    setup_logging(settings)
    await init_db(settings.database_url, settings.db_pool_size, settings.db_max_overflow)
    ctx["redis"] = aioredis.from_url(
        settings.redis_url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=10,
    )
    logger.info("Maintenance worker started")


async def maintenance_shutdown(ctx: dict) -> None:  # type: ignore[type-arg]
    """Clean up on worker shutdown."""
    redis_client: aioredis.Redis | None = ctx.get("redis")
    if redis_client:
        await redis_client.aclose()
    await close_db()
    logger.info("Maintenance worker shut down")


async def expire_boosts_task(ctx: dict) -> int:  # type: ignore[type-arg]
    """Scheduled arq task: every 5 minutes, delete expired boosts and rescore.

    Returns the number of boosts removed (0 when another replica holds the lock).
    """
    redis_client: aioredis.Redis = ctx["redis"]
    token = await acquire_lock(redis_client, SWEEP_LOCK_KEY, get_settings().boost_sweep_lock_seconds)
    if token is None:
        logger.debug("Boost sweep skipped, lock held elsewhere")
        return 0

    db = await _get_db_session()
    try:
        removed = await expire_boosts(db)
        logger.info("Boost sweep complete: %d expired boosts removed", removed)
        return removed
    except Exception:
        logger.exception("Boost expiry sweep failed")
        return 0
    finally:
        await db.close()
        await release_lock(redis_client, SWEEP_LOCK_KEY, token)


class WorkerSettings:
    """arq worker settings for the maintenance scheduler."""

    functions = [expire_boosts_task]
    cron_jobs = [
        cron(expire_boosts_task, minute=SWEEP_MINUTES, run_at_startup=True),
    ]
    on_startup = maintenance_startup
    on_shutdown = maintenance_shutdown
    redis_settings = RedisSettings.from_dsn(get_settings().redis_url)
    max_jobs = 2
    job_timeout = 300
    allow_abort_jobs = True
