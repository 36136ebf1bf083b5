"""Shared test fixtures.

Unit and API tests need no services. Integration tests use ``db_session``,
which applies migrations and truncates the economy tables, and skip when
PostgreSQL (SPARKS_DATABASE_URL) is unreachable.
"""

from __future__ import annotations

import subprocess
import sys
from collections.abc import AsyncGenerator, Awaitable, Callable
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from sparks.config import get_settings
from sparks.database import close_db, get_session, init_db
from sparks.db.models import GiftCatalogEntry, Submission, User
from sparks.dependencies import get_db, get_redis_dep
from sparks.main import create_app
from sparks.redis_client import close_redis, get_redis, init_redis

_ECONOMY_TABLES = [
    "gift_transactions",
    "submission_boosts",
    "daily_login_rewards",
    "ad_events",
    "coin_transactions",
    "notifications",
    "submissions",
    "gift_catalog",
    "users",
]

_migrated = False


def _ensure_migrations() -> None:
    """Apply Alembic migrations once per test run. Runs synchronously."""
    global _migrated  # noqa: PLW0603
    if _migrated:
        return
    subprocess.run(
        [sys.executable, "-m", "alembic", "upgrade", "head"],
        check=True,
        capture_output=True,
    )
    _migrated = True


async def _database_reachable() -> bool:
    try:
        async for session in get_session():
            await session.execute(text("SELECT 1"))
            break
    except Exception:
        return False
    return True


# ---------------------------------------------------------------------------
# Database / Redis
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    """Clean database session. Skips the test when PostgreSQL is unavailable."""
    settings = get_settings()
    await init_db(settings.database_url, pool_size=5, max_overflow=5)
    if not await _database_reachable():
        await close_db()
        pytest.skip("PostgreSQL not available")

    _ensure_migrations()

    async for session in get_session():
        await session.execute(text(f"TRUNCATE TABLE {', '.join(_ECONOMY_TABLES)} CASCADE"))  # noqa: S608
        await session.commit()
        yield session
        await session.rollback()
        break

    await close_db()


@pytest_asyncio.fixture
async def redis_client() -> AsyncGenerator[object, None]:
    """Real Redis client, flushed after use. Skips when Redis is unavailable."""
    settings = get_settings()
    await init_redis(settings.redis_url)
    rc = get_redis()
    try:
        await rc.ping()
    except Exception:
        await close_redis()
        pytest.skip("Redis not available")
    yield rc
    await rc.flushdb()
    await close_redis()


@pytest.fixture
def fake_redis() -> AsyncMock:
    """Stand-in Redis for service tests: empty cache, recordable writes."""
    redis = AsyncMock()
    redis.get.return_value = None
    return redis


# ---------------------------------------------------------------------------
# Row factories
# ---------------------------------------------------------------------------


@pytest.fixture
def make_user(db_session: AsyncSession) -> Callable[..., Awaitable[User]]:
    counter = {"n": 0}

    async def _make(balance: int = 0, subscription_tier: str = "free", username: str | None = None) -> User:
        counter["n"] += 1
        user = User(
            username=username or f"user{counter['n']}",
            display_name=f"User {counter['n']}",
            coin_balance=balance,
            total_coins_earned=balance,
            total_coins_spent=0,
            subscription_tier=subscription_tier,
        )
        db_session.add(user)
        await db_session.commit()
        return user

    return _make


@pytest.fixture
def make_submission(db_session: AsyncSession) -> Callable[..., Awaitable[Submission]]:
    async def _make(
        owner: User,
        approved: bool = True,
        boost_score: Decimal = Decimal("0"),
        deleted: bool = False,
    ) -> Submission:
        submission = Submission(
            user_id=owner.id,
            transcode_status="completed" if approved else "pending",
            moderation_status="approved" if approved else "pending",
            boost_score=boost_score,
            gift_coins_received=0,
            deleted_at=datetime.now(timezone.utc) if deleted else None,
        )
        db_session.add(submission)
        await db_session.commit()
        return submission

    return _make


@pytest.fixture
def make_gift(db_session: AsyncSession) -> Callable[..., Awaitable[GiftCatalogEntry]]:
    async def _make(
        name: str = "Trophy",
        coin_cost: int = 100,
        creator_coin_share: int = 50,
        category: str = "standard",
        is_active: bool = True,
    ) -> GiftCatalogEntry:
        gift = GiftCatalogEntry(
            name=name,
            icon_url=f"/assets/gifts/{name.lower()}.png",
            category=category,
            coin_cost=coin_cost,
            creator_coin_share=creator_coin_share,
            is_active=is_active,
            sort_order=0,
        )
        db_session.add(gift)
        await db_session.commit()
        return gift

    return _make


# ---------------------------------------------------------------------------
# HTTP
# ---------------------------------------------------------------------------


@pytest_asyncio.fixture
async def api_client() -> AsyncGenerator[AsyncClient, None]:
    """App client with DB/Redis dependencies replaced by mocks.

    Tests monkeypatch the service functions the routers call. The lifespan
    does not run, so nothing connects to PostgreSQL or Redis.
    """
    app = create_app()

    async def _fake_db() -> AsyncGenerator[MagicMock, None]:
        yield MagicMock(spec=AsyncSession)

    async def _fake_redis() -> AsyncGenerator[AsyncMock, None]:
        yield AsyncMock()

    app.dependency_overrides[get_db] = _fake_db
    app.dependency_overrides[get_redis_dep] = _fake_redis

    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
