"""Shared FastAPI dependencies."""

from collections.abc import AsyncGenerator

from fastapi import Query

from sparks.database import get_session as _get_session
from sparks.pagination import PageParams, normalize_page_params
from sparks.redis_client import get_redis as _get_redis

get_db = _get_session


async def get_redis_dep() -> AsyncGenerator[object, None]:
    """Yield the Redis client as a FastAPI dependency."""
    yield _get_redis()


def page_params(
    page: int | None = Query(default=None),
    limit: int | None = Query(default=None),
) -> PageParams:
    """Lenient page/limit query params, clamped rather than rejected."""
    return normalize_page_params(page, limit)
