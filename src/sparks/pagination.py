"""Offset pagination for history listings.

History tables here are per-user and small compared to the share
hypertables keyset pagination was built for, so page/limit is enough.
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from typing import Any, Generic, TypeVar

from pydantic import BaseModel
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

T = TypeVar("T")

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 20
MAX_PAGE_SIZE = 100


class PageParams(BaseModel):
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class Page(BaseModel, Generic[T]):
    data: list[T]
    total: int
    page: int
    limit: int
    total_pages: int


def normalize_page_params(page: Any = None, limit: Any = None) -> PageParams:  # noqa: ANN401
    """Clamp raw page/limit values: page >= 1, 1 <= limit <= MAX_PAGE_SIZE."""
    try:
        page_num = int(page) if page is not None else DEFAULT_PAGE
    except (TypeError, ValueError):
        page_num = DEFAULT_PAGE
    try:
        limit_num = int(limit) if limit is not None else DEFAULT_LIMIT
    except (TypeError, ValueError):
        limit_num = DEFAULT_LIMIT

    # Zero falls back to the default, mirroring the client's "falsy" handling
    if limit_num == 0:
        limit_num = DEFAULT_LIMIT
    return PageParams(
        page=max(1, page_num),
        limit=min(max(1, limit_num), MAX_PAGE_SIZE),
    )


def build_page(data: Sequence[T], total: int, params: PageParams) -> Page[T]:
    """Wrap one page of rows with totals. ``total_pages`` is at least 1."""
    return Page(
        data=list(data),
        total=total,
        page=params.page,
        limit=params.limit,
        total_pages=math.ceil(total / params.limit) or 1,
    )


async def count_rows(db: AsyncSession, query: Select) -> int:  # type: ignore[type-arg]
    """Count the rows a filtered select would return."""
    result = await db.execute(select(func.count()).select_from(query.order_by(None).subquery()))
    return int(result.scalar_one())
