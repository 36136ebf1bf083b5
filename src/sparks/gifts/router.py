"""Gift catalog, sending and history endpoints."""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sparks.dependencies import get_db, get_redis_dep, page_params
from sparks.gifts import service
from sparks.gifts.schemas import (
    GiftCatalogResponse,
    GiftHistoryResponse,
    GiftTransactionResponse,
    SendGiftRequest,
)
from sparks.pagination import Page, PageParams

router = APIRouter(prefix="/api/v1", tags=["Gifts"])


def _history(page: Page[dict[str, Any]]) -> GiftHistoryResponse:
    return GiftHistoryResponse(
        data=[GiftTransactionResponse(**row) for row in page.data],
        total=page.total,
        page=page.page,
        limit=page.limit,
        total_pages=page.total_pages,
    )


@router.get("/gifts/catalog", response_model=GiftCatalogResponse)
async def get_catalog(
    db: AsyncSession = Depends(get_db),
    redis: Any = Depends(get_redis_dep),  # noqa: ANN401
) -> GiftCatalogResponse:
    return GiftCatalogResponse(**await service.get_catalog(db, redis))


@router.post("/users/{user_id}/gifts", response_model=GiftTransactionResponse, status_code=201)
async def send_gift(
    user_id: uuid.UUID,
    body: SendGiftRequest,
    db: AsyncSession = Depends(get_db),
    redis: Any = Depends(get_redis_dep),  # noqa: ANN401
) -> GiftTransactionResponse:
    """``user_id`` is the sender."""
    result = await service.send_gift(
        db,
        redis,
        str(user_id),
        str(body.receiver_id),
        str(body.submission_id),
        str(body.gift_id),
        body.message,
    )
    return GiftTransactionResponse(**result)


@router.get("/users/{user_id}/gifts/received", response_model=GiftHistoryResponse)
async def received(
    user_id: uuid.UUID,
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
) -> GiftHistoryResponse:
    return _history(await service.get_received_gifts(db, str(user_id), params.page, params.limit))


@router.get("/users/{user_id}/gifts/sent", response_model=GiftHistoryResponse)
async def sent(
    user_id: uuid.UUID,
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
) -> GiftHistoryResponse:
    return _history(await service.get_sent_gifts(db, str(user_id), params.page, params.limit))


@router.get("/submissions/{submission_id}/gifts", response_model=GiftHistoryResponse)
async def submission_gifts(
    submission_id: uuid.UUID,
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
) -> GiftHistoryResponse:
    return _history(await service.get_submission_gifts(db, str(submission_id), params.page, params.limit))
