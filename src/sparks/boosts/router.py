"""Boost tier and purchase endpoints."""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from sparks.boosts import service
from sparks.boosts.schemas import (
    BoostHistoryResponse,
    BoostPurchaseRequest,
    BoostTierResponse,
    BoostTiersResponse,
    SubmissionBoostResponse,
)
from sparks.dependencies import get_db, get_redis_dep, page_params
from sparks.pagination import PageParams

router = APIRouter(prefix="/api/v1", tags=["Boosts"])


@router.get("/boosts/tiers", response_model=BoostTiersResponse)
async def list_tiers(
    user_id: uuid.UUID | None = Query(default=None),
    db: AsyncSession = Depends(get_db),
) -> BoostTiersResponse:
    """Tier table; with ``user_id`` also reports free-first-boost eligibility."""
    result = await service.get_tiers_for_user(db, str(user_id) if user_id else None)
    return BoostTiersResponse(
        tiers=[BoostTierResponse(**tier.to_dict()) for tier in result["tiers"]],
        first_boost_free=result["first_boost_free"],
    )


@router.post("/users/{user_id}/boosts", response_model=SubmissionBoostResponse, status_code=201)
async def purchase(
    user_id: uuid.UUID,
    body: BoostPurchaseRequest,
    db: AsyncSession = Depends(get_db),
    redis: Any = Depends(get_redis_dep),  # noqa: ANN401
) -> SubmissionBoostResponse:
    boost = await service.purchase_boost(db, redis, str(user_id), str(body.submission_id), body.tier)
    return SubmissionBoostResponse.model_validate(boost)


@router.get("/users/{user_id}/boosts", response_model=BoostHistoryResponse)
async def history(
    user_id: uuid.UUID,
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
) -> BoostHistoryResponse:
    page = await service.get_boost_history(db, str(user_id), params.page, params.limit)
    return BoostHistoryResponse(
        data=[SubmissionBoostResponse.model_validate(boost) for boost in page.data],
        total=page.total,
        page=page.page,
        limit=page.limit,
        total_pages=page.total_pages,
    )


@router.get("/submissions/{submission_id}/boosts", response_model=list[SubmissionBoostResponse])
async def submission_boosts(
    submission_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
) -> list[SubmissionBoostResponse]:
    boosts = await service.get_submission_boosts(db, str(submission_id))
    return [SubmissionBoostResponse.model_validate(boost) for boost in boosts]
