"""Ad event logging and rewarded-ad endpoints."""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sparks.ads import service
from sparks.ads.schemas import (
    AdConfigResponse,
    AdEventRequest,
    AdEventResponse,
    AdRewardClaimRequest,
    AdRewardClaimResponse,
    AdStatsResponse,
    SuperVoteBalanceResponse,
)
from sparks.dependencies import get_db, get_redis_dep

router = APIRouter(prefix="/api/v1", tags=["Ads"])


@router.post("/ads/events", response_model=AdEventResponse, status_code=201)
async def log_event(body: AdEventRequest, db: AsyncSession = Depends(get_db)) -> AdEventResponse:
    event = await service.log_ad_event(
        db,
        str(body.user_id) if body.user_id else None,
        body.ad_type,
        body.placement,
        body.event_type,
        reward_type=body.reward_type,
        reward_amount=body.reward_amount,
        ad_network=body.ad_network,
        ad_unit_id=body.ad_unit_id,
    )
    return AdEventResponse.model_validate(event)


@router.post("/users/{user_id}/ads/claim", response_model=AdRewardClaimResponse)
async def claim_reward(
    user_id: uuid.UUID,
    body: AdRewardClaimRequest,
    db: AsyncSession = Depends(get_db),
    redis: Any = Depends(get_redis_dep),  # noqa: ANN401
) -> AdRewardClaimResponse:
    result = await service.claim_ad_reward(db, redis, str(user_id), body.ad_type, body.placement)
    return AdRewardClaimResponse(**result)


@router.get("/users/{user_id}/ads/stats", response_model=AdStatsResponse)
async def get_stats(user_id: uuid.UUID, db: AsyncSession = Depends(get_db)) -> AdStatsResponse:
    return AdStatsResponse(**await service.get_daily_ad_stats(db, str(user_id)))


@router.get("/users/{user_id}/ads/config", response_model=AdConfigResponse)
async def get_config(user_id: uuid.UUID, db: AsyncSession = Depends(get_db)) -> AdConfigResponse:
    return AdConfigResponse(**await service.get_ad_config(db, str(user_id)))


@router.get("/users/{user_id}/super-votes", response_model=SuperVoteBalanceResponse)
async def get_super_votes(
    user_id: uuid.UUID,
    redis: Any = Depends(get_redis_dep),  # noqa: ANN401
) -> SuperVoteBalanceResponse:
    balance = await service.get_super_vote_balance(redis, str(user_id))
    return SuperVoteBalanceResponse(user_id=str(user_id), super_votes=balance)
