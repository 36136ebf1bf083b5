"""Pydantic models for ad endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class AdEventRequest(BaseModel):
    """Client-reported ad event. Anonymous events omit user_id."""

    user_id: uuid.UUID | None = None
    ad_type: str
    placement: str = Field(max_length=50)
    event_type: str
    reward_type: str | None = Field(default=None, max_length=50)
    reward_amount: int | None = None
    ad_network: str = Field(default="admob", max_length=50)
    ad_unit_id: str | None = Field(default=None, max_length=100)


class AdEventResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    user_id: str | None = None
    ad_type: str
    placement: str
    ad_network: str
    event_type: str
    reward_type: str | None = None
    reward_amount: int | None = None
    created_at: datetime


class AdRewardClaimRequest(BaseModel):
    ad_type: str
    placement: str = Field(max_length=50)


class AdRewardClaimResponse(BaseModel):
    reward_type: str
    reward_amount: int
    remaining_today: int


class AdStatsResponse(BaseModel):
    super_vote_rewards_today: int
    super_vote_rewards_remaining: int
    bonus_coin_rewards_today: int
    bonus_coin_rewards_remaining: int
    total_ads_watched_today: int


class AdConfigResponse(BaseModel):
    show_interstitial: bool
    show_banner: bool
    show_rewarded: bool
    placements: dict[str, list[str]]


class SuperVoteBalanceResponse(BaseModel):
    user_id: str
    super_votes: int
