"""Pydantic models for boost endpoints."""

from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel


class BoostTierResponse(BaseModel):
    tier: str
    cost: int
    boost_value: float
    duration_hours: int


class BoostTiersResponse(BaseModel):
    tiers: list[BoostTierResponse]
    first_boost_free: bool = False


class BoostPurchaseRequest(BaseModel):
    submission_id: uuid.UUID
    tier: str


class SubmissionBoostResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    submission_id: str
    user_id: str
    tier: str
    coin_amount: int
    boost_value: float
    started_at: datetime
    expires_at: datetime


class BoostHistoryResponse(BaseModel):
    data: list[SubmissionBoostResponse]
    total: int
    page: int
    limit: int
    total_pages: int
