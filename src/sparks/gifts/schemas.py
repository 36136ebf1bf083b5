"""Pydantic models for gift endpoints."""

from __future__ import annotations

import uuid

from pydantic import BaseModel, Field


class GiftCatalogItem(BaseModel):
    id: str
    name: str
    name_ja: str | None = None
    icon_url: str
    animation_url: str | None = None
    category: str
    coin_cost: int
    creator_coin_share: int
    sort_order: int = 0


class GiftCatalogResponse(BaseModel):
    quick_reaction: list[GiftCatalogItem] = []
    standard: list[GiftCatalogItem] = []
    premium: list[GiftCatalogItem] = []


class SendGiftRequest(BaseModel):
    receiver_id: uuid.UUID
    submission_id: uuid.UUID
    gift_id: uuid.UUID
    message: str | None = Field(default=None, max_length=100)


class GiftTransactionResponse(BaseModel):
    id: str
    sender_id: str | None = None
    receiver_id: str | None = None
    submission_id: str | None = None
    gift_id: str | None = None
    coin_amount: int
    creator_share: int
    platform_share: int
    message: str | None = None
    created_at: str | None = None
    gift_name: str | None = None
    gift_icon_url: str | None = None
    gift_animation_url: str | None = None
    sender_username: str | None = None
    sender_display_name: str | None = None
    sender_avatar_url: str | None = None
    receiver_username: str | None = None
    receiver_display_name: str | None = None
    receiver_avatar_url: str | None = None


class GiftHistoryResponse(BaseModel):
    data: list[GiftTransactionResponse]
    total: int
    page: int
    limit: int
    total_pages: int
