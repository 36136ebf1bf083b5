"""Pydantic models for coin ledger endpoints."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class BalanceResponse(BaseModel):
    user_id: str
    coin_balance: int


class CoinTransactionResponse(BaseModel):
    model_config = {"from_attributes": True}

    id: str
    user_id: str
    type: str
    amount: int
    balance_after: int
    reference_type: str | None = None
    reference_id: str | None = None
    description: str | None = None
    created_at: datetime


class TransactionHistoryResponse(BaseModel):
    data: list[CoinTransactionResponse]
    total: int
    page: int
    limit: int
    total_pages: int


class LedgerEntryRequest(BaseModel):
    """Body for internal credit/debit calls. ``amount`` is checked by the ledger."""

    amount: int
    type: str
    reference_type: str | None = Field(default=None, max_length=50)
    reference_id: str | None = Field(default=None, max_length=64)
    description: str | None = Field(default=None, max_length=255)


class DailyRewardClaimResponse(BaseModel):
    claimed: bool
    amount: int


class DailyRewardStatusResponse(BaseModel):
    claimed_today: bool
    amount: int
