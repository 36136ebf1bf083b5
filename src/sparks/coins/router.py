"""Coin ledger and daily login reward endpoints."""

from __future__ import annotations

import uuid
from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from sparks.coins import daily_reward, ledger
from sparks.coins.schemas import (
    BalanceResponse,
    CoinTransactionResponse,
    DailyRewardClaimResponse,
    DailyRewardStatusResponse,
    LedgerEntryRequest,
    TransactionHistoryResponse,
)
from sparks.dependencies import get_db, get_redis_dep, page_params
from sparks.pagination import PageParams

router = APIRouter(prefix="/api/v1/users/{user_id}", tags=["Coins"])


@router.get("/coins/balance", response_model=BalanceResponse)
async def get_balance(user_id: uuid.UUID, db: AsyncSession = Depends(get_db)) -> BalanceResponse:
    balance = await ledger.get_balance(db, str(user_id))
    return BalanceResponse(user_id=str(user_id), coin_balance=balance)


@router.get("/coins/transactions", response_model=TransactionHistoryResponse)
async def get_transactions(
    user_id: uuid.UUID,
    params: PageParams = Depends(page_params),
    db: AsyncSession = Depends(get_db),
) -> TransactionHistoryResponse:
    page = await ledger.get_transaction_history(db, str(user_id), params.page, params.limit)
    return TransactionHistoryResponse(
        data=[CoinTransactionResponse.model_validate(tx) for tx in page.data],
        total=page.total,
        page=page.page,
        limit=page.limit,
        total_pages=page.total_pages,
    )


@router.post("/coins/credit", response_model=CoinTransactionResponse, status_code=201)
async def credit(
    user_id: uuid.UUID,
    body: LedgerEntryRequest,
    db: AsyncSession = Depends(get_db),
    redis: Any = Depends(get_redis_dep),  # noqa: ANN401
) -> CoinTransactionResponse:
    """Grant coins (purchases, achievements, refunds, admin adjustments)."""
    entry = await ledger.credit_coins(
        db, redis, str(user_id), body.amount, body.type, body.reference_type, body.reference_id, body.description
    )
    return CoinTransactionResponse.model_validate(entry)


@router.post("/coins/debit", response_model=CoinTransactionResponse, status_code=201)
async def debit(
    user_id: uuid.UUID,
    body: LedgerEntryRequest,
    db: AsyncSession = Depends(get_db),
    redis: Any = Depends(get_redis_dep),  # noqa: ANN401
) -> CoinTransactionResponse:
    entry = await ledger.debit_coins(
        db, redis, str(user_id), body.amount, body.type, body.reference_type, body.reference_id, body.description
    )
    return CoinTransactionResponse.model_validate(entry)


@router.post("/daily-reward/claim", response_model=DailyRewardClaimResponse)
async def claim_daily_reward(
    user_id: uuid.UUID,
    db: AsyncSession = Depends(get_db),
    redis: Any = Depends(get_redis_dep),  # noqa: ANN401
) -> DailyRewardClaimResponse:
    result = await daily_reward.claim_daily_reward(db, redis, str(user_id))
    return DailyRewardClaimResponse(**result)


@router.get("/daily-reward/status", response_model=DailyRewardStatusResponse)
async def get_daily_reward_status(user_id: uuid.UUID, db: AsyncSession = Depends(get_db)) -> DailyRewardStatusResponse:
    result = await daily_reward.get_daily_reward_status(db, str(user_id))
    return DailyRewardStatusResponse(**result)
