"""
Transactions router — exchange trades.

Endpoints:
  POST /transactions/buy     — [Cashier] The desk buys currency from a client
  POST /transactions/sell    — [Cashier] The desk sells currency to a client
  GET  /transactions         — List with type / wallet filters
  GET  /transactions/stats   — Average buy / sell rate of the latest trades
  GET  /transactions/{id}    — One transaction
"""

import uuid
from typing import Literal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_desk.database import get_db
from exchange_desk.dependencies import get_current_user, require_roles
from exchange_desk.models.user import User
from exchange_desk.schemas.transaction import (
    TradeCreateRequest,
    TransactionResponse,
    TransactionStatsResponse,
)
from exchange_desk.services import transaction_service

router = APIRouter()

require_cashier = require_roles("cashier")


@router.post(
    "/buy",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="[Cashier] Record a buy",
)
async def create_buy(
    request: TradeCreateRequest,
    cashier: User = Depends(require_cashier),
    db: AsyncSession = Depends(get_db),
):
    """
    The wallet receives ``amount`` of ``currency_code`` and pays
    ``amount * exchange_rate`` of ``exchange_currency_code``.
    """
    return await transaction_service.create_buy_transaction(
        db,
        cashier=cashier,
        wallet_id=request.wallet_id,
        currency_code=request.currency_code,
        amount=request.amount,
        exchange_currency_code=request.exchange_currency_code,
        exchange_rate=request.exchange_rate,
        client_name=request.client_name,
        reference_custody_id=request.reference_custody_id,
    )


@router.post(
    "/sell",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="[Cashier] Record a sell",
)
async def create_sell(
    request: TradeCreateRequest,
    cashier: User = Depends(require_cashier),
    db: AsyncSession = Depends(get_db),
):
    """
    The wallet gives ``amount`` of ``currency_code`` and receives
    ``amount * exchange_rate`` of ``exchange_currency_code``.
    """
    return await transaction_service.create_sell_transaction(
        db,
        cashier=cashier,
        wallet_id=request.wallet_id,
        currency_code=request.currency_code,
        amount=request.amount,
        exchange_currency_code=request.exchange_currency_code,
        exchange_rate=request.exchange_rate,
        client_name=request.client_name,
        reference_custody_id=request.reference_custody_id,
    )


@router.get("", response_model=list[TransactionResponse], summary="List transactions")
async def list_transactions(
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    type: Literal["buy", "sell", "withdrawal", "deposit"] | None = Query(None),
    wallet_id: uuid.UUID | None = Query(None),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await transaction_service.list_transactions(
        db, limit=limit, offset=offset, type_filter=type, wallet_id=wallet_id
    )


@router.get("/stats", response_model=TransactionStatsResponse, summary="Rate statistics")
async def transaction_stats(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await transaction_service.get_transaction_stats(db)


@router.get("/{transaction_id}", response_model=TransactionResponse, summary="Get a transaction")
async def get_transaction(
    transaction_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await transaction_service.get_transaction(db, transaction_id)
