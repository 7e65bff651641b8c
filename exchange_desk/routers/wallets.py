"""
Wallets router — the multi-currency ledger.

Endpoints:
  GET    /wallets                              — List wallets with custody totals
  GET    /wallets/summary                      — Wallet count and totals per currency
  GET    /wallets/non-treasury                 — Wallets that are not treasury wallets
  POST   /wallets                              — [Manager] Create a wallet
  POST   /wallets/treasury/{treasurer_id}      — [Manager] Open a treasurer's treasury wallet
  GET    /wallets/{id}                         — Get a wallet with custody totals
  GET    /wallets/{id}/stats                   — Rates and custody picture of a wallet
  PATCH  /wallets/{id}                         — [Manager] Rename
  DELETE /wallets/{id}                         — [Manager] Delete an empty, unreferenced wallet
  POST   /wallets/{id}/currencies              — [Manager] Add a currency
  PUT    /wallets/{id}/currencies/{code}       — [Manager] Correct a balance
  DELETE /wallets/{id}/currencies/{code}       — [Manager] Remove a zero-balance currency
  POST   /wallets/{id}/deposit                 — [Manager/Treasurer] Put cash in
  POST   /wallets/{id}/withdraw                — [Manager/Treasurer] Take cash out

Fixed paths (/summary, /non-treasury) are declared before /{wallet_id} so
they are not parsed as ids.
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_desk.database import get_db
from exchange_desk.dependencies import get_current_user, require_manager, require_roles
from exchange_desk.models.user import User
from exchange_desk.schemas.transaction import TransactionResponse
from exchange_desk.schemas.wallet import (
    BalanceSetRequest,
    CashMovementRequest,
    CurrencyAddRequest,
    WalletCreateRequest,
    WalletResponse,
    WalletStatsResponse,
    WalletsSummaryResponse,
    WalletUpdateRequest,
    WalletWithCustodyResponse,
)
from exchange_desk.services import wallet_service

router = APIRouter()

require_cash_handler = require_roles("manager", "treasurer")


@router.get("", response_model=list[WalletWithCustodyResponse], summary="List wallets")
async def list_wallets(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await wallet_service.list_wallets(db)


@router.get("/summary", response_model=WalletsSummaryResponse, summary="Totals across wallets")
async def wallets_summary(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await wallet_service.get_wallets_summary(db)


@router.get("/non-treasury", response_model=list[WalletResponse], summary="Non-treasury wallets")
async def list_non_treasury_wallets(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await wallet_service.list_non_treasury_wallets(db)


@router.post(
    "",
    response_model=WalletResponse,
    status_code=status.HTTP_201_CREATED,
    summary="[Manager] Create a wallet",
)
async def create_wallet(
    request: WalletCreateRequest,
    manager: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    """
    Create a wallet. Every base currency is opened at zero; ``currencies``
    sets opening balances on top of that.
    """
    return await wallet_service.create_wallet(
        db,
        name=request.name,
        currencies=request.currencies,
        is_treasury=request.is_treasury,
        owner_id=request.owner_id,
    )


@router.post(
    "/treasury/{treasurer_id}",
    response_model=WalletResponse,
    status_code=status.HTTP_201_CREATED,
    summary="[Manager] Open a treasury wallet",
)
async def create_treasury_wallet(
    treasurer_id: uuid.UUID,
    manager: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    return await wallet_service.create_treasury_wallet(db, treasurer_id)


@router.get("/{wallet_id}", response_model=WalletWithCustodyResponse, summary="Get a wallet")
async def get_wallet(
    wallet_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await wallet_service.get_wallet_view(db, wallet_id)


@router.get("/{wallet_id}/stats", response_model=WalletStatsResponse, summary="Wallet statistics")
async def get_wallet_stats(
    wallet_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await wallet_service.get_wallet_stats(db, wallet_id)


@router.patch("/{wallet_id}", response_model=WalletResponse, summary="[Manager] Rename a wallet")
async def update_wallet(
    wallet_id: uuid.UUID,
    request: WalletUpdateRequest,
    manager: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    return await wallet_service.update_wallet(db, wallet_id, request.name)


@router.delete("/{wallet_id}", status_code=status.HTTP_204_NO_CONTENT, summary="[Manager] Delete a wallet")
async def delete_wallet(
    wallet_id: uuid.UUID,
    manager: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    await wallet_service.delete_wallet(db, wallet_id)


@router.post(
    "/{wallet_id}/currencies",
    response_model=WalletResponse,
    status_code=status.HTTP_201_CREATED,
    summary="[Manager] Add a currency",
)
async def add_currency(
    wallet_id: uuid.UUID,
    request: CurrencyAddRequest,
    manager: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    return await wallet_service.add_currency_to_wallet(
        db, wallet_id, request.currency_code, request.initial_balance
    )


@router.put(
    "/{wallet_id}/currencies/{currency_code}",
    response_model=WalletResponse,
    summary="[Manager] Correct a balance",
)
async def set_balance(
    wallet_id: uuid.UUID,
    currency_code: str,
    request: BalanceSetRequest,
    manager: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    return await wallet_service.set_currency_balance(db, wallet_id, currency_code, request.balance)


@router.delete(
    "/{wallet_id}/currencies/{currency_code}",
    response_model=WalletResponse,
    summary="[Manager] Remove a zero-balance currency",
)
async def remove_currency(
    wallet_id: uuid.UUID,
    currency_code: str,
    manager: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    return await wallet_service.remove_currency_from_wallet(db, wallet_id, currency_code)


@router.post(
    "/{wallet_id}/deposit",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Put cash into a wallet",
)
async def deposit(
    wallet_id: uuid.UUID,
    request: CashMovementRequest,
    user: User = Depends(require_cash_handler),
    db: AsyncSession = Depends(get_db),
):
    return await wallet_service.deposit(
        db, wallet_id, request.currency_code, request.amount, user, request.reason
    )


@router.post(
    "/{wallet_id}/withdraw",
    response_model=TransactionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Take cash out of a wallet",
)
async def withdraw(
    wallet_id: uuid.UUID,
    request: CashMovementRequest,
    user: User = Depends(require_cash_handler),
    db: AsyncSession = Depends(get_db),
):
    """Refused with insufficient_funds if the wallet doesn't hold enough."""
    return await wallet_service.withdraw(
        db, wallet_id, request.currency_code, request.amount, user, request.reason
    )
