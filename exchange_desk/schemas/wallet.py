"""
Pydantic schemas for wallets and their balances.

Amounts are Decimal; they serialize to JSON as strings so no precision is
lost on the way to the browser.
"""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from exchange_desk.schemas.custody import CustodyResponse
from exchange_desk.schemas.transaction import TransactionResponse


class WalletCreateRequest(BaseModel):
    """Request body for POST /wallets."""
    name: str = Field(min_length=1, max_length=100)
    currencies: dict[str, Decimal] = Field(
        default_factory=dict,
        description="Opening balances by currency code, on top of the base currencies",
    )
    is_treasury: bool = False
    owner_id: uuid.UUID | None = None


class WalletUpdateRequest(BaseModel):
    name: str = Field(min_length=1, max_length=100)


class CurrencyAddRequest(BaseModel):
    """Request body for POST /wallets/{id}/currencies."""
    currency_code: str = Field(min_length=2, max_length=10)
    initial_balance: Decimal = Field(Decimal("0"), ge=0)


class BalanceSetRequest(BaseModel):
    """Request body for PUT /wallets/{id}/currencies/{code}."""
    balance: Decimal = Field(ge=0)


class CashMovementRequest(BaseModel):
    """Request body for deposits and withdrawals."""
    currency_code: str = Field(min_length=2, max_length=10)
    amount: Decimal = Field(gt=0)
    reason: str | None = Field(None, max_length=255)


class WalletResponse(BaseModel):
    id: uuid.UUID
    name: str
    is_treasury: bool
    owner_id: uuid.UUID | None
    currencies: dict[str, Decimal]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class WalletWithCustodyResponse(WalletResponse):
    """A wallet with the custody currently out against it."""
    custody_totals: dict[str, Decimal] = Field(default_factory=dict)
    total_with_custody: dict[str, Decimal] = Field(default_factory=dict)


class RateStats(BaseModel):
    count: int
    min_rate: Decimal | None
    max_rate: Decimal | None
    median_rate: Decimal | None


class WalletStatsResponse(BaseModel):
    wallet: WalletResponse
    recent_transactions: list[TransactionResponse]
    buy: RateStats
    sell: RateStats
    custody_records: list[CustodyResponse]
    custody_balances: dict[str, Decimal]


class WalletsSummaryResponse(BaseModel):
    wallet_count: int
    totals_by_currency: dict[str, Decimal]
