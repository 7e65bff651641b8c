"""Pydantic schemas for exchange trades and cash movements."""

import uuid
from datetime import datetime
from decimal import Decimal
from pydantic import BaseModel, Field, model_validator


class TradeCreateRequest(BaseModel):
    """Request body for POST /transactions/buy and /transactions/sell."""
    wallet_id: uuid.UUID | None = Field(
        None, description="Omit for a client-to-client trade that touches no wallet"
    )
    currency_code: str = Field(min_length=2, max_length=10)
    amount: Decimal = Field(gt=0)
    exchange_currency_code: str = Field(min_length=2, max_length=10)
    exchange_rate: Decimal = Field(gt=0)
    client_name: str | None = Field(None, max_length=200)
    reference_custody_id: uuid.UUID | None = None

    @model_validator(mode="after")
    def currencies_must_differ(self):
        """A trade exchanges one currency for another."""
        if self.currency_code.upper() == self.exchange_currency_code.upper():
            raise ValueError("currency_code and exchange_currency_code must differ")
        return self


class TransactionResponse(BaseModel):
    id: uuid.UUID
    type: str
    wallet_id: uuid.UUID | None
    currency_code: str
    amount: Decimal
    exchange_currency_code: str | None
    exchange_rate: Decimal | None
    total_amount: Decimal | None
    cashier_id: uuid.UUID | None
    client_name: str | None
    source: str | None
    destination: str | None
    reason: str | None
    reference_custody_id: uuid.UUID | None
    created_at: datetime

    model_config = {"from_attributes": True}


class TransactionStatsResponse(BaseModel):
    window: int
    buy_count: int
    sell_count: int
    average_buy_rate: Decimal | None
    average_sell_rate: Decimal | None
