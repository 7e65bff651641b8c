"""Pydantic schemas for currency-pair analysis."""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel


class CurrencyPairRow(BaseModel):
    pair: str
    from_currency: str
    to_currency: str
    median_rate: Decimal
    min_rate: Decimal
    max_rate: Decimal
    transaction_count: int
    buy_count: int
    sell_count: int
    total_amount: Decimal
    total_exchange_amount: Decimal
    average_amount: Decimal
    primary_operation_type: str


class PairsAnalysisResponse(BaseModel):
    wallet_id: uuid.UUID | None = None
    custody_id: uuid.UUID | None = None
    transaction_count: int
    pairs: list[CurrencyPairRow]
    last_analyzed: datetime
