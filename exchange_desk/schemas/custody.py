"""Pydantic schemas for cash custody endpoints."""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class CustodyGiveRequest(BaseModel):
    """Request body for POST /custody (treasurer hands cash to a cashier)."""
    cashier_id: uuid.UUID
    wallet_id: uuid.UUID
    currency_code: str = Field(min_length=2, max_length=10)
    amount: Decimal = Field(gt=0)
    notes: str | None = None
    previous_custody_id: uuid.UUID | None = None


class CustodyRejectRequest(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


class CustodyResponse(BaseModel):
    id: uuid.UUID
    treasurer_id: uuid.UUID
    cashier_id: uuid.UUID
    wallet_id: uuid.UUID
    currency_code: str
    amount: Decimal
    remaining_amount: Decimal
    notes: str | None
    status: str
    is_returned: bool
    previous_custody_id: uuid.UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class CustodyListResponse(BaseModel):
    """Custody the caller handed out and custody the caller received."""
    given: list[CustodyResponse]
    received: list[CustodyResponse]


class CustodySummaryResponse(BaseModel):
    total_count: int
    active_count: int
    total_by_currency: dict[str, Decimal]
