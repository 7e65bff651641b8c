"""Pydantic schemas for debts."""

import uuid
from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class DebtCreateRequest(BaseModel):
    """
    Request body for POST /debts.

    is_owed=True records money the desk borrowed (the wallet gains it);
    is_owed=False records money the desk lent (the wallet pays it out).
    """
    person_name: str = Field(min_length=1, max_length=200)
    wallet_id: uuid.UUID
    currency_code: str = Field(min_length=2, max_length=10)
    amount: Decimal = Field(gt=0)
    notes: str | None = None
    is_owed: bool


class DebtResponse(BaseModel):
    id: uuid.UUID
    created_by: uuid.UUID
    person_name: str
    wallet_id: uuid.UUID
    currency_code: str
    amount: Decimal
    notes: str | None
    is_owed: bool
    is_paid: bool
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class DebtListResponse(BaseModel):
    owed: list[DebtResponse]
    receivable: list[DebtResponse]


class DebtSummaryResponse(BaseModel):
    owed_by_currency: dict[str, Decimal]
    receivable_by_currency: dict[str, Decimal]
    unpaid_owed_count: int
    unpaid_receivable_count: int
