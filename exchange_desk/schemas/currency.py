"""Pydantic schemas for currency types, exchange rates and manager prices."""

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field


class CurrencyTypeCreateRequest(BaseModel):
    code: str = Field(min_length=2, max_length=10)
    name: str = Field(min_length=1, max_length=100)
    symbol: str | None = Field(None, max_length=10)


class CurrencyTypeUpdateRequest(BaseModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    symbol: str | None = Field(None, max_length=10)


class CurrencyTypeResponse(BaseModel):
    code: str
    name: str
    symbol: str

    model_config = {"from_attributes": True}


class ExchangeRateUpsertRequest(BaseModel):
    """Request body for PUT /exchange-rates/{code}."""
    rate_to_usd: Decimal = Field(gt=0)
    rate_to_lyd: Decimal = Field(gt=0)


class ExchangeRateResponse(BaseModel):
    currency_code: str
    rate_to_usd: Decimal
    rate_to_lyd: Decimal
    updated_at: datetime

    model_config = {"from_attributes": True}


class ManagerPriceUpdateRequest(BaseModel):
    buy_price: Decimal = Field(gt=0)
    sell_price: Decimal = Field(gt=0)


class ManagerPriceResponse(BaseModel):
    buy_price: Decimal
    sell_price: Decimal
    updated_at: datetime

    model_config = {"from_attributes": True}


class ConversionResponse(BaseModel):
    """Response body for GET /exchange-rates/convert."""
    from_currency: str
    to_currency: str
    rate: Decimal
    amount: Decimal | None = None
    converted_amount: Decimal | None = None
