"""
Currency catalog, exchange rates and manager prices.

Endpoints:
  GET    /currencies                  — List currency types
  POST   /currencies                  — [Manager] Create a currency type
  PATCH  /currencies/{code}           — [Manager] Edit name / symbol
  DELETE /currencies/{code}           — [Manager] Delete an unused currency
  GET    /exchange-rates              — List rates
  GET    /exchange-rates/convert      — Cross rate between two currencies
  PUT    /exchange-rates/{code}       — [Manager] Set a currency's rates
  DELETE /exchange-rates/{code}       — [Manager] Delete a currency's rates
  GET    /manager-prices              — Posted buy / sell prices
  PUT    /manager-prices              — [Manager] Update posted prices
"""

from decimal import Decimal

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_desk.database import get_db
from exchange_desk.dependencies import get_current_user, require_manager
from exchange_desk.models.user import User
from exchange_desk.schemas.currency import (
    ConversionResponse,
    CurrencyTypeCreateRequest,
    CurrencyTypeResponse,
    CurrencyTypeUpdateRequest,
    ExchangeRateResponse,
    ExchangeRateUpsertRequest,
    ManagerPriceResponse,
    ManagerPriceUpdateRequest,
)
from exchange_desk.services import currency_service, rate_service
from exchange_desk.services.rate_calculator import calculate_exchange_rate

router = APIRouter()
rates_router = APIRouter()
prices_router = APIRouter()


# ---------------------------------------------------------------------------
# Currency types
# ---------------------------------------------------------------------------

@router.get("", response_model=list[CurrencyTypeResponse], summary="List currency types")
async def list_currency_types(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await currency_service.list_currency_types(db)


@router.post(
    "",
    response_model=CurrencyTypeResponse,
    status_code=status.HTTP_201_CREATED,
    summary="[Manager] Create a currency type",
)
async def create_currency_type(
    request: CurrencyTypeCreateRequest,
    manager: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    return await currency_service.create_currency_type(
        db, code=request.code, name=request.name, symbol=request.symbol
    )


@router.patch("/{code}", response_model=CurrencyTypeResponse, summary="[Manager] Edit a currency type")
async def update_currency_type(
    code: str,
    request: CurrencyTypeUpdateRequest,
    manager: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    return await currency_service.update_currency_type(
        db, code, name=request.name, symbol=request.symbol
    )


@router.delete("/{code}", status_code=status.HTTP_204_NO_CONTENT, summary="[Manager] Delete a currency type")
async def delete_currency_type(
    code: str,
    manager: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    await currency_service.delete_currency_type(db, code)


# ---------------------------------------------------------------------------
# Exchange rates
# ---------------------------------------------------------------------------

@rates_router.get("", response_model=list[ExchangeRateResponse], summary="List exchange rates")
async def list_exchange_rates(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await rate_service.list_exchange_rates(db)


@rates_router.get("/convert", response_model=ConversionResponse, summary="Cross rate between two currencies")
async def convert(
    from_currency: str = Query(..., min_length=2, max_length=10),
    to_currency: str = Query(..., min_length=2, max_length=10),
    amount: Decimal | None = Query(None, gt=0),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    rates = await rate_service.list_exchange_rates(db)
    rate = calculate_exchange_rate(from_currency.upper(), to_currency.upper(), rates)
    return ConversionResponse(
        from_currency=from_currency.upper(),
        to_currency=to_currency.upper(),
        rate=rate,
        amount=amount,
        converted_amount=amount * rate if amount is not None else None,
    )


@rates_router.put("/{code}", response_model=ExchangeRateResponse, summary="[Manager] Set exchange rates")
async def upsert_exchange_rate(
    code: str,
    request: ExchangeRateUpsertRequest,
    manager: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    return await rate_service.upsert_exchange_rate(
        db, code, rate_to_usd=request.rate_to_usd, rate_to_lyd=request.rate_to_lyd
    )


@rates_router.delete("/{code}", status_code=status.HTTP_204_NO_CONTENT, summary="[Manager] Delete exchange rates")
async def delete_exchange_rate(
    code: str,
    manager: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    await rate_service.delete_exchange_rate(db, code)


# ---------------------------------------------------------------------------
# Manager prices
# ---------------------------------------------------------------------------

@prices_router.get("", response_model=ManagerPriceResponse, summary="Posted buy / sell prices")
async def get_manager_prices(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await rate_service.get_manager_prices(db)


@prices_router.put("", response_model=ManagerPriceResponse, summary="[Manager] Update posted prices")
async def update_manager_prices(
    request: ManagerPriceUpdateRequest,
    manager: User = Depends(require_manager),
    db: AsyncSession = Depends(get_db),
):
    return await rate_service.update_manager_prices(
        db, buy_price=request.buy_price, sell_price=request.sell_price
    )
