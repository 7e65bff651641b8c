"""
Exchange rates and the manager's posted prices.

Rates are one row per currency (value in USD and LYD). Manager prices are a
single row holding the desk's posted buy and sell price; reading it when it
doesn't exist yet creates it with the defaults.
"""

import logging
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_desk.exceptions import ExchangeDeskError, NotFoundError
from exchange_desk.models.currency_type import CurrencyType
from exchange_desk.models.exchange_rate import ExchangeRate, ManagerPrice

logger = logging.getLogger(__name__)

DEFAULT_BUY_PRICE = Decimal("5.0")
DEFAULT_SELL_PRICE = Decimal("5.5")

MANAGER_PRICE_ROW_ID = 1


async def list_exchange_rates(db: AsyncSession) -> list[ExchangeRate]:
    result = await db.execute(select(ExchangeRate).order_by(ExchangeRate.currency_code))
    return list(result.scalars().all())


async def upsert_exchange_rate(
    db: AsyncSession,
    currency_code: str,
    rate_to_usd: Decimal,
    rate_to_lyd: Decimal,
) -> ExchangeRate:
    """Create or replace the rate row for ``currency_code``."""
    if rate_to_usd <= 0 or rate_to_lyd <= 0:
        raise ExchangeDeskError("Exchange rates must be positive")

    currency_code = currency_code.upper()
    if await db.get(CurrencyType, currency_code) is None:
        raise NotFoundError("Currency", currency_code)

    rate = await db.get(ExchangeRate, currency_code)
    if rate is None:
        rate = ExchangeRate(currency_code=currency_code)
        db.add(rate)
    rate.rate_to_usd = rate_to_usd
    rate.rate_to_lyd = rate_to_lyd
    await db.flush()
    logger.info("Exchange rate for %s set to %s USD / %s LYD", currency_code, rate_to_usd, rate_to_lyd)
    return rate


async def delete_exchange_rate(db: AsyncSession, currency_code: str) -> None:
    rate = await db.get(ExchangeRate, currency_code.upper())
    if rate is None:
        raise NotFoundError("Exchange rate", currency_code.upper())
    await db.delete(rate)
    await db.flush()
    logger.info("Exchange rate for %s deleted", rate.currency_code)


async def get_manager_prices(db: AsyncSession) -> ManagerPrice:
    prices = await db.get(ManagerPrice, MANAGER_PRICE_ROW_ID)
    if prices is None:
        prices = ManagerPrice(
            id=MANAGER_PRICE_ROW_ID,
            buy_price=DEFAULT_BUY_PRICE,
            sell_price=DEFAULT_SELL_PRICE,
        )
        db.add(prices)
        await db.flush()
    return prices


async def update_manager_prices(
    db: AsyncSession,
    buy_price: Decimal,
    sell_price: Decimal,
) -> ManagerPrice:
    if buy_price <= 0 or sell_price <= 0:
        raise ExchangeDeskError("Prices must be positive")
    prices = await get_manager_prices(db)
    prices.buy_price = buy_price
    prices.sell_price = sell_price
    await db.flush()
    logger.info("Manager prices set to buy %s / sell %s", buy_price, sell_price)
    return prices
