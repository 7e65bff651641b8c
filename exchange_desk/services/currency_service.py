"""Currency type catalog: the codes wallets, custody and trades may use."""

import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_desk.exceptions import ConflictError, NotFoundError
from exchange_desk.models.currency_type import CurrencyType
from exchange_desk.models.wallet import WalletCurrency

logger = logging.getLogger(__name__)


async def list_currency_types(db: AsyncSession) -> list[CurrencyType]:
    result = await db.execute(select(CurrencyType).order_by(CurrencyType.code))
    return list(result.scalars().all())


async def get_currency_type(db: AsyncSession, code: str) -> CurrencyType:
    result = await db.execute(select(CurrencyType).where(CurrencyType.code == code.upper()))
    currency = result.scalar_one_or_none()
    if currency is None:
        raise NotFoundError("Currency", code.upper())
    return currency


async def create_currency_type(
    db: AsyncSession,
    code: str,
    name: str,
    symbol: str | None = None,
) -> CurrencyType:
    """Create a currency; the code is upper-cased and the symbol defaults to it."""
    code = code.strip().upper()
    existing = await db.execute(select(CurrencyType).where(CurrencyType.code == code))
    if existing.scalar_one_or_none() is not None:
        raise ConflictError(f"Currency {code} already exists")

    currency = CurrencyType(code=code, name=name, symbol=symbol or code)
    db.add(currency)
    await db.flush()
    logger.info("Currency %s created", code)
    return currency


async def update_currency_type(
    db: AsyncSession,
    code: str,
    name: str | None = None,
    symbol: str | None = None,
) -> CurrencyType:
    currency = await get_currency_type(db, code)
    if name is not None:
        currency.name = name
    if symbol is not None:
        currency.symbol = symbol
    await db.flush()
    return currency


async def delete_currency_type(db: AsyncSession, code: str) -> None:
    """Delete a currency that no wallet holds."""
    currency = await get_currency_type(db, code)
    in_use = await db.scalar(
        select(func.count())
        .select_from(WalletCurrency)
        .where(WalletCurrency.currency_code == currency.code)
    )
    if in_use:
        raise ConflictError(f"Currency {currency.code} is held by {in_use} wallet(s)")
    await db.delete(currency)
    await db.flush()
    logger.info("Currency %s deleted", currency.code)
