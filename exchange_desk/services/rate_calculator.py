"""
Cross-rate arithmetic over the exchange-rate table.

Rates are "units of the base currency per one unit of the currency": a EUR
row with rate_to_usd 1.08 means 1 EUR = 1.08 USD. Cross rates go through
USD, whose own rate is 1 by definition. A missing rate yields 1 and a
warning so the cashier screen keeps working while a manager fills it in.
"""

import logging
from collections.abc import Iterable, Mapping
from decimal import Decimal

logger = logging.getLogger(__name__)

ONE = Decimal("1")


def _rates_by_code(rates: Iterable) -> dict:
    by_code = {}
    for rate in rates:
        code = rate.get("currency_code") if isinstance(rate, Mapping) else rate.currency_code
        by_code[code] = rate
    return by_code


def _value(rate, field: str) -> Decimal:
    raw = rate.get(field) if isinstance(rate, Mapping) else getattr(rate, field)
    return Decimal(str(raw))


def _usd_value(code: str, by_code: dict) -> Decimal | None:
    if code == "USD":
        return ONE
    rate = by_code.get(code)
    if rate is None:
        return None
    return _value(rate, "rate_to_usd")


def calculate_exchange_rate(from_currency: str, to_currency: str, rates: Iterable) -> Decimal:
    """Units of ``to_currency`` per one unit of ``from_currency``."""
    if from_currency == to_currency:
        return ONE

    by_code = _rates_by_code(rates)
    from_usd = _usd_value(from_currency, by_code)
    to_usd = _usd_value(to_currency, by_code)
    if from_usd is None or to_usd is None or not to_usd:
        logger.warning("Exchange rate not found for %s or %s", from_currency, to_currency)
        return ONE
    return from_usd / to_usd


def _base_rate(currency_code: str, base_currency: str, rates: Iterable) -> Decimal | None:
    rate = _rates_by_code(rates).get(currency_code)
    if rate is None:
        logger.warning("Exchange rate not found for %s", currency_code)
        return None
    if base_currency == "USD":
        return _value(rate, "rate_to_usd")
    if base_currency == "LYD":
        return _value(rate, "rate_to_lyd")
    return None


def get_sell_rate(currency_code: str, base_currency: str, rates: Iterable) -> Decimal:
    """Base-currency units received per unit of ``currency_code`` sold."""
    if currency_code == base_currency:
        return ONE
    value = _base_rate(currency_code, base_currency, rates)
    return value if value else ONE


def get_buy_rate(currency_code: str, base_currency: str, rates: Iterable) -> Decimal:
    """Units of ``currency_code`` per base-currency unit; the inverse of the sell rate."""
    if currency_code == base_currency:
        return ONE
    value = _base_rate(currency_code, base_currency, rates)
    return ONE / value if value else ONE
