"""
Currency-pair analytics over recorded trades.

Trades are grouped by the UNORDERED pair of currencies they exchange, keyed
"A/B" with A sorting before B. A trade written the other way round (its
``currency_code`` is B) has its rate inverted and its amounts swapped, so
every rate in a group is "units of B per unit of A" and the group's
min/max/median are comparable.

The pure functions take ORM rows or plain mappings. The ``get_*_analysis``
functions load trades and always recompute; nothing is cached.
"""

import uuid
from collections.abc import Iterable, Mapping
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_desk.exceptions import NotFoundError
from exchange_desk.models.custody import CashCustody
from exchange_desk.models.transaction import Transaction, TransactionType
from exchange_desk.models.wallet import Wallet


def _field(record, name: str):
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _decimal(value) -> Decimal:
    return value if isinstance(value, Decimal) else Decimal(str(value))


def calculate_median(values: Iterable):
    """
    Median by sorting: the middle value, or the mean of the two middle
    values for an even count. An empty input gives 0.
    """
    ordered = sorted(values)
    if not ordered:
        return 0
    middle = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[middle - 1] + ordered[middle]) / 2
    return ordered[middle]


def calculate_value_with_median_rate(amount, median_rate):
    """Value of ``amount`` of the pair's first currency in its second one."""
    return amount * median_rate


def _oriented(transaction) -> tuple[str, str, Decimal, Decimal, Decimal] | None:
    """(first, second, rate, amount, exchange_amount) with rate as second per first."""
    currency_code = _field(transaction, "currency_code")
    exchange_code = _field(transaction, "exchange_currency_code")
    rate = _field(transaction, "exchange_rate")
    if not currency_code or not exchange_code or not rate:
        return None

    rate = _decimal(rate)
    amount = _decimal(_field(transaction, "amount") or 0)
    total = _field(transaction, "total_amount")
    exchange_amount = _decimal(total) if total is not None else amount * rate

    first, second = sorted((currency_code, exchange_code))
    if currency_code == first:
        return first, second, rate, amount, exchange_amount
    return first, second, 1 / rate, exchange_amount, amount


def analyze_currency_pairs(transactions: Iterable) -> dict[str, dict]:
    """
    Per-pair rate statistics.

    Transactions without both currency codes and a rate are skipped. Each
    group reports its rates, median/min/max rate, counts (total, buy, sell),
    total and average amount in the first currency, total amount in the
    second currency and the primary operation type ("buy" unless sells
    outnumber buys).
    """
    pairs: dict[str, dict] = {}

    for transaction in transactions:
        oriented = _oriented(transaction)
        if oriented is None:
            continue
        first, second, rate, amount, exchange_amount = oriented
        key = f"{first}/{second}"

        pair = pairs.setdefault(key, {
            "from_currency": first,
            "to_currency": second,
            "rates": [],
            "amounts": [],
            "exchange_amounts": [],
            "transaction_count": 0,
            "buy_count": 0,
            "sell_count": 0,
        })
        pair["rates"].append(rate)
        pair["amounts"].append(amount)
        pair["exchange_amounts"].append(exchange_amount)
        pair["transaction_count"] += 1

        operation = _field(transaction, "type")
        if operation == TransactionType.BUY.value:
            pair["buy_count"] += 1
        elif operation == TransactionType.SELL.value:
            pair["sell_count"] += 1

    for pair in pairs.values():
        pair["median_rate"] = calculate_median(pair["rates"])
        pair["min_rate"] = min(pair["rates"])
        pair["max_rate"] = max(pair["rates"])
        pair["total_amount"] = sum(pair["amounts"], Decimal("0"))
        pair["total_exchange_amount"] = sum(pair["exchange_amounts"], Decimal("0"))
        pair["average_amount"] = pair["total_amount"] / len(pair["amounts"])
        pair["primary_operation_type"] = "buy" if pair["buy_count"] >= pair["sell_count"] else "sell"

    return pairs


TABLE_COLUMNS = (
    "from_currency",
    "to_currency",
    "median_rate",
    "min_rate",
    "max_rate",
    "transaction_count",
    "buy_count",
    "sell_count",
    "total_amount",
    "total_exchange_amount",
    "average_amount",
    "primary_operation_type",
)


def format_currency_pairs_for_table(pairs: Mapping[str, Mapping]) -> list[dict]:
    """One row per pair, busiest pair first."""
    rows = [
        {"pair": key, **{column: data.get(column) for column in TABLE_COLUMNS}}
        for key, data in pairs.items()
    ]
    rows.sort(key=lambda row: (-row["transaction_count"], row["pair"]))
    return rows


def _trades_query():
    return (
        select(Transaction)
        .where(
            Transaction.exchange_rate.is_not(None),
            Transaction.exchange_currency_code.is_not(None),
        )
        .order_by(Transaction.created_at.desc())
    )


def _result(transactions: list[Transaction], **scope) -> dict:
    return {
        **scope,
        "transaction_count": len(transactions),
        "currency_pairs": analyze_currency_pairs(transactions),
        "last_analyzed": datetime.now(timezone.utc),
    }


async def get_wallet_pairs_analysis(db: AsyncSession, wallet_id: uuid.UUID) -> dict:
    """Pairs traded through one wallet."""
    wallet = await db.get(Wallet, wallet_id)
    if wallet is None:
        raise NotFoundError("Wallet", wallet_id)
    result = await db.execute(_trades_query().where(Transaction.wallet_id == wallet_id))
    return _result(list(result.scalars().all()), wallet_id=wallet_id)


async def get_custody_pairs_analysis(db: AsyncSession, custody_id: uuid.UUID) -> dict:
    """Pairs traded against one custody record."""
    custody = await db.get(CashCustody, custody_id)
    if custody is None:
        raise NotFoundError("Custody", custody_id)
    result = await db.execute(
        _trades_query().where(Transaction.reference_custody_id == custody_id)
    )
    return _result(list(result.scalars().all()), custody_id=custody_id)


async def get_overall_pairs_analysis(db: AsyncSession, custody_only: bool = False) -> dict:
    """Pairs across every trade, or only trades made against some custody."""
    query = _trades_query()
    if custody_only:
        query = query.where(Transaction.reference_custody_id.is_not(None))
    result = await db.execute(query)
    return _result(list(result.scalars().all()))
