"""
Wallet service — the multi-currency ledger.

This module handles:
  - Wallet lifecycle (create, rename, delete) and treasury wallets
  - Currency rows inside a wallet (add, correct, remove)
  - Balance movement through ONE primitive, adjust_balance
  - Cash deposits and withdrawals, recorded as transactions
  - Wallet statistics and the desk-wide summary

Balance enforcement:
  adjust_balance locks the wallet_currencies row, computes the new balance
  and raises InsufficientFundsError instead of going below zero. Every other
  service (custody, trades, debts) moves money through it, inside the
  caller's database transaction, so a failed step rolls back the whole
  operation.

SQLite note:
  with_for_update() is a no-op on SQLite; SQLite serializes writers, which
  is sufficient for a single-process deployment. On PostgreSQL it takes the
  row lock.
"""

import logging
import uuid
from decimal import Decimal

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_desk.config import get_settings
from exchange_desk.exceptions import (
    ConflictError,
    ExchangeDeskError,
    InsufficientFundsError,
    NotFoundError,
)
from exchange_desk.models.currency_type import CurrencyType
from exchange_desk.models.custody import CashCustody
from exchange_desk.models.debt import Debt
from exchange_desk.models.transaction import Transaction, TransactionType
from exchange_desk.models.user import User
from exchange_desk.models.wallet import Wallet, WalletCurrency
from exchange_desk.services.analysis import calculate_median
from exchange_desk.services.custody_totals import (
    ACTIVE_CUSTODY_STATUSES,
    calculate_custody_totals_by_wallet,
    merge_wallet_with_custody,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Number of recent trades the wallet statistics look at
STATS_WINDOW = 30


def wallet_view(wallet: Wallet) -> dict:
    """Plain-dict representation of a wallet with its balances."""
    return {
        "id": wallet.id,
        "name": wallet.name,
        "is_treasury": wallet.is_treasury,
        "owner_id": wallet.owner_id,
        "currencies": wallet.currencies,
        "created_at": wallet.created_at,
        "updated_at": wallet.updated_at,
    }


async def _require_currency(db: AsyncSession, code: str) -> str:
    code = code.upper()
    result = await db.execute(select(CurrencyType.code).where(CurrencyType.code == code))
    if result.scalar_one_or_none() is None:
        raise NotFoundError("Currency", code)
    return code


async def get_wallet(db: AsyncSession, wallet_id: uuid.UUID) -> Wallet:
    """Load a wallet with freshly loaded balances."""
    result = await db.execute(
        select(Wallet)
        .where(Wallet.id == wallet_id)
        .execution_options(populate_existing=True)
    )
    wallet = result.scalar_one_or_none()
    if wallet is None:
        raise NotFoundError("Wallet", wallet_id)
    return wallet


async def _custody_records(db: AsyncSession, wallet_id: uuid.UUID | None = None) -> list[CashCustody]:
    query = select(CashCustody).order_by(CashCustody.created_at.desc())
    if wallet_id is not None:
        query = query.where(CashCustody.wallet_id == wallet_id)
    result = await db.execute(query)
    return list(result.scalars().all())


async def create_wallet(
    db: AsyncSession,
    name: str,
    currencies: dict[str, Decimal] | None = None,
    is_treasury: bool = False,
    owner_id: uuid.UUID | None = None,
) -> Wallet:
    """
    Create a wallet.

    Every base currency is opened at zero; ``currencies`` adds or overrides
    opening balances. Opening balances must be non-negative known currencies.
    """
    opening: dict[str, Decimal] = {code: ZERO for code in get_settings().BASE_CURRENCIES}
    for code, amount in (currencies or {}).items():
        amount = Decimal(str(amount))
        if amount < 0:
            raise ExchangeDeskError(f"Opening balance for {code} cannot be negative")
        opening[code.upper()] = amount

    for code in opening:
        await _require_currency(db, code)

    wallet = Wallet(name=name, is_treasury=is_treasury, owner_id=owner_id)
    wallet.balances = [
        WalletCurrency(currency_code=code, balance=amount)
        for code, amount in sorted(opening.items())
    ]
    db.add(wallet)
    await db.flush()
    logger.info("Wallet %s (%s) created with %s", wallet.id, name, ", ".join(sorted(opening)))
    return wallet


async def create_treasury_wallet(db: AsyncSession, treasurer_id: uuid.UUID) -> Wallet:
    """Open a treasury wallet owned by ``treasurer_id``."""
    result = await db.execute(select(User).where(User.id == treasurer_id))
    treasurer = result.scalar_one_or_none()
    if treasurer is None:
        raise NotFoundError("User", treasurer_id)
    return await create_wallet(
        db,
        name=f"Treasury - {treasurer.name}",
        is_treasury=True,
        owner_id=treasurer.id,
    )


async def list_wallets(db: AsyncSession) -> list[dict]:
    """All wallets, each merged with the custody currently out against it."""
    result = await db.execute(
        select(Wallet).order_by(Wallet.name).execution_options(populate_existing=True)
    )
    wallets = list(result.scalars().all())
    totals = calculate_custody_totals_by_wallet(await _custody_records(db), wallets)
    return [merge_wallet_with_custody(wallet_view(w), totals) for w in wallets]


async def get_wallet_view(db: AsyncSession, wallet_id: uuid.UUID) -> dict:
    wallet = await get_wallet(db, wallet_id)
    totals = calculate_custody_totals_by_wallet(await _custody_records(db, wallet_id), [wallet])
    return merge_wallet_with_custody(wallet_view(wallet), totals)


async def list_non_treasury_wallets(db: AsyncSession) -> list[Wallet]:
    result = await db.execute(
        select(Wallet).where(Wallet.is_treasury.is_(False)).order_by(Wallet.name)
    )
    return list(result.scalars().all())


async def update_wallet(db: AsyncSession, wallet_id: uuid.UUID, name: str) -> Wallet:
    wallet = await get_wallet(db, wallet_id)
    wallet.name = name
    await db.flush()
    return wallet


async def delete_wallet(db: AsyncSession, wallet_id: uuid.UUID) -> None:
    """
    Delete a wallet.

    Refused with ConflictError while custody records or debts reference it,
    or while any of its balances is non-zero.
    """
    wallet = await get_wallet(db, wallet_id)

    custody_count = await db.scalar(
        select(func.count()).select_from(CashCustody).where(CashCustody.wallet_id == wallet_id)
    )
    if custody_count:
        raise ConflictError(f"Wallet {wallet_id} is referenced by {custody_count} custody record(s)")

    debt_count = await db.scalar(
        select(func.count()).select_from(Debt).where(Debt.wallet_id == wallet_id)
    )
    if debt_count:
        raise ConflictError(f"Wallet {wallet_id} is referenced by {debt_count} debt(s)")

    non_zero = [code for code, balance in wallet.currencies.items() if balance != 0]
    if non_zero:
        raise ConflictError(
            f"Wallet {wallet_id} still holds {', '.join(non_zero)}; empty it before deleting"
        )

    await db.delete(wallet)
    await db.flush()
    logger.info("Wallet %s deleted", wallet_id)


# ---------------------------------------------------------------------------
# Currency rows
# ---------------------------------------------------------------------------

async def _get_currency_row(
    db: AsyncSession,
    wallet_id: uuid.UUID,
    currency_code: str,
    lock: bool = False,
) -> WalletCurrency | None:
    query = select(WalletCurrency).where(
        WalletCurrency.wallet_id == wallet_id,
        WalletCurrency.currency_code == currency_code,
    )
    if lock:
        query = query.with_for_update()  # No-op on SQLite
    result = await db.execute(query)
    return result.scalar_one_or_none()


async def add_currency_to_wallet(
    db: AsyncSession,
    wallet_id: uuid.UUID,
    currency_code: str,
    initial_balance: Decimal = ZERO,
) -> Wallet:
    wallet = await get_wallet(db, wallet_id)
    currency_code = await _require_currency(db, currency_code)
    if initial_balance < 0:
        raise ExchangeDeskError("Initial balance cannot be negative")
    if currency_code in wallet.currencies:
        raise ConflictError(f"Wallet {wallet_id} already holds {currency_code}")

    wallet.balances.append(
        WalletCurrency(currency_code=currency_code, balance=initial_balance)
    )
    await db.flush()
    logger.info("Currency %s added to wallet %s", currency_code, wallet_id)
    return await get_wallet(db, wallet_id)


async def set_currency_balance(
    db: AsyncSession,
    wallet_id: uuid.UUID,
    currency_code: str,
    new_balance: Decimal,
) -> Wallet:
    """Overwrite a balance (manager correction); the row is created if missing."""
    if new_balance < 0:
        raise ExchangeDeskError("Balance cannot be negative")
    wallet = await get_wallet(db, wallet_id)
    currency_code = await _require_currency(db, currency_code)

    row = await _get_currency_row(db, wallet_id, currency_code, lock=True)
    if row is None:
        wallet.balances.append(WalletCurrency(currency_code=currency_code, balance=new_balance))
        previous = ZERO
    else:
        previous = row.balance
        row.balance = new_balance
    await db.flush()
    logger.info(
        "Wallet %s %s balance set from %s to %s", wallet_id, currency_code, previous, new_balance
    )
    return await get_wallet(db, wallet_id)


async def remove_currency_from_wallet(
    db: AsyncSession,
    wallet_id: uuid.UUID,
    currency_code: str,
) -> Wallet:
    """Remove a currency row; only a zero balance can be removed."""
    wallet = await get_wallet(db, wallet_id)
    currency_code = currency_code.upper()
    row = await _get_currency_row(db, wallet_id, currency_code, lock=True)
    if row is None:
        raise NotFoundError("Wallet currency", f"{wallet_id}/{currency_code}")
    if row.balance != 0:
        raise ConflictError(
            f"Cannot remove {currency_code} from wallet {wallet_id}: balance is {row.balance}"
        )
    wallet.balances.remove(row)
    await db.flush()
    logger.info("Currency %s removed from wallet %s", currency_code, wallet_id)
    return await get_wallet(db, wallet_id)


async def adjust_balance(
    db: AsyncSession,
    wallet_id: uuid.UUID,
    currency_code: str,
    delta: Decimal,
) -> WalletCurrency:
    """
    Add ``delta`` (negative to debit) to a wallet balance.

    The row is locked first. A credit to a currency the wallet doesn't hold
    yet opens the row. A debit that would go below zero raises
    InsufficientFundsError and changes nothing.
    """
    currency_code = currency_code.upper()
    delta = Decimal(str(delta))
    row = await _get_currency_row(db, wallet_id, currency_code, lock=True)

    if row is None:
        wallet = await get_wallet(db, wallet_id)
        if delta < 0:
            logger.warning(
                "Debit of %s %s refused: wallet %s holds none", -delta, currency_code, wallet_id
            )
            raise InsufficientFundsError(wallet_id, currency_code, -delta, ZERO)
        await _require_currency(db, currency_code)
        row = WalletCurrency(currency_code=currency_code, balance=ZERO)
        wallet.balances.append(row)

    new_balance = row.balance + delta
    if new_balance < 0:
        logger.warning(
            "Debit of %s %s refused: wallet %s holds %s",
            -delta, currency_code, wallet_id, row.balance,
        )
        raise InsufficientFundsError(wallet_id, currency_code, -delta, row.balance)

    row.balance = new_balance
    await db.flush()
    logger.info("Wallet %s %s adjusted by %s to %s", wallet_id, currency_code, delta, new_balance)
    return row


async def deposit(
    db: AsyncSession,
    wallet_id: uuid.UUID,
    currency_code: str,
    amount: Decimal,
    actor: User,
    reason: str | None = None,
) -> Transaction:
    """Put cash into a wallet and record a deposit transaction."""
    return await _move_cash(db, TransactionType.DEPOSIT, wallet_id, currency_code, amount, actor, reason)


async def withdraw(
    db: AsyncSession,
    wallet_id: uuid.UUID,
    currency_code: str,
    amount: Decimal,
    actor: User,
    reason: str | None = None,
) -> Transaction:
    """Take cash out of a wallet and record a withdrawal transaction."""
    return await _move_cash(db, TransactionType.WITHDRAWAL, wallet_id, currency_code, amount, actor, reason)


async def _move_cash(
    db: AsyncSession,
    txn_type: TransactionType,
    wallet_id: uuid.UUID,
    currency_code: str,
    amount: Decimal,
    actor: User,
    reason: str | None,
) -> Transaction:
    if amount <= 0:
        raise ExchangeDeskError("Amount must be positive")
    wallet = await get_wallet(db, wallet_id)
    delta = amount if txn_type == TransactionType.DEPOSIT else -amount
    await adjust_balance(db, wallet_id, currency_code, delta)

    txn = Transaction(
        type=txn_type.value,
        wallet_id=wallet_id,
        currency_code=currency_code.upper(),
        amount=amount,
        cashier_id=actor.id,
        reason=reason,
        source=None if txn_type == TransactionType.DEPOSIT else wallet.name,
        destination=wallet.name if txn_type == TransactionType.DEPOSIT else None,
    )
    db.add(txn)
    await db.flush()
    return txn


# ---------------------------------------------------------------------------
# Statistics
# ---------------------------------------------------------------------------

def _rate_stats(rates: list[Decimal]) -> dict:
    if not rates:
        return {"count": 0, "min_rate": None, "max_rate": None, "median_rate": None}
    return {
        "count": len(rates),
        "min_rate": min(rates),
        "max_rate": max(rates),
        "median_rate": calculate_median(rates),
    }


async def get_wallet_stats(db: AsyncSession, wallet_id: uuid.UUID) -> dict:
    """
    Recent trading and custody picture of one wallet.

    Looks at the wallet's latest trades (STATS_WINDOW of them) and reports
    min/max/median rate separately for buys and sells, along with the
    wallet's custody records and the custody balance currently out per
    currency.
    """
    wallet = await get_wallet(db, wallet_id)

    result = await db.execute(
        select(Transaction)
        .where(
            Transaction.wallet_id == wallet_id,
            Transaction.type.in_([TransactionType.BUY.value, TransactionType.SELL.value]),
        )
        .order_by(Transaction.created_at.desc())
        .limit(STATS_WINDOW)
    )
    trades = list(result.scalars().all())

    buy_rates = [t.exchange_rate for t in trades if t.type == TransactionType.BUY.value and t.exchange_rate]
    sell_rates = [t.exchange_rate for t in trades if t.type == TransactionType.SELL.value and t.exchange_rate]

    custody = await _custody_records(db, wallet_id)
    totals = calculate_custody_totals_by_wallet(custody, [wallet], ACTIVE_CUSTODY_STATUSES)

    return {
        "wallet": wallet_view(wallet),
        "recent_transactions": trades,
        "buy": _rate_stats(buy_rates),
        "sell": _rate_stats(sell_rates),
        "custody_records": custody,
        "custody_balances": totals.get(str(wallet.id), {}),
    }


async def get_wallets_summary(db: AsyncSession) -> dict:
    """Wallet count and the desk's total holdings per currency."""
    wallet_count = await db.scalar(select(func.count()).select_from(Wallet))
    result = await db.execute(
        select(WalletCurrency.currency_code, func.sum(WalletCurrency.balance))
        .group_by(WalletCurrency.currency_code)
        .order_by(WalletCurrency.currency_code)
    )
    totals = {code: Decimal(str(total or 0)) for code, total in result.all()}
    return {"wallet_count": wallet_count or 0, "totals_by_currency": totals}
