"""
Transaction service — exchange trades recorded at the counter.

A BUY means the desk buys ``currency_code`` from a client: the wallet gains
``amount`` of it and pays out ``total_amount`` of ``exchange_currency_code``.
A SELL is the mirror image. In both cases

    total_amount = amount * exchange_rate

and ``exchange_rate`` is units of the exchange currency per unit of the
traded currency, which is what the currency-pair analysis reads back.

Atomicity:
  The two balance legs and the transaction row are written in the caller's
  database transaction. If the paying leg lacks funds InsufficientFundsError
  is raised and the request rolls back: nothing is recorded.

Where the money comes from:
  - a wallet: both legs move the wallet balances
  - custody: a trade naming ``reference_custody_id`` is made with the cash
    the cashier holds. Both legs move the cashier's custody against that
    custody's wallet (custody_service.draw_custody and credit_custody) and
    the wallet itself is untouched until the custody is returned. The trade
    is recorded with no wallet and "Cash Custody" as its source or
    destination.
  - neither: a client-to-client trade is recorded for the books and moves
    no balances.
"""

import logging
import uuid
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_desk.exceptions import ExchangeDeskError, NotFoundError, PermissionDeniedError
from exchange_desk.models.custody import CashCustody, CustodyStatus
from exchange_desk.models.transaction import Transaction, TransactionType
from exchange_desk.models.user import User
from exchange_desk.services import custody_service, wallet_service

logger = logging.getLogger(__name__)

CLIENT_LABEL = "Client"
CUSTODY_LABEL = "Cash Custody"

# Trades the rate statistics look at
STATS_WINDOW = 30


async def _check_custody_reference(
    db: AsyncSession,
    custody_id: uuid.UUID,
    cashier: User,
    wallet_id: uuid.UUID | None,
) -> CashCustody:
    custody = await db.get(CashCustody, custody_id)
    if custody is None:
        raise NotFoundError("Custody", custody_id)
    if custody.cashier_id != cashier.id:
        raise PermissionDeniedError("Trades can only reference your own custody")
    if custody.status != CustodyStatus.APPROVED.value or custody.is_returned:
        raise ExchangeDeskError(f"Custody {custody_id} is not active")
    if wallet_id is not None and custody.wallet_id != wallet_id:
        raise ExchangeDeskError(f"Custody {custody_id} belongs to another wallet")
    return custody


async def _create_trade(
    db: AsyncSession,
    trade_type: TransactionType,
    cashier: User,
    wallet_id: uuid.UUID | None,
    currency_code: str,
    amount: Decimal,
    exchange_currency_code: str,
    exchange_rate: Decimal,
    client_name: str | None,
    reference_custody_id: uuid.UUID | None,
) -> Transaction:
    if amount <= 0 or exchange_rate <= 0:
        raise ExchangeDeskError("Amount and exchange rate must be positive")
    currency_code = currency_code.upper()
    exchange_currency_code = exchange_currency_code.upper()
    if currency_code == exchange_currency_code:
        raise ExchangeDeskError("A trade needs two different currencies")

    total_amount = amount * exchange_rate

    if reference_custody_id is not None:
        custody = await _check_custody_reference(db, reference_custody_id, cashier, wallet_id)
        if trade_type == TransactionType.BUY:
            paid = (exchange_currency_code, total_amount)
            received = (currency_code, amount)
            source, destination = CLIENT_LABEL, CUSTODY_LABEL
        else:
            paid = (currency_code, amount)
            received = (exchange_currency_code, total_amount)
            source, destination = CUSTODY_LABEL, CLIENT_LABEL
        # Draw first: a shortfall must fail before anything is credited
        await custody_service.draw_custody(
            db, cashier.id, custody.wallet_id, *paid, first_id=custody.id
        )
        await custody_service.credit_custody(
            db, cashier.id, custody, *received,
            notes=f"{trade_type.value} with {client_name or CLIENT_LABEL}",
        )
        # The wallet is settled when the custody comes back
        wallet_id = None
    elif wallet_id is None:
        source = destination = CLIENT_LABEL
    else:
        wallet = await wallet_service.get_wallet(db, wallet_id)
        if trade_type == TransactionType.BUY:
            # Pay first: a shortfall must fail before anything is credited
            await wallet_service.adjust_balance(db, wallet_id, exchange_currency_code, -total_amount)
            await wallet_service.adjust_balance(db, wallet_id, currency_code, amount)
            source, destination = CLIENT_LABEL, wallet.name
        else:
            await wallet_service.adjust_balance(db, wallet_id, currency_code, -amount)
            await wallet_service.adjust_balance(db, wallet_id, exchange_currency_code, total_amount)
            source, destination = wallet.name, CLIENT_LABEL

    txn = Transaction(
        type=trade_type.value,
        wallet_id=wallet_id,
        currency_code=currency_code,
        amount=amount,
        exchange_currency_code=exchange_currency_code,
        exchange_rate=exchange_rate,
        total_amount=total_amount,
        cashier_id=cashier.id,
        client_name=client_name,
        source=source,
        destination=destination,
        reference_custody_id=reference_custody_id,
    )
    db.add(txn)
    await db.flush()
    logger.info(
        "%s %s %s at %s %s by %s (wallet %s)",
        trade_type.value, amount, currency_code, exchange_rate, exchange_currency_code,
        cashier.id, wallet_id,
    )
    return txn


async def create_buy_transaction(
    db: AsyncSession,
    cashier: User,
    wallet_id: uuid.UUID | None,
    currency_code: str,
    amount: Decimal,
    exchange_currency_code: str,
    exchange_rate: Decimal,
    client_name: str | None = None,
    reference_custody_id: uuid.UUID | None = None,
) -> Transaction:
    """The desk buys ``amount`` of ``currency_code`` and pays in ``exchange_currency_code``."""
    return await _create_trade(
        db, TransactionType.BUY, cashier, wallet_id, currency_code, amount,
        exchange_currency_code, exchange_rate, client_name, reference_custody_id,
    )


async def create_sell_transaction(
    db: AsyncSession,
    cashier: User,
    wallet_id: uuid.UUID | None,
    currency_code: str,
    amount: Decimal,
    exchange_currency_code: str,
    exchange_rate: Decimal,
    client_name: str | None = None,
    reference_custody_id: uuid.UUID | None = None,
) -> Transaction:
    """The desk sells ``amount`` of ``currency_code`` and is paid in ``exchange_currency_code``."""
    return await _create_trade(
        db, TransactionType.SELL, cashier, wallet_id, currency_code, amount,
        exchange_currency_code, exchange_rate, client_name, reference_custody_id,
    )


async def get_transaction(db: AsyncSession, transaction_id: uuid.UUID) -> Transaction:
    txn = await db.get(Transaction, transaction_id)
    if txn is None:
        raise NotFoundError("Transaction", transaction_id)
    return txn


async def list_transactions(
    db: AsyncSession,
    limit: int = 50,
    offset: int = 0,
    type_filter: str | None = None,
    wallet_id: uuid.UUID | None = None,
) -> list[Transaction]:
    """Transactions newest first, optionally by type and wallet."""
    query = select(Transaction).order_by(Transaction.created_at.desc())
    if type_filter:
        query = query.where(Transaction.type == type_filter)
    if wallet_id is not None:
        query = query.where(Transaction.wallet_id == wallet_id)
    query = query.offset(offset).limit(limit)
    result = await db.execute(query)
    return list(result.scalars().all())


async def get_transaction_stats(db: AsyncSession) -> dict:
    """Average buy and sell rate over the latest trades."""
    result = await db.execute(
        select(Transaction)
        .where(Transaction.type.in_([TransactionType.BUY.value, TransactionType.SELL.value]))
        .order_by(Transaction.created_at.desc())
        .limit(STATS_WINDOW)
    )
    trades = list(result.scalars().all())
    buy_rates = [t.exchange_rate for t in trades if t.type == TransactionType.BUY.value]
    sell_rates = [t.exchange_rate for t in trades if t.type == TransactionType.SELL.value]
    return {
        "window": STATS_WINDOW,
        "buy_count": len(buy_rates),
        "sell_count": len(sell_rates),
        "average_buy_rate": sum(buy_rates, Decimal("0")) / len(buy_rates) if buy_rates else None,
        "average_sell_rate": sum(sell_rates, Decimal("0")) / len(sell_rates) if sell_rates else None,
    }
