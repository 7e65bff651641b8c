"""
Debt service — money the desk borrowed or lent, tracked against a wallet.

    is_owed=True   the desk owes the person: the wallet gained the amount
                   when the debt was recorded and pays it back when paid
    is_owed=False  the person owes the desk: the wallet paid the amount out
                   when the debt was recorded and receives it when paid

Deleting an unpaid debt reverses its recording, so the wallet ends up as if
the debt never existed. Deleting a paid debt only removes the record.
"""

import logging
import uuid
from decimal import Decimal

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_desk.exceptions import (
    ExchangeDeskError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
)
from exchange_desk.models.debt import Debt
from exchange_desk.models.role import RoleName
from exchange_desk.models.user import User
from exchange_desk.services import wallet_service
from exchange_desk.services.role_service import has_any_role

logger = logging.getLogger(__name__)


def _recording_delta(debt: Debt) -> Decimal:
    """Wallet change applied when the debt is recorded."""
    return debt.amount if debt.is_owed else -debt.amount


async def _get_visible_debt(db: AsyncSession, debt_id: uuid.UUID, user: User) -> Debt:
    result = await db.execute(
        select(Debt).where(Debt.id == debt_id).execution_options(populate_existing=True)
    )
    debt = result.scalar_one_or_none()
    if debt is None:
        raise NotFoundError("Debt", debt_id)
    if debt.created_by != user.id and not has_any_role(user, [RoleName.MANAGER.value]):
        raise PermissionDeniedError("This debt was recorded by another user")
    return debt


async def create_debt(
    db: AsyncSession,
    user: User,
    person_name: str,
    wallet_id: uuid.UUID,
    currency_code: str,
    amount: Decimal,
    notes: str | None,
    is_owed: bool,
) -> Debt:
    """
    Record a debt and apply it to the wallet.

    Raises:
        ExchangeDeskError: Non-positive amount or empty person name.
        NotFoundError: Unknown wallet.
        InsufficientFundsError: Lending more than the wallet holds.
    """
    if amount <= 0:
        raise ExchangeDeskError("Debt amount must be positive")
    if not person_name or not person_name.strip():
        raise ExchangeDeskError("Person name is required")

    await wallet_service.get_wallet(db, wallet_id)
    debt = Debt(
        created_by=user.id,
        person_name=person_name.strip(),
        wallet_id=wallet_id,
        currency_code=currency_code.upper(),
        amount=amount,
        notes=notes,
        is_owed=is_owed,
        is_paid=False,
    )
    await wallet_service.adjust_balance(db, wallet_id, debt.currency_code, _recording_delta(debt))

    db.add(debt)
    await db.flush()
    logger.info(
        "Debt %s recorded: %s %s %s %s",
        debt.id, "owed to" if is_owed else "lent to", person_name, amount, debt.currency_code,
    )
    return debt


async def list_debts(db: AsyncSession, user: User) -> dict[str, list[Debt]]:
    """Debts visible to ``user``, split into owed and receivable, newest first."""
    query = select(Debt).order_by(Debt.created_at.desc())
    if not has_any_role(user, [RoleName.MANAGER.value]):
        query = query.where(Debt.created_by == user.id)
    result = await db.execute(query)
    debts = list(result.scalars().all())
    return {
        "owed": [d for d in debts if d.is_owed],
        "receivable": [d for d in debts if not d.is_owed],
    }


async def get_debt_summary(db: AsyncSession, user: User) -> dict:
    """Unpaid totals per currency and unpaid counts, owed vs receivable."""
    debts = await list_debts(db, user)
    summary = {
        "owed_by_currency": {},
        "receivable_by_currency": {},
        "unpaid_owed_count": 0,
        "unpaid_receivable_count": 0,
    }
    for kind, bucket, counter in (
        ("owed", "owed_by_currency", "unpaid_owed_count"),
        ("receivable", "receivable_by_currency", "unpaid_receivable_count"),
    ):
        for debt in debts[kind]:
            if debt.is_paid:
                continue
            summary[counter] += 1
            totals = summary[bucket]
            totals[debt.currency_code] = totals.get(debt.currency_code, Decimal("0")) + debt.amount
    return summary


async def mark_debt_as_paid(db: AsyncSession, debt_id: uuid.UUID, user: User) -> Debt:
    """Settle a debt; the wallet pays an owed debt back or receives a receivable one."""
    debt = await _get_visible_debt(db, debt_id, user)

    result = await db.execute(
        update(Debt)
        .where(Debt.id == debt_id, Debt.is_paid.is_(False))
        .values(is_paid=True)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise InvalidTransitionError("Debt", debt_id, "unpaid", "paid")

    await wallet_service.adjust_balance(db, debt.wallet_id, debt.currency_code, -_recording_delta(debt))
    debt = await _get_visible_debt(db, debt_id, user)
    logger.info("Debt %s paid", debt_id)
    return debt


async def delete_debt(db: AsyncSession, debt_id: uuid.UUID, user: User) -> None:
    debt = await _get_visible_debt(db, debt_id, user)
    if not debt.is_paid:
        await wallet_service.adjust_balance(db, debt.wallet_id, debt.currency_code, -_recording_delta(debt))
    await db.delete(debt)
    await db.flush()
    logger.info("Debt %s deleted", debt_id)
