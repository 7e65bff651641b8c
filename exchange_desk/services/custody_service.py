"""
Custody service — cash handed from a treasurer to a cashier.

Lifecycle of a cash_custody row:

    pending ──approve──> approved ──return──> returned
       │
       └────reject────> rejected

Money movement:
  - give:    the amount leaves the treasury wallet immediately
  - reject:  the amount is credited back
  - return:  whatever the cashier still holds is credited back
  - approve: no balance change; the cash is now out with the cashier

While custody is approved the cashier can trade with it. draw_custody and
credit_custody are the only ways a trade changes what a cashier holds, and
they lock the rows they touch the way wallet_service.adjust_balance does.

Every step (balance change, custody row, notifications) runs inside the
request's database transaction, so a failure anywhere leaves no trace.

Transitions are compare-and-swap: UPDATE ... WHERE status = <expected>. If
another request already moved the row, the update matches nothing and
InvalidTransitionError is raised, so concurrent double approvals are
processed exactly once.
"""

import logging
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import select, update, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_desk.exceptions import (
    ExchangeDeskError,
    InsufficientCustodyError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
)
from exchange_desk.models.custody import CashCustody, CustodyStatus
from exchange_desk.models.notification import NotificationType
from exchange_desk.models.role import RoleName
from exchange_desk.models.user import User
from exchange_desk.services import currency_service, notification_service, user_service, wallet_service
from exchange_desk.services.role_service import has_any_role

logger = logging.getLogger(__name__)


async def _load_custody(db: AsyncSession, custody_id: uuid.UUID) -> CashCustody:
    result = await db.execute(
        select(CashCustody)
        .where(CashCustody.id == custody_id)
        .execution_options(populate_existing=True)
    )
    custody = result.scalar_one_or_none()
    if custody is None:
        raise NotFoundError("Custody", custody_id)
    return custody


async def _transition(
    db: AsyncSession,
    custody_id: uuid.UUID,
    expected: CustodyStatus,
    new_status: CustodyStatus,
    **values,
) -> CashCustody:
    """Move ``custody_id`` from ``expected`` to ``new_status`` or raise."""
    result = await db.execute(
        update(CashCustody)
        .where(CashCustody.id == custody_id, CashCustody.status == expected.value)
        .values(status=new_status.value, updated_at=datetime.now(timezone.utc), **values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        current = await db.scalar(select(CashCustody.status).where(CashCustody.id == custody_id))
        if current is None:
            raise NotFoundError("Custody", custody_id)
        logger.warning(
            "Custody %s transition to %s refused: status is %s", custody_id, new_status.value, current
        )
        raise InvalidTransitionError("Custody", custody_id, expected.value, current)
    return await _load_custody(db, custody_id)


async def give_cash_custody(
    db: AsyncSession,
    treasurer: User,
    cashier_id: uuid.UUID,
    wallet_id: uuid.UUID,
    currency_code: str,
    amount: Decimal,
    notes: str | None = None,
    previous_custody_id: uuid.UUID | None = None,
) -> CashCustody:
    """
    Hand ``amount`` of ``currency_code`` from ``wallet_id`` to a cashier.

    The wallet is debited at once, a pending custody row is written and the
    cashier receives an actionable custody_request notification.

    Raises:
        ExchangeDeskError: If the amount is not positive or the recipient is not a cashier.
        PermissionDeniedError: If the giver is not a treasurer.
        NotFoundError: Unknown cashier, wallet or previous custody.
        InsufficientFundsError: If the wallet can't cover the amount.
    """
    if amount is None or amount <= 0:
        raise ExchangeDeskError("Custody amount must be positive")
    if not has_any_role(treasurer, [RoleName.TREASURER.value]):
        raise PermissionDeniedError("Only treasurers can hand out custody")

    cashier = await user_service.get_user(db, cashier_id)
    if cashier.role_name != RoleName.CASHIER.value:
        raise ExchangeDeskError(f"User {cashier_id} is not a cashier")

    wallet = await wallet_service.get_wallet(db, wallet_id)

    if previous_custody_id is not None and await db.get(CashCustody, previous_custody_id) is None:
        raise NotFoundError("Custody", previous_custody_id)

    currency_code = currency_code.upper()
    await wallet_service.adjust_balance(db, wallet.id, currency_code, -amount)

    custody = CashCustody(
        treasurer_id=treasurer.id,
        cashier_id=cashier.id,
        wallet_id=wallet.id,
        currency_code=currency_code,
        amount=amount,
        remaining_amount=amount,
        notes=notes,
        status=CustodyStatus.PENDING.value,
        is_returned=False,
        previous_custody_id=previous_custody_id,
    )
    db.add(custody)
    await db.flush()

    await notification_service.create_notification(
        db,
        user_id=cashier.id,
        title="Cash custody request",
        message=f"{treasurer.name} is handing you {amount} {currency_code} from {wallet.name}.",
        type=NotificationType.CUSTODY_REQUEST,
        reference_id=custody.id,
        requires_action=True,
        action_payload={
            "custody_id": str(custody.id),
            "amount": str(amount),
            "currency_code": currency_code,
            "wallet_id": str(wallet.id),
            "treasurer_id": str(treasurer.id),
        },
    )
    logger.info(
        "Custody %s: %s %s given by %s to %s", custody.id, amount, currency_code, treasurer.id, cashier.id
    )
    return custody


async def _require_cashier_of(db: AsyncSession, custody_id: uuid.UUID, actor: User) -> CashCustody:
    custody = await _load_custody(db, custody_id)
    if custody.cashier_id != actor.id:
        raise PermissionDeniedError("Only the receiving cashier can answer a custody request")
    return custody


async def approve_custody(db: AsyncSession, custody_id: uuid.UUID, actor: User) -> CashCustody:
    """Cashier accepts the cash: pending -> approved."""
    await _require_cashier_of(db, custody_id, actor)
    custody = await _transition(db, custody_id, CustodyStatus.PENDING, CustodyStatus.APPROVED)

    await notification_service.close_pending_requests(db, custody.id, NotificationType.CUSTODY_REQUEST)
    await notification_service.create_notification(
        db,
        user_id=custody.treasurer_id,
        title="Custody approved",
        message=f"{actor.name} accepted {custody.amount} {custody.currency_code}.",
        type=NotificationType.CUSTODY_APPROVAL,
        reference_id=custody.id,
    )
    logger.info("Custody %s approved by %s", custody.id, actor.id)
    return custody


async def reject_custody(
    db: AsyncSession,
    custody_id: uuid.UUID,
    actor: User,
    reason: str,
) -> CashCustody:
    """Cashier refuses the cash: pending -> rejected, amount back to the wallet."""
    current = await _require_cashier_of(db, custody_id, actor)
    rejection = f"Rejection reason: {reason}"
    notes = f"{current.notes}\n{rejection}" if current.notes else rejection

    custody = await _transition(
        db, custody_id, CustodyStatus.PENDING, CustodyStatus.REJECTED, notes=notes
    )
    await wallet_service.adjust_balance(db, custody.wallet_id, custody.currency_code, custody.amount)

    await notification_service.close_pending_requests(db, custody.id, NotificationType.CUSTODY_REQUEST)
    await notification_service.create_notification(
        db,
        user_id=custody.treasurer_id,
        title="Custody rejected",
        message=f"{actor.name} rejected {custody.amount} {custody.currency_code}: {reason}",
        type=NotificationType.CUSTODY_REJECTION,
        reference_id=custody.id,
    )
    logger.info("Custody %s rejected by %s", custody.id, actor.id)
    return custody


async def mark_custody_returned(db: AsyncSession, custody_id: uuid.UUID, actor: User) -> CashCustody:
    """Cash comes back to the treasury: approved -> returned, what remains credited back."""
    current = await _load_custody(db, custody_id)
    if actor.id not in (current.cashier_id, current.treasurer_id):
        raise PermissionDeniedError("Only the cashier or treasurer of this custody can return it")

    custody = await _transition(
        db, custody_id, CustodyStatus.APPROVED, CustodyStatus.RETURNED, is_returned=True
    )
    returned_amount = custody.remaining_amount
    if returned_amount > 0:
        await wallet_service.adjust_balance(db, custody.wallet_id, custody.currency_code, returned_amount)
        custody.remaining_amount = Decimal("0")
        await db.flush()

    other_party = custody.treasurer_id if actor.id == custody.cashier_id else custody.cashier_id
    await notification_service.create_notification(
        db,
        user_id=other_party,
        title="Custody returned",
        message=f"{returned_amount} {custody.currency_code} custody was returned to the treasury.",
        type=NotificationType.CUSTODY_RETURN,
        reference_id=custody.id,
    )
    logger.info("Custody %s returned by %s: %s %s", custody.id, actor.id, returned_amount, custody.currency_code)
    return custody


async def get_custody(db: AsyncSession, custody_id: uuid.UUID, user: User) -> CashCustody:
    """A custody record, visible to its two parties and to managers."""
    custody = await _load_custody(db, custody_id)
    if user.id not in (custody.cashier_id, custody.treasurer_id) and not has_any_role(
        user, [RoleName.MANAGER.value]
    ):
        raise PermissionDeniedError("You are not a party to this custody")
    return custody


async def list_custody(db: AsyncSession, user: User) -> dict[str, list[CashCustody]]:
    """Custody ``user`` gave (as treasurer) and received (as cashier), newest first."""
    result = await db.execute(
        select(CashCustody)
        .where(or_(CashCustody.treasurer_id == user.id, CashCustody.cashier_id == user.id))
        .order_by(CashCustody.created_at.desc())
    )
    records = list(result.scalars().all())
    return {
        "given": [r for r in records if r.treasurer_id == user.id],
        "received": [r for r in records if r.cashier_id == user.id],
    }


async def list_all_custody(db: AsyncSession) -> list[CashCustody]:
    result = await db.execute(select(CashCustody).order_by(CashCustody.created_at.desc()))
    return list(result.scalars().all())


async def list_cashiers(db: AsyncSession) -> list[User]:
    return await user_service.list_users_with_role(db, RoleName.CASHIER.value)


async def list_treasurers(db: AsyncSession) -> list[User]:
    return await user_service.list_users_with_role(db, RoleName.TREASURER.value)


async def get_cashier_holdings(db: AsyncSession, cashier_id: uuid.UUID, user: User) -> dict[str, Decimal]:
    """
    Cash a cashier currently holds per currency: what remains of approved custody.

    Visible to the cashier themselves, treasurers and managers.
    """
    if user.id != cashier_id and not has_any_role(user, [RoleName.TREASURER.value]):
        raise PermissionDeniedError("You can only see your own holdings")
    result = await db.execute(
        select(CashCustody.currency_code, func.sum(CashCustody.remaining_amount))
        .where(
            CashCustody.cashier_id == cashier_id,
            CashCustody.status == CustodyStatus.APPROVED.value,
            CashCustody.is_returned.is_(False),
        )
        .group_by(CashCustody.currency_code)
        .order_by(CashCustody.currency_code)
    )
    return {code: Decimal(str(total)) for code, total in result.all()}


async def _active_custody_rows(
    db: AsyncSession,
    cashier_id: uuid.UUID,
    wallet_id: uuid.UUID,
    currency_code: str,
    first_id: uuid.UUID | None = None,
) -> list[CashCustody]:
    """Approved custody a cashier holds against a wallet, ``first_id`` then oldest first, locked."""
    result = await db.execute(
        select(CashCustody)
        .where(
            CashCustody.cashier_id == cashier_id,
            CashCustody.wallet_id == wallet_id,
            CashCustody.currency_code == currency_code,
            CashCustody.status == CustodyStatus.APPROVED.value,
            CashCustody.is_returned.is_(False),
        )
        .order_by(CashCustody.created_at)
        .with_for_update()
        .execution_options(populate_existing=True)
    )
    # sorted() is stable: the oldest-first order survives behind first_id
    return sorted(result.scalars().all(), key=lambda row: row.id != first_id)


async def draw_custody(
    db: AsyncSession,
    cashier_id: uuid.UUID,
    wallet_id: uuid.UUID,
    currency_code: str,
    amount: Decimal,
    first_id: uuid.UUID | None = None,
) -> list[CashCustody]:
    """
    Take ``amount`` of ``currency_code`` out of the custody a cashier holds
    against ``wallet_id``.

    ``first_id`` is drawn first, then the oldest custody. A custody drawn
    down to zero is closed as returned: nothing of it is left to give back.

    Raises:
        InsufficientCustodyError: The cashier holds less than ``amount``.
            Nothing is changed.
    """
    currency_code = currency_code.upper()
    rows = await _active_custody_rows(db, cashier_id, wallet_id, currency_code, first_id)
    available = sum((row.remaining_amount for row in rows), Decimal("0"))
    if available < amount:
        logger.warning(
            "Custody draw of %s %s refused: cashier %s holds %s",
            amount, currency_code, cashier_id, available,
        )
        raise InsufficientCustodyError(cashier_id, wallet_id, currency_code, amount, available)

    left = amount
    drawn = []
    for row in rows:
        if left <= 0:
            break
        taken = min(row.remaining_amount, left)
        row.remaining_amount -= taken
        left -= taken
        if row.remaining_amount == 0:
            row.status = CustodyStatus.RETURNED.value
            row.is_returned = True
        drawn.append(row)
    await db.flush()
    logger.info("Cashier %s drew %s %s from custody", cashier_id, amount, currency_code)
    return drawn


async def credit_custody(
    db: AsyncSession,
    cashier_id: uuid.UUID,
    source: CashCustody,
    currency_code: str,
    amount: Decimal,
    notes: str | None = None,
) -> CashCustody:
    """
    Add ``amount`` of ``currency_code`` to the custody a cashier holds
    against ``source``'s wallet.

    An approved custody in that currency takes the credit, ``source`` itself
    when it matches. Otherwise a new approved custody is opened under the
    same treasurer and wallet, chained to ``source``, so it comes back to
    the treasury on return like any other.
    """
    currency_code = (await currency_service.get_currency_type(db, currency_code)).code
    rows = await _active_custody_rows(db, cashier_id, source.wallet_id, currency_code, source.id)
    if rows:
        custody = rows[0]
        custody.remaining_amount += amount
    else:
        custody = CashCustody(
            treasurer_id=source.treasurer_id,
            cashier_id=cashier_id,
            wallet_id=source.wallet_id,
            currency_code=currency_code,
            amount=amount,
            remaining_amount=amount,
            notes=notes,
            status=CustodyStatus.APPROVED.value,
            is_returned=False,
            previous_custody_id=source.id,
        )
        db.add(custody)
    await db.flush()
    logger.info("Cashier %s custody %s credited %s %s", cashier_id, custody.id, amount, currency_code)
    return custody
