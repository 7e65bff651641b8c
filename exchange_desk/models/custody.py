"""
CashCustody model — cash handed from a treasurer to a cashier.

Lifecycle (status column):

    pending ──approve──> approved ──return──> returned
       │
       └────reject────> rejected

  - give:    treasurer creates the row as ``pending``; the amount leaves the
             wallet at the same moment
  - approve: the cashier confirms receipt
  - reject:  the cashier refuses; the amount goes back into the wallet
  - return:  the cash comes back; ``is_returned`` flips to True and what is
             left of it goes back into the wallet

``amount`` is what the treasurer handed over and never changes.
``remaining_amount`` is what the cashier still holds of it: trades made
against custody draw it down or add to it (see transaction_service), and a
return credits only that much back. A custody traded down to zero is closed
as returned.

Every transition is a conditional UPDATE on the expected status (see
custody_service), so two concurrent approvals cannot both succeed.

``previous_custody_id`` links a re-issued custody to the one it replaces,
forming a reversal chain.
"""

import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Boolean, DateTime, ForeignKey, Numeric, Text, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from exchange_desk.database import Base


class CustodyStatus(str, enum.Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    RETURNED = "returned"


class CashCustody(Base):
    __tablename__ = "cash_custody"

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_cash_custody_positive_amount"),
        CheckConstraint("remaining_amount >= 0", name="ck_cash_custody_non_negative_remaining"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    treasurer_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    cashier_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    wallet_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("wallets.id"),
        nullable=False,
        index=True,
    )

    currency_code: Mapped[str] = mapped_column(
        ForeignKey("currency_types.code"),
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(
        Numeric(18, 4),
        nullable=False,
    )

    # Still out with the cashier
    remaining_amount: Mapped[Decimal] = mapped_column(
        Numeric(18, 4),
        nullable=False,
    )

    notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=CustodyStatus.PENDING.value,
        index=True,
    )

    is_returned: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    previous_custody_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("cash_custody.id"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
