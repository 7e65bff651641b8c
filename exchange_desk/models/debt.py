"""
Debt model — an IOU between the desk and an outside person.

Direction is carried by ``is_owed``:
  - True:  the desk owes ``person_name`` (money came into the wallet)
  - False: ``person_name`` owes the desk (money left the wallet)

The wallet effect is applied when the debt is created and reversed when it
is paid or deleted (see debt_service).
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, Boolean, DateTime, ForeignKey, Numeric, Text, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from exchange_desk.database import Base


class Debt(Base):
    __tablename__ = "debts"

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_debts_positive_amount"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # The user who recorded the debt
    created_by: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    person_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
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

    notes: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
    )

    is_owed: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
    )

    is_paid: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
