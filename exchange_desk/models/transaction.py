"""
Transaction model — every trade and cash movement recorded by the desk.

Types:
  - buy:        the desk receives ``amount`` of ``currency_code`` from a
                client and pays ``total_amount`` of ``exchange_currency_code``
  - sell:       the desk gives ``amount`` of ``currency_code`` and receives
                ``total_amount`` of ``exchange_currency_code``
  - withdrawal: cash taken out of a wallet (``reason`` says why)
  - deposit:    cash put into a wallet

``exchange_rate`` is always ``total_amount / amount`` for trades, i.e. units
of the exchange currency per unit of the traded currency.

``wallet_id`` is NULL for client-to-client trades that touch no wallet.
``reference_custody_id`` attributes a trade to the custody the cashier was
working from; the custody analysis reads trades through it.
"""

import enum
import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import String, DateTime, ForeignKey, Numeric, CheckConstraint
from sqlalchemy.orm import Mapped, mapped_column

from exchange_desk.database import Base


class TransactionType(str, enum.Enum):
    BUY = "buy"
    SELL = "sell"
    WITHDRAWAL = "withdrawal"
    DEPOSIT = "deposit"


class Transaction(Base):
    __tablename__ = "transactions"

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_transactions_positive_amount"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        index=True,
    )

    wallet_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("wallets.id"),
        nullable=True,
        index=True,
    )

    currency_code: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
    )

    amount: Mapped[Decimal] = mapped_column(
        Numeric(18, 4),
        nullable=False,
    )

    # Trade-only columns; NULL for withdrawals and deposits
    exchange_currency_code: Mapped[str | None] = mapped_column(
        String(10),
        nullable=True,
    )
    exchange_rate: Mapped[Decimal | None] = mapped_column(
        Numeric(18, 6),
        nullable=True,
    )
    total_amount: Mapped[Decimal | None] = mapped_column(
        Numeric(18, 4),
        nullable=True,
    )

    # Who recorded it
    cashier_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
        index=True,
    )

    client_name: Mapped[str | None] = mapped_column(
        String(200),
        nullable=True,
    )

    # Display labels for where the money came from and went to
    source: Mapped[str | None] = mapped_column(
        String(200),
        nullable=True,
    )
    destination: Mapped[str | None] = mapped_column(
        String(200),
        nullable=True,
    )

    reason: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    reference_custody_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("cash_custody.id"),
        nullable=True,
        index=True,
    )

    # Indexed for "latest N" queries
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        index=True,
    )
