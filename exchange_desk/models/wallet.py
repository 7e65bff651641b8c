"""
Wallet and WalletCurrency models — the multi-currency balance containers.

A Wallet is a named container; its balances live one row per currency in
``wallet_currencies``. Treasury wallets (``is_treasury``) hold the cash a
treasurer hands out as custody.

Balance management:
  Balances are Decimal (Numeric(18, 4)). Every change goes through
  ``wallet_service.adjust_balance``, which locks the row, checks the result
  is not negative and raises InsufficientFundsError otherwise. A CHECK
  constraint at the database level is the final safety net.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import (
    String,
    Boolean,
    DateTime,
    ForeignKey,
    Numeric,
    CheckConstraint,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from exchange_desk.database import Base


class Wallet(Base):
    __tablename__ = "wallets"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    is_treasury: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        nullable=False,
    )

    # The treasurer a treasury wallet belongs to (NULL for shared wallets)
    owner_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("users.id"),
        nullable=True,
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

    # Always loaded with the wallet: the balances are what every caller wants
    balances: Mapped[list["WalletCurrency"]] = relationship(
        back_populates="wallet",
        lazy="selectin",
        cascade="all, delete-orphan",
        order_by="WalletCurrency.currency_code",
    )

    @property
    def currencies(self) -> dict[str, Decimal]:
        """Currency code -> balance mapping."""
        return {row.currency_code: row.balance for row in self.balances}


class WalletCurrency(Base):
    __tablename__ = "wallet_currencies"

    __table_args__ = (
        CheckConstraint("balance >= 0", name="ck_wallet_currencies_non_negative_balance"),
        UniqueConstraint("wallet_id", "currency_code", name="uq_wallet_currencies_wallet_currency"),
    )

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    wallet_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("wallets.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    currency_code: Mapped[str] = mapped_column(
        ForeignKey("currency_types.code"),
        nullable=False,
    )

    balance: Mapped[Decimal] = mapped_column(
        Numeric(18, 4),
        nullable=False,
        default=Decimal("0"),
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )

    wallet: Mapped["Wallet"] = relationship(back_populates="balances")
