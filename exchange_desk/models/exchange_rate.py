"""
ExchangeRate and ManagerPrice models.

ExchangeRate holds one row per currency with its value against the two base
currencies (USD and LYD). Cross rates are derived through USD by
``rate_calculator``.

ManagerPrice is a single row: the desk's posted buy and sell price, edited
by a manager and shown to cashiers.
"""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Integer, Numeric
from sqlalchemy.orm import Mapped, mapped_column

from exchange_desk.database import Base


class ExchangeRate(Base):
    __tablename__ = "exchange_rates"

    currency_code: Mapped[str] = mapped_column(
        ForeignKey("currency_types.code"),
        primary_key=True,
    )

    # USD per one unit of this currency
    rate_to_usd: Mapped[Decimal] = mapped_column(
        Numeric(18, 6),
        nullable=False,
    )

    # LYD per one unit of this currency
    rate_to_lyd: Mapped[Decimal] = mapped_column(
        Numeric(18, 6),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


class ManagerPrice(Base):
    __tablename__ = "manager_prices"

    id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
    )

    buy_price: Mapped[Decimal] = mapped_column(
        Numeric(18, 6),
        nullable=False,
    )

    sell_price: Mapped[Decimal] = mapped_column(
        Numeric(18, 6),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
