"""
CurrencyType model — the catalogue of currencies the desk trades.

Codes are stored upper-case (USD, LYD, EUR, USDT). The code is the primary
key so wallet balances, custody records and trades can reference it directly.
"""

from datetime import datetime, timezone

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from exchange_desk.database import Base


class CurrencyType(Base):
    __tablename__ = "currency_types"

    code: Mapped[str] = mapped_column(
        String(10),
        primary_key=True,
    )

    name: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
    )

    # Display symbol; defaults to the code when none is given
    symbol: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
