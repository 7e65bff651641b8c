"""
Role model — a named permission bundle.

Roles are rows, not hard-coded strings on the user: a user points at one
role through ``users.role_id``. The four built-in roles are seeded by the
``seed roles and currency types`` Alembic revision:

  - manager:   administers users, roles, wallets, rates and prices;
               passes every role check
  - treasurer: hands cash custody to cashiers and takes it back
  - cashier:   receives custody and executes buy/sell trades
  - validator: reviews recorded trades
"""

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import String, DateTime
from sqlalchemy.orm import Mapped, mapped_column

from exchange_desk.database import Base


class RoleName(str, enum.Enum):
    """Names of the built-in roles. Inherits from str so it compares to column values."""
    MANAGER = "manager"
    TREASURER = "treasurer"
    CASHIER = "cashier"
    VALIDATOR = "validator"


class Role(Base):
    __tablename__ = "roles"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    name: Mapped[str] = mapped_column(
        String(50),
        unique=True,
        nullable=False,
    )

    description: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
