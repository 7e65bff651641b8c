"""
User model — the login identity and its role.

Role representation:
  ``role_id`` is a foreign key to ``roles`` and is the source of truth.
  ``role_name`` is a denormalized copy of the role's name so that guards and
  listings don't need a join. The two are only ever written together by
  ``role_service.apply_role`` — nothing else assigns either column.

The password is stored as an Argon2id hash, never in plaintext.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Boolean, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column

from exchange_desk.database import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # Login identifier, unique and indexed
    email: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        nullable=False,
        index=True,
    )

    name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    phone: Mapped[str | None] = mapped_column(
        String(30),
        nullable=True,
    )

    hashed_password: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )

    role_id: Mapped[uuid.UUID | None] = mapped_column(
        ForeignKey("roles.id"),
        nullable=True,
        index=True,
    )

    # Cached label of the role above (see module docstring)
    role_name: Mapped[str | None] = mapped_column(
        String(50),
        nullable=True,
    )

    # Soft-disable: deactivated users can't log in but their records are preserved
    is_active: Mapped[bool] = mapped_column(
        Boolean,
        default=True,
        nullable=False,
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
