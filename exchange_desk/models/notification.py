"""
Notification model — an event addressed to one user.

Notifications are created alongside custody events. Some require the
recipient to act (``requires_action``); acting flips ``action_taken`` and
``is_read``. They are never deleted in normal flow.

``action_payload`` is a JSON object with whatever the action handler needs
(for custody requests: the custody id, amount and currency). The column
always exists; an absent payload is stored as an empty object.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import String, Boolean, DateTime, ForeignKey, JSON, Text
from sqlalchemy.orm import Mapped, mapped_column

from exchange_desk.database import Base


class NotificationType:
    """Type tags used by the custody workflow."""
    CUSTODY_REQUEST = "custody_request"
    CUSTODY_APPROVAL = "custody_approval"
    CUSTODY_REJECTION = "custody_rejection"
    CUSTODY_RETURN = "custody_return"


class Notification(Base):
    __tablename__ = "notifications"

    id: Mapped[uuid.UUID] = mapped_column(
        primary_key=True,
        default=uuid.uuid4,
    )

    # Recipient
    user_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("users.id"),
        nullable=False,
        index=True,
    )

    title: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )

    message: Mapped[str] = mapped_column(
        Text,
        nullable=False,
    )

    type: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
    )

    # The row this notification is about (e.g. a custody id)
    reference_id: Mapped[uuid.UUID | None] = mapped_column(
        nullable=True,
        index=True,
    )

    requires_action: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    is_read: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    action_taken: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
    )

    action_payload: Mapped[dict] = mapped_column(
        JSON,
        nullable=False,
        default=dict,
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
