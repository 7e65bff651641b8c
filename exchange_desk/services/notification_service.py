"""
Notification service — per-user notifications and actionable requests.

Some notifications ask their recipient to act (a cashier approving a custody
hand-off). take_action dispatches through ACTION_HANDLERS, a registry keyed
by (notification type, action). Registering a new actionable notification
means adding its handler there; an unregistered pair is refused with
UnsupportedActionError.

Every created or changed notification is staged for real-time delivery and
published once the request's transaction commits.
"""

import json
import logging
import uuid
from collections.abc import Awaitable, Callable

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_desk import realtime
from exchange_desk.ids import is_valid_uuid
from exchange_desk.exceptions import (
    ExchangeDeskError,
    InvalidTransitionError,
    NotFoundError,
    PermissionDeniedError,
    UnsupportedActionError,
)
from exchange_desk.models.notification import Notification, NotificationType
from exchange_desk.models.user import User
from exchange_desk.schemas.notification import NotificationResponse

logger = logging.getLogger(__name__)

ActionHandler = Callable[[AsyncSession, Notification, User, dict], Awaitable[dict]]


def _serialize(notification: Notification) -> dict:
    return NotificationResponse.model_validate(notification).model_dump(mode="json")


def _parse_payload(action_payload) -> dict:
    if action_payload is None:
        return {}
    if isinstance(action_payload, str):
        try:
            parsed = json.loads(action_payload)
        except json.JSONDecodeError as exc:
            raise ExchangeDeskError(f"action_payload is not valid JSON: {exc.msg}") from exc
        if not isinstance(parsed, dict):
            raise ExchangeDeskError("action_payload must be a JSON object")
        return parsed
    if isinstance(action_payload, dict):
        return dict(action_payload)
    raise ExchangeDeskError("action_payload must be a mapping or a JSON string")


async def create_notification(
    db: AsyncSession,
    user_id: uuid.UUID,
    title: str,
    message: str,
    type: str,
    reference_id: uuid.UUID | None = None,
    requires_action: bool = False,
    action_payload: dict | str | None = None,
) -> Notification:
    """
    Create a notification for ``user_id``.

    ``action_payload`` may be a mapping or a JSON string holding an object.

    Raises:
        ExchangeDeskError: If a required field is empty or the payload is
                           not a JSON object.
    """
    if not user_id or not title or not message or not type:
        raise ExchangeDeskError("user_id, title, message and type are required")

    notification = Notification(
        user_id=user_id,
        title=title,
        message=message,
        type=type,
        reference_id=reference_id,
        requires_action=requires_action,
        is_read=False,
        action_taken=False,
        action_payload=_parse_payload(action_payload),
    )
    db.add(notification)
    await db.flush()

    realtime.stage_event(db, user_id, realtime.INSERT, _serialize(notification))
    logger.info("Notification %s (%s) created for user %s", notification.id, type, user_id)
    return notification


async def list_notifications(
    db: AsyncSession,
    user: User,
    unread_only: bool = False,
    limit: int = 100,
) -> list[Notification]:
    query = (
        select(Notification)
        .where(Notification.user_id == user.id)
        .order_by(Notification.created_at.desc())
        .limit(limit)
    )
    if unread_only:
        query = query.where(Notification.is_read.is_(False))
    result = await db.execute(query)
    return list(result.scalars().all())


async def count_unread(db: AsyncSession, user: User) -> int:
    count = await db.scalar(
        select(func.count())
        .select_from(Notification)
        .where(Notification.user_id == user.id, Notification.is_read.is_(False))
    )
    return count or 0


async def _get_own_notification(
    db: AsyncSession,
    notification_id: uuid.UUID,
    user: User,
) -> Notification:
    notification = await db.get(Notification, notification_id)
    if notification is None:
        raise NotFoundError("Notification", notification_id)
    if notification.user_id != user.id:
        raise PermissionDeniedError("This notification belongs to another user")
    return notification


async def mark_as_read(
    db: AsyncSession,
    notification_id: uuid.UUID,
    user: User,
) -> Notification:
    notification = await _get_own_notification(db, notification_id, user)
    if not notification.is_read:
        notification.is_read = True
        await db.flush()
        realtime.stage_event(db, user.id, realtime.UPDATE, _serialize(notification))
    return notification


async def mark_all_as_read(db: AsyncSession, user: User) -> int:
    """Mark every unread notification of ``user`` read; returns how many changed."""
    unread = await list_notifications(db, user, unread_only=True, limit=10_000)
    for notification in unread:
        notification.is_read = True
    await db.flush()
    for notification in unread:
        realtime.stage_event(db, user.id, realtime.UPDATE, _serialize(notification))
    return len(unread)


async def mark_action_taken(db: AsyncSession, notification: Notification) -> Notification:
    """Close an actionable notification; it is also marked read."""
    notification.action_taken = True
    notification.is_read = True
    await db.flush()
    realtime.stage_event(db, notification.user_id, realtime.UPDATE, _serialize(notification))
    return notification


async def close_pending_requests(
    db: AsyncSession,
    reference_id: uuid.UUID,
    type: str,
) -> None:
    """Mark every still-open actionable notification about ``reference_id`` actioned."""
    result = await db.execute(
        select(Notification).where(
            Notification.reference_id == reference_id,
            Notification.type == type,
            Notification.requires_action.is_(True),
            Notification.action_taken.is_(False),
        )
    )
    for notification in result.scalars().all():
        await mark_action_taken(db, notification)


# ---------------------------------------------------------------------------
# Action dispatch
# ---------------------------------------------------------------------------

def _custody_id(notification: Notification) -> uuid.UUID:
    """The custody a request notification is about, falling back to its payload."""
    if notification.reference_id is not None:
        return notification.reference_id
    custody_id = _parse_payload(notification.action_payload).get("custody_id")
    if not is_valid_uuid(custody_id):
        raise ExchangeDeskError(
            f"Notification {notification.id} does not name a valid custody_id"
        )
    return uuid.UUID(custody_id)


async def _approve_custody_request(
    db: AsyncSession, notification: Notification, user: User, data: dict
) -> dict:
    from exchange_desk.services import custody_service

    custody = await custody_service.approve_custody(db, _custody_id(notification), user)
    return {"custody_id": str(custody.id), "status": custody.status}


async def _reject_custody_request(
    db: AsyncSession, notification: Notification, user: User, data: dict
) -> dict:
    from exchange_desk.services import custody_service

    reason = (data or {}).get("reason") or "No reason given"
    custody = await custody_service.reject_custody(db, _custody_id(notification), user, reason)
    return {"custody_id": str(custody.id), "status": custody.status}


ACTION_HANDLERS: dict[tuple[str, str], ActionHandler] = {
    (NotificationType.CUSTODY_REQUEST, "approve"): _approve_custody_request,
    (NotificationType.CUSTODY_REQUEST, "reject"): _reject_custody_request,
}


async def take_action(
    db: AsyncSession,
    notification_id: uuid.UUID,
    user: User,
    action: str,
    data: dict | None = None,
) -> tuple[Notification, dict]:
    """
    Perform ``action`` on an actionable notification of ``user``.

    Returns:
        Tuple of (updated notification, handler result).

    Raises:
        NotFoundError / PermissionDeniedError: Unknown or someone else's notification.
        ExchangeDeskError: The notification doesn't require action.
        InvalidTransitionError: Action was already taken.
        UnsupportedActionError: No handler for (type, action).
    """
    notification = await _get_own_notification(db, notification_id, user)

    if not notification.requires_action:
        raise ExchangeDeskError(f"Notification {notification_id} does not require an action")
    if notification.action_taken:
        raise InvalidTransitionError("Notification", notification_id, "awaiting action", "action taken")

    handler = ACTION_HANDLERS.get((notification.type, action))
    if handler is None:
        logger.warning("Unsupported action %s on %s notification %s", action, notification.type, notification_id)
        raise UnsupportedActionError(notification.type, action)

    result = await handler(db, notification, user, data or {})
    if not notification.action_taken:
        await mark_action_taken(db, notification)
    logger.info("Action %s taken on notification %s by %s", action, notification_id, user.id)
    return notification, result
