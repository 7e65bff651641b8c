"""
Notifications router.

Endpoints:
  GET  /notifications                 — Own notifications, newest first
  GET  /notifications/unread-count    — Number of unread notifications
  POST /notifications/read-all        — Mark every notification read
  POST /notifications/{id}/read       — Mark one notification read
  POST /notifications/{id}/action     — Act on an actionable notification
  WS   /notifications/ws?token=...    — Live INSERT / UPDATE events

Browsers cannot set an Authorization header on a WebSocket, so the feed
takes the access token as a query parameter.
"""

import asyncio
import logging
import uuid

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from exchange_desk.database import get_db
from exchange_desk.dependencies import get_current_user, user_id_from_token
from exchange_desk.ids import generate_uuid
from exchange_desk.models.user import User
from exchange_desk.realtime import broker
from exchange_desk.schemas.notification import (
    MarkAllReadResponse,
    NotificationActionRequest,
    NotificationActionResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from exchange_desk.services import notification_service

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=list[NotificationResponse], summary="List notifications")
async def list_notifications(
    unread_only: bool = Query(False),
    limit: int = Query(100, ge=1, le=500),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await notification_service.list_notifications(db, user, unread_only=unread_only, limit=limit)


@router.get("/unread-count", response_model=UnreadCountResponse, summary="Unread count")
async def unread_count(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return UnreadCountResponse(unread=await notification_service.count_unread(db, user))


@router.post("/read-all", response_model=MarkAllReadResponse, summary="Mark all read")
async def mark_all_read(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return MarkAllReadResponse(updated=await notification_service.mark_all_as_read(db, user))


@router.post("/{notification_id}/read", response_model=NotificationResponse, summary="Mark read")
async def mark_read(
    notification_id: uuid.UUID,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return await notification_service.mark_as_read(db, notification_id, user)


@router.post(
    "/{notification_id}/action",
    response_model=NotificationActionResponse,
    summary="Act on a notification",
)
async def take_action(
    notification_id: uuid.UUID,
    request: NotificationActionRequest,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Perform an action such as ``approve`` or ``reject`` on an actionable
    notification. ``data`` carries action arguments (``reason`` for reject).
    """
    notification, result = await notification_service.take_action(
        db, notification_id, user, request.action, request.data
    )
    return NotificationActionResponse(
        notification=NotificationResponse.model_validate(notification),
        result=result,
    )


@router.websocket("/ws")
async def notification_feed(websocket: WebSocket, token: str = Query(...)):
    user_id = user_id_from_token(token)
    if user_id is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    connection_id = generate_uuid()
    # Subscribed before the handshake completes: nothing committed after it is missed
    queue = broker.subscribe(user_id)
    try:
        await websocket.accept()
        logger.info("Notification feed %s opened for user %s", connection_id, user_id)
        while True:
            receive = asyncio.ensure_future(websocket.receive_text())
            deliver = asyncio.ensure_future(queue.get())
            done, pending = await asyncio.wait(
                {receive, deliver}, return_when=asyncio.FIRST_COMPLETED
            )
            for task in pending:
                task.cancel()
            if deliver in done:
                await websocket.send_json(deliver.result())
            if receive in done:
                # Client messages carry nothing; reading them detects disconnects
                receive.result()
    except WebSocketDisconnect:
        pass
    finally:
        broker.unsubscribe(user_id, queue)
        logger.info("Notification feed %s closed for user %s", connection_id, user_id)
