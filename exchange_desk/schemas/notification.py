"""Pydantic schemas for notifications and their actions."""

import uuid
from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field


class NotificationResponse(BaseModel):
    id: uuid.UUID
    user_id: uuid.UUID
    title: str
    message: str
    type: str
    reference_id: uuid.UUID | None
    requires_action: bool
    is_read: bool
    action_taken: bool
    action_payload: dict[str, Any]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class NotificationActionRequest(BaseModel):
    """Request body for POST /notifications/{id}/action."""
    action: str = Field(min_length=1, max_length=50)
    data: dict[str, Any] = Field(default_factory=dict)


class NotificationActionResponse(BaseModel):
    notification: NotificationResponse
    result: dict[str, Any]


class UnreadCountResponse(BaseModel):
    unread: int


class MarkAllReadResponse(BaseModel):
    updated: int
