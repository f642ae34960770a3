"""Notification Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict

from agora_stage.models import NotificationType


class NotificationResponse(BaseModel):
    """A single notification as shown in the bell dropdown."""

    id: int
    type: NotificationType
    title: str
    content: str
    question_id: int | None
    answer_id: int | None
    community_id: int | None
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationListResponse(BaseModel):
    """One page of notifications."""

    items: list[NotificationResponse]
    has_more: bool


class UnreadCountResponse(BaseModel):
    """Unread notification badge value."""

    count: int
