"""Notification Pydantic schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, ConfigDict

from orbit_social.models.notification import NotificationType
from orbit_social.schemas.common import Pagination


class NotificationResponse(BaseModel):
    """A single notification."""

    id: uuid.UUID
    type: NotificationType
    content: str
    is_read: bool
    user_id: uuid.UUID
    post_id: uuid.UUID | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class NotificationListResponse(BaseModel):
    """Page of notifications plus the caller's unread total."""

    notifications: list[NotificationResponse]
    unread_count: int
    pagination: Pagination
