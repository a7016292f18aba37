from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from app.core.enums import NotificationStatus, NotificationType
from app.models.common import DocumentModel
from app.utils.dates import utcnow


class Notification(DocumentModel):
    user_id: str
    complaint_id: Optional[str] = None
    type: NotificationType
    title: str
    message: str
    status: NotificationStatus = NotificationStatus.unread
    created_at: datetime = Field(default_factory=utcnow)
    read_at: Optional[datetime] = None
