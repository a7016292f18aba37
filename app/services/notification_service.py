from __future__ import annotations

import logging
import math
from typing import Optional

from app.core.enums import ComplaintStatus, NotificationType
from app.models.notification import Notification
from app.repositories.notification_repository import NotificationRepository

logger = logging.getLogger(__name__)

_STATUS_TITLES = {
    ComplaintStatus.in_progress: "Complaint Approved",
    ComplaintStatus.resolved: "Complaint Resolved",
    ComplaintStatus.rejected: "Complaint Rejected",
    ComplaintStatus.rejected_by_department: "Complaint Rejected by Department",
    ComplaintStatus.verification_failed: "Complaint Verification Failed",
}

_STATUS_MESSAGES = {
    ComplaintStatus.in_progress: "Your complaint has been approved and is now being worked on.",
    ComplaintStatus.resolved: "Your complaint has been resolved.",
    ComplaintStatus.rejected: "Your complaint has been rejected.",
    ComplaintStatus.rejected_by_department: "Your complaint has been rejected by the assigned department.",
    ComplaintStatus.verification_failed: "We could not verify your complaint over the phone.",
}


def status_title(status: str) -> str:
    try:
        return _STATUS_TITLES.get(ComplaintStatus(status), "Complaint Status Updated")
    except ValueError:
        return "Complaint Status Updated"


def status_message(status: str, reason: Optional[str] = None) -> str:
    try:
        message = _STATUS_MESSAGES.get(ComplaintStatus(status))
    except ValueError:
        message = None
    message = message or f"Your complaint status has been updated to {status}."
    if reason:
        message = f"{message} Reason: {reason}"
    return message


class NotificationService:
    def __init__(self, repo: NotificationRepository, sms=None):
        self.repo = repo
        self.sms = sms

    async def create(
        self,
        user_id: str,
        type: NotificationType,
        title: str,
        message: str,
        complaint_id: Optional[str] = None,
    ) -> dict:
        doc = Notification(
            user_id=user_id, complaint_id=complaint_id, type=type, title=title, message=message
        ).to_document()
        return await self.repo.create(doc)

    async def notify_status(self, complaint: dict, status: str, reason: Optional[str] = None) -> dict:
        title = status_title(status)
        message = status_message(status, reason)
        notification = await self.create(
            complaint["userId"],
            NotificationType.status_update,
            title,
            message,
            complaint_id=str(complaint["_id"]),
        )
        if self.sms is not None and complaint.get("phone"):
            # SMS is best-effort; the in-app notification is the record
            try:
                await self.sms.send(complaint["phone"], f"{title}: {message}")
            except Exception as exc:
                logger.warning("Status SMS failed for complaint %s: %s", complaint["_id"], exc)
        return notification

    async def list(self, user_id: str, page: int = 1, limit: int = 20) -> dict:
        page = max(page, 1)
        limit = max(1, min(limit, 100))
        total = await self.repo.count(user_id)
        items = await self.repo.list(user_id, (page - 1) * limit, limit)
        return {
            "notifications": items,
            "pagination": {
                "page": page,
                "limit": limit,
                "total": total,
                "pages": math.ceil(total / limit) if total else 0,
            },
        }

    async def unread_count(self, user_id: str) -> int:
        return await self.repo.count(user_id, status="unread")

    async def mark_read(self, notification_id: str, user_id: str) -> bool:
        return await self.repo.mark_read(notification_id, user_id)

    async def mark_all_read(self, user_id: str) -> int:
        return await self.repo.mark_all_read(user_id)
