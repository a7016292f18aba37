from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from app.core.enums import ChatType, ComplaintStatus, Role
from app.core.errors import ChatUnavailable, PermissionDenied
from app.core.security import Principal


@dataclass(frozen=True)
class ChatAccess:
    chat_type: ChatType
    principal: Principal


def _same(a: Optional[str], b: Optional[str]) -> bool:
    return bool(a) and bool(b) and a.strip().lower() == b.strip().lower()


def _in_scope(complaint: dict, city: Optional[str], state: Optional[str]) -> bool:
    return _same(complaint.get("assignedCity"), city) and _same(complaint.get("assignedState"), state)


def derive_chat_access(
    principal: Principal,
    complaint: dict,
    chat_with: Optional[str] = None,
    department_scope: Optional[dict] = None,
) -> ChatAccess:
    """
    Which chat, if any, `principal` may use on `complaint`.

    `department_scope` is the caller's own department document and is
    only consulted for department callers.
    """
    if complaint.get("status") != ComplaintStatus.in_progress.value:
        raise ChatUnavailable()

    if principal.role == Role.user:
        if str(complaint.get("userId")) != principal.id:
            raise PermissionDenied("You can only chat about your own complaints")
        return ChatAccess(ChatType.user_department, principal)

    if principal.role == Role.admin:
        assigned = str(complaint.get("assignedAdmin") or "") == principal.id
        if not assigned and not _in_scope(complaint, principal.city, principal.state):
            raise PermissionDenied("Complaint is outside your city")
        return ChatAccess(ChatType.admin_department, principal)

    if principal.role == Role.department:
        assigned = str(complaint.get("assignedDepartment") or "") == principal.id
        scope = department_scope or {}
        if not assigned and not _in_scope(complaint, scope.get("assignedCity"), scope.get("assignedState")):
            raise PermissionDenied("Complaint is not assigned to your department")
        chat_type = ChatType.admin_department if chat_with == "admin" else ChatType.user_department
        return ChatAccess(chat_type, principal)

    raise PermissionDenied()


def unread_count(chat: dict, reader_id: str) -> int:
    """Messages from others without a read receipt from `reader_id`."""
    count = 0
    for message in chat.get("messages", []):
        if message.get("senderId") == reader_id:
            continue
        if any(r.get("userId") == reader_id for r in message.get("isRead", [])):
            continue
        count += 1
    return count
