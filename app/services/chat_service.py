from __future__ import annotations

import logging
import uuid
from typing import List, Optional

from app.core.enums import ChatType, MessageType, Role
from app.core.errors import NotFound, ValidationFailed
from app.core.security import Principal
from app.models.chat import Chat
from app.repositories.admin_repository import AdminRepository
from app.repositories.chat_repository import ChatRepository
from app.repositories.complaint_repository import ComplaintRepository
from app.repositories.department_repository import DepartmentRepository
from app.services.chat_access import ChatAccess, derive_chat_access, unread_count
from app.services.participants import ParticipantDirectory, participant_ref
from app.utils.dates import utcnow

logger = logging.getLogger(__name__)

# which roles sit on each side of a chat
CHAT_SIDES = {
    ChatType.user_department: (Role.user, Role.department),
    ChatType.admin_department: (Role.admin, Role.department),
}


class ChatService:
    def __init__(
        self,
        chats: ChatRepository,
        complaints: ComplaintRepository,
        admins: AdminRepository,
        departments: DepartmentRepository,
        directory: ParticipantDirectory,
    ):
        self.chats = chats
        self.complaints = complaints
        self.admins = admins
        self.departments = departments
        self.directory = directory

    # -------------------------
    # Helpers
    # -------------------------
    async def _complaint(self, complaint_id: str) -> dict:
        complaint = await self.complaints.get(complaint_id)
        if not complaint:
            raise NotFound("Complaint not found")
        return complaint

    async def _access(self, principal: Principal, complaint: dict, chat_with: Optional[str]) -> ChatAccess:
        scope = None
        if principal.role == Role.department:
            scope = await self.departments.get(principal.id)
        return derive_chat_access(principal, complaint, chat_with, department_scope=scope)

    async def _slot(self, role: Role, complaint: dict, caller: Optional[Principal]) -> Optional[str]:
        if caller is not None and caller.role == role:
            return caller.id
        if role == Role.user:
            return complaint.get("userId")
        city, state = complaint.get("assignedCity"), complaint.get("assignedState")
        if role == Role.admin:
            if complaint.get("assignedAdmin"):
                return str(complaint["assignedAdmin"])
            admin = await self.admins.find_for_location(city, state)
            return str(admin["_id"]) if admin else None
        if complaint.get("assignedDepartment"):
            return str(complaint["assignedDepartment"])
        department = await self.departments.find_any_for_location(city, state)
        return str(department["_id"]) if department else None

    async def resolve_participants(
        self, complaint: dict, chat_type: ChatType, caller: Optional[Principal] = None
    ) -> List[dict]:
        participants = []
        for role in CHAT_SIDES[chat_type]:
            participant_id = await self._slot(role, complaint, caller)
            if participant_id:
                participants.append(participant_ref(participant_id, role))
        return participants

    async def _create(self, complaint: dict, chat_type: ChatType, participants: List[dict]) -> dict:
        doc = Chat(complaint_id=str(complaint["_id"]), chat_type=chat_type).to_document()
        doc["participants"] = participants
        chat = await self.chats.create(doc)
        logger.info("Chat %s ready for complaint %s", chat_type.value, complaint["_id"])
        return chat

    async def _view(self, chat: dict, reader_id: str) -> dict:
        return {
            **chat,
            "participants": await self.directory.describe(chat.get("participants", [])),
            "unreadCount": unread_count(chat, reader_id),
        }

    async def _join(self, chat: dict, principal: Principal) -> None:
        if not any(p["participantId"] == principal.id for p in chat.get("participants", [])):
            ref = participant_ref(principal.id, principal.role)
            await self.chats.add_participant(chat["_id"], ref)
            chat.setdefault("participants", []).append(ref)
        await self.chats.touch_participant(chat["_id"], principal.id)

    # -------------------------
    # Provisioning (side effect of approval / verification)
    # -------------------------
    async def ensure_chat(self, complaint: dict, chat_type: ChatType) -> Optional[dict]:
        existing = await self.chats.get(str(complaint["_id"]), chat_type.value)
        if existing:
            return existing
        participants = await self.resolve_participants(complaint, chat_type)
        if len(participants) < 2:
            logger.info(
                "Chat %s for complaint %s deferred, only %d participant(s) resolvable",
                chat_type.value, complaint["_id"], len(participants),
            )
            return None
        return await self._create(complaint, chat_type, participants)

    # -------------------------
    # Operations
    # -------------------------
    async def init(self, complaint_id: str, principal: Principal, chat_with: Optional[str] = None) -> dict:
        complaint = await self._complaint(complaint_id)
        access = await self._access(principal, complaint, chat_with)
        chat = await self.chats.get(complaint_id, access.chat_type.value)
        if chat is None:
            participants = await self.resolve_participants(complaint, access.chat_type, principal)
            chat = await self._create(complaint, access.chat_type, participants)
        await self._join(chat, principal)
        return await self._view(chat, principal.id)

    async def get(self, complaint_id: str, principal: Principal, chat_with: Optional[str] = None) -> dict:
        complaint = await self._complaint(complaint_id)
        access = await self._access(principal, complaint, chat_with)
        chat = await self.chats.get(complaint_id, access.chat_type.value)
        if chat is None:
            participants = await self.resolve_participants(complaint, access.chat_type, principal)
            if len(participants) < 2:
                raise NotFound("Chat not available yet, no counterpart could be found")
            chat = await self._create(complaint, access.chat_type, participants)
        await self._join(chat, principal)
        return await self._view(chat, principal.id)

    async def send_message(
        self,
        complaint_id: str,
        principal: Principal,
        content: Optional[str],
        message_type: MessageType = MessageType.text,
        chat_with: Optional[str] = None,
        image_url: Optional[str] = None,
    ) -> dict:
        content = (content or "").strip()
        if message_type == MessageType.image:
            if not image_url:
                raise ValidationFailed("Image is required for image messages")
        elif not content:
            raise ValidationFailed("Message content is required")

        complaint = await self._complaint(complaint_id)
        access = await self._access(principal, complaint, chat_with)
        chat = await self.chats.get(complaint_id, access.chat_type.value)
        if chat is None:
            raise NotFound("Chat not found. Please initialize the chat first")

        ref = participant_ref(principal.id, principal.role)
        message = {
            "messageId": uuid.uuid4().hex,
            "senderId": principal.id,
            "senderModel": ref["participantModel"],
            "senderRole": principal.role.value,
            "content": content or None,
            "imageUrl": image_url,
            "messageType": MessageType(message_type).value,
            "timestamp": utcnow(),
            "isRead": [],
        }
        await self._join(chat, principal)
        await self.chats.push_message(chat["_id"], message)
        return message

    async def mark_read(self, complaint_id: str, principal: Principal, chat_with: Optional[str] = None) -> dict:
        complaint = await self._complaint(complaint_id)
        access = await self._access(principal, complaint, chat_with)
        chat = await self.chats.get(complaint_id, access.chat_type.value)
        if chat is None:
            raise NotFound("Chat not found")

        pending = [
            i for i, m in enumerate(chat.get("messages", []))
            if m.get("senderId") != principal.id
            and not any(r.get("userId") == principal.id for r in m.get("isRead", []))
        ]
        marked = await self.chats.add_receipts(chat["_id"], pending, principal.id)
        await self.chats.touch_participant(chat["_id"], principal.id)
        return {"marked": marked, "unreadCount": 0}

    async def unread_counts(self, principal: Principal) -> dict:
        chats = await self.chats.list_for_participant(principal.id)
        per_chat = {}
        for chat in chats:
            per_chat[str(chat["_id"])] = {
                "complaintId": chat["complaintId"],
                "chatType": chat["chatType"],
                "unreadCount": unread_count(chat, principal.id),
            }
        return {
            "totalUnread": sum(c["unreadCount"] for c in per_chat.values()),
            "chats": per_chat,
        }
