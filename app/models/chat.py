from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field

from app.core.enums import ChatType, MessageType, ParticipantModel, Role
from app.models.common import DocumentModel
from app.utils.dates import utcnow


class Participant(DocumentModel):
    """Tagged reference into users/admins/departments."""

    participant_id: str
    participant_model: ParticipantModel
    participant_role: Role
    last_seen_at: Optional[datetime] = None


class ReadReceipt(DocumentModel):
    user_id: str
    read_at: datetime = Field(default_factory=utcnow)


class ChatMessage(DocumentModel):
    message_id: str
    sender_id: str
    sender_model: ParticipantModel
    sender_role: Role
    content: Optional[str] = None
    image_url: Optional[str] = None
    message_type: MessageType = MessageType.text
    timestamp: datetime = Field(default_factory=utcnow)
    is_read: List[ReadReceipt] = Field(default_factory=list)


class Chat(DocumentModel):
    complaint_id: str
    chat_type: ChatType
    participants: List[Participant] = Field(default_factory=list)
    messages: List[ChatMessage] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    last_activity: datetime = Field(default_factory=utcnow)
