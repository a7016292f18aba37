from typing import Optional

from app.core.enums import MessageType
from app.schemas.user import CamelModel


class ChatTarget(CamelModel):
    chat_with: Optional[str] = None


class MessageCreate(CamelModel):
    content: Optional[str] = None
    message_type: MessageType = MessageType.text
    chat_with: Optional[str] = None
    image_url: Optional[str] = None
