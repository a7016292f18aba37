from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import chat_rate_limit, get_services, out
from app.core.security import Principal, get_principal
from app.schemas.chat import ChatTarget, MessageCreate
from app.services.registry import Services

router = APIRouter(prefix="/chat", tags=["Chat"])


@router.get("/unread-counts")
async def unread_counts(principal: Principal = Depends(get_principal), services: Services = Depends(get_services)):
    return out(await services.chat.unread_counts(principal))


@router.post("/init/{complaint_id}")
async def init_chat(
    complaint_id: str,
    body: Optional[ChatTarget] = None,
    principal: Principal = Depends(chat_rate_limit),
    services: Services = Depends(get_services),
):
    return out(await services.chat.init(complaint_id, principal, body.chat_with if body else None))


@router.get("/{complaint_id}")
async def get_chat(
    complaint_id: str,
    chat_with: Optional[str] = Query(default=None, alias="chatWith"),
    principal: Principal = Depends(chat_rate_limit),
    services: Services = Depends(get_services),
):
    return out(await services.chat.get(complaint_id, principal, chat_with))


@router.post("/{complaint_id}/message")
async def send_message(
    complaint_id: str,
    body: MessageCreate,
    principal: Principal = Depends(chat_rate_limit),
    services: Services = Depends(get_services),
):
    message = await services.chat.send_message(
        complaint_id,
        principal,
        body.content,
        message_type=body.message_type,
        chat_with=body.chat_with,
        image_url=body.image_url,
    )
    return out({"message": "Message sent", "data": message})


@router.post("/{complaint_id}/read")
async def mark_read(
    complaint_id: str,
    body: Optional[ChatTarget] = None,
    principal: Principal = Depends(chat_rate_limit),
    services: Services = Depends(get_services),
):
    return await services.chat.mark_read(complaint_id, principal, body.chat_with if body else None)
