from fastapi import APIRouter, Depends, Query

from app.api.deps import get_services, out
from app.core.errors import NotFound
from app.core.security import Principal, require_user
from app.services.registry import Services

router = APIRouter(prefix="/notifications", tags=["Notifications"])


@router.get("")
async def list_notifications(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=20, ge=1, le=100),
    user: Principal = Depends(require_user),
    services: Services = Depends(get_services),
):
    return out(await services.notifications.list(user.id, page=page, limit=limit))


@router.get("/unread-count")
async def unread_count(user: Principal = Depends(require_user), services: Services = Depends(get_services)):
    return {"unreadCount": await services.notifications.unread_count(user.id)}


@router.put("/read-all")
async def read_all(user: Principal = Depends(require_user), services: Services = Depends(get_services)):
    return {"updated": await services.notifications.mark_all_read(user.id)}


@router.put("/{notification_id}/read")
async def read_one(
    notification_id: str,
    user: Principal = Depends(require_user),
    services: Services = Depends(get_services),
):
    if not await services.notifications.mark_read(notification_id, user.id):
        raise NotFound("Notification not found")
    return {"ok": True}
