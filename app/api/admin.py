from typing import Optional

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_services, out
from app.core.security import Principal, require_admin
from app.schemas.complaint import ApproveRequest, BlacklistRequest, RejectRequest, WarningRequest
from app.schemas.user import AdminLoginRequest
from app.services.registry import Services

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post("/login")
async def admin_login(body: AdminLoginRequest, services: Services = Depends(get_services)):
    return await services.auth.admin_login(body.admin_id, body.password)


# =========================
# Complaints in the admin's city
# =========================
@router.get("/complaints")
async def list_complaints(
    status: Optional[str] = Query(default=None),
    admin: Principal = Depends(require_admin),
    services: Services = Depends(get_services),
):
    return out(await services.complaints.list_for_admin(admin, status))


@router.get("/stats")
async def stats(admin: Principal = Depends(require_admin), services: Services = Depends(get_services)):
    return out(await services.complaints.admin_stats(admin))


@router.put("/complaints/{complaint_id}/approve")
async def approve(
    complaint_id: str,
    body: Optional[ApproveRequest] = None,
    admin: Principal = Depends(require_admin),
    services: Services = Depends(get_services),
):
    ctx = await services.lifecycle.approve(complaint_id, admin, comment=body.comment if body else None)
    return out({
        "message": "Complaint approved successfully",
        "complaint": ctx.complaint,
        "effects": ctx.outcomes,
    })


@router.put("/complaints/{complaint_id}/reject")
async def reject(
    complaint_id: str,
    body: RejectRequest,
    admin: Principal = Depends(require_admin),
    services: Services = Depends(get_services),
):
    ctx = await services.lifecycle.reject(complaint_id, admin, body.reason)
    return out({"message": "Complaint rejected", "complaint": ctx.complaint, "effects": ctx.outcomes})


# =========================
# Moderation
# =========================
@router.post("/give-warning/{user_id}")
async def give_warning(
    user_id: str,
    body: WarningRequest,
    admin: Principal = Depends(require_admin),
    services: Services = Depends(get_services),
):
    result = await services.lifecycle.give_warning(
        user_id, admin, body.reason, complaint_id=body.complaint_id, notes=body.notes
    )
    return {"message": "Warning issued", **result}


@router.post("/blacklist-user/{user_id}")
async def blacklist_user(
    user_id: str,
    body: BlacklistRequest,
    admin: Principal = Depends(require_admin),
    services: Services = Depends(get_services),
):
    result = await services.lifecycle.blacklist(user_id, admin, body.reason, notes=body.notes)
    return {"message": "User blacklisted", **result}


@router.get("/users/{user_id}")
async def user_detail(
    user_id: str,
    _: Principal = Depends(require_admin),
    services: Services = Depends(get_services),
):
    return out(await services.users.moderation_view(user_id))
