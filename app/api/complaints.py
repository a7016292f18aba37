from typing import Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status

from app.api.deps import get_services, out
from app.core.errors import NotFound
from app.core.security import Principal, get_principal, require_user
from app.schemas.complaint import CommentCreate
from app.services.registry import Services
from app.utils.uploads import AUDIO_TYPES, IMAGE_TYPES, save_upload

router = APIRouter(prefix="/complaints", tags=["Complaints"])


# =========================
# Create Complaint
# =========================
@router.post("", status_code=status.HTTP_201_CREATED)
async def create_complaint(
    description: Optional[str] = Form(default=None),
    lat: Optional[float] = Form(default=None),
    lon: Optional[float] = Form(default=None),
    phone: Optional[str] = Form(default=None),
    image: Optional[UploadFile] = File(default=None),
    audio: Optional[UploadFile] = File(default=None),
    user: Principal = Depends(require_user),
    services: Services = Depends(get_services),
):
    image_path = await save_upload(image, "complaint", IMAGE_TYPES)
    audio_path = await save_upload(audio, "complaint-audio", AUDIO_TYPES)
    result = await services.complaints.submit(
        user, description, lat, lon, phone, image_path, audio_path=audio_path
    )
    return out({"message": "Complaint submitted successfully", **result})


# =========================
# Citizen lists
# =========================
@router.get("")
async def my_complaints(user: Principal = Depends(require_user), services: Services = Depends(get_services)):
    return out(await services.complaints.list_own(user.id))


@router.get("/open")
async def open_complaints(user: Principal = Depends(require_user), services: Services = Depends(get_services)):
    return out(await services.complaints.list_open(user.id))


@router.get("/closed")
async def closed_complaints(user: Principal = Depends(require_user), services: Services = Depends(get_services)):
    return out(await services.complaints.list_closed(user.id))


@router.get("/resolved")
async def resolved_complaints(user: Principal = Depends(require_user), services: Services = Depends(get_services)):
    return out(await services.complaints.list_resolved(user.id))


@router.get("/explore")
async def explore(
    limit: int = Query(default=50, ge=1, le=200),
    skip: int = Query(default=0, ge=0),
    _: Principal = Depends(get_principal),
    services: Services = Depends(get_services),
):
    return out(await services.complaints.explore(limit=limit, skip=skip))


# =========================
# Community
# =========================
@router.get("/community")
async def community(
    sort_by: str = Query(default="latest", alias="sortBy"),
    vote_filter: str = Query(default="all", alias="voteFilter"),
    location_filter: str = Query(default="all", alias="locationFilter"),
    min_upvotes: Optional[int] = Query(default=None, alias="minUpvotes", ge=0),
    min_downvotes: Optional[int] = Query(default=None, alias="minDownvotes", ge=0),
    principal: Principal = Depends(get_principal),
    services: Services = Depends(get_services),
):
    return out(await services.community.feed(
        principal,
        sort_by=sort_by,
        vote_filter=vote_filter,
        location_filter=location_filter,
        min_upvotes=min_upvotes,
        min_downvotes=min_downvotes,
    ))


@router.get("/verification-status/{complaint_id}")
async def verification_status(
    complaint_id: str,
    principal: Principal = Depends(get_principal),
    services: Services = Depends(get_services),
):
    await services.complaints.get_for(complaint_id, principal)
    result = await services.phone.status(complaint_id)
    if result is None:
        raise NotFound("Complaint not found")
    return out(result)


@router.get("/{complaint_id}")
async def get_complaint(
    complaint_id: str,
    principal: Principal = Depends(get_principal),
    services: Services = Depends(get_services),
):
    return out(await services.complaints.get_for(complaint_id, principal))


@router.post("/{complaint_id}/upvote")
async def upvote(complaint_id: str, user: Principal = Depends(require_user), services: Services = Depends(get_services)):
    return await services.community.upvote(complaint_id, user)


@router.post("/{complaint_id}/downvote")
async def downvote(complaint_id: str, user: Principal = Depends(require_user), services: Services = Depends(get_services)):
    return await services.community.downvote(complaint_id, user)


@router.post("/{complaint_id}/comment")
async def add_comment(
    complaint_id: str,
    body: CommentCreate,
    user: Principal = Depends(require_user),
    services: Services = Depends(get_services),
):
    result = await services.community.add_comment(complaint_id, user, body.text)
    return out({"message": "Comment added successfully", **result})


@router.delete("/{complaint_id}/comment/{comment_id}")
async def delete_comment(
    complaint_id: str,
    comment_id: str,
    user: Principal = Depends(require_user),
    services: Services = Depends(get_services),
):
    result = await services.community.delete_comment(complaint_id, comment_id, user)
    return {"message": "Comment deleted successfully", **result}
