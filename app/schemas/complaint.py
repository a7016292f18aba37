from typing import Optional

from app.schemas.user import CamelModel


class ApproveRequest(CamelModel):
    comment: Optional[str] = None


class RejectRequest(CamelModel):
    reason: Optional[str] = None


class DepartmentRejectRequest(CamelModel):
    reason: Optional[str] = None
    additional_notes: Optional[str] = None


class ResolveRequest(CamelModel):
    resolution_notes: Optional[str] = None


class WarningRequest(CamelModel):
    reason: Optional[str] = None
    complaint_id: Optional[str] = None
    notes: Optional[str] = None


class BlacklistRequest(CamelModel):
    reason: Optional[str] = None
    notes: Optional[str] = None


class CommentCreate(CamelModel):
    text: Optional[str] = None
