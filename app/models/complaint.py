from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from bson import ObjectId
from pydantic import Field, field_validator

from app.core.enums import ComplaintStatus, NoteSender, PhoneVerificationStatus
from app.models.common import DocumentModel
from app.utils.dates import utcnow


class ComplaintLocation(DocumentModel):
    lat: float
    lng: float
    address: Optional[str] = None
    detailed_address: Optional[str] = None
    street_address: Optional[str] = None
    sublocality: Optional[str] = None
    sublocality1: Optional[str] = None
    sublocality2: Optional[str] = None
    sublocality3: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    district: Optional[str] = None
    postal_code: Optional[str] = None
    country: Optional[str] = None


class ComplaintNote(DocumentModel):
    sender: NoteSender
    text: str
    attachments: List[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)


class ComplaintComment(DocumentModel):
    id: ObjectId = Field(default_factory=ObjectId, alias="_id")
    user_id: str
    user_name: Optional[str] = None
    text: str
    created_at: datetime = Field(default_factory=utcnow)


class DepartmentRejection(DocumentModel):
    rejected_by: str
    rejected_at: datetime = Field(default_factory=utcnow)
    reason: str
    additional_notes: Optional[str] = None


class Complaint(DocumentModel):
    user_id: str
    description: str
    phone: str
    image: str
    audio: Optional[str] = None
    location: ComplaintLocation

    status: ComplaintStatus = ComplaintStatus.pending
    assigned_admin: Optional[str] = None
    assigned_city: Optional[str] = None
    assigned_state: Optional[str] = None
    assigned_department: Optional[str] = None
    assigned_at: Optional[datetime] = None
    priority: str = "Medium"
    reason: Optional[str] = None
    rejection_reason: Optional[str] = None
    department_rejection: Optional[DepartmentRejection] = None

    phone_verification_status: PhoneVerificationStatus = PhoneVerificationStatus.pending_verification
    phone_verification_call_sid: Optional[str] = None
    detected_department_info: Optional[Dict[str, Any]] = None
    auto_routing_data: Optional[Dict[str, Any]] = None

    messages: List[ComplaintNote] = Field(default_factory=list)
    upvotes: List[str] = Field(default_factory=list)
    downvotes: List[str] = Field(default_factory=list)
    comments: List[ComplaintComment] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    @field_validator("image")
    @classmethod
    def image_required(cls, v: str) -> str:
        if not v:
            raise ValueError("image is required")
        return v
