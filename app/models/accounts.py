from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import Field, model_validator

from app.core.enums import AccountStatus, DepartmentType
from app.models.common import DocumentModel
from app.utils.dates import utcnow


class PointsEntry(DocumentModel):
    points: int
    reason: str
    complaint_id: Optional[str] = None
    awarded_at: datetime = Field(default_factory=utcnow)


class WarningEntry(DocumentModel):
    reason: str
    complaint_id: Optional[str] = None
    notes: Optional[str] = None
    given_by: Optional[str] = None
    given_at: datetime = Field(default_factory=utcnow)
    acknowledged: bool = False


class Warnings(DocumentModel):
    count: int = 0
    history: List[WarningEntry] = Field(default_factory=list)


class User(DocumentModel):
    name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    google_id: Optional[str] = None
    password: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    district: Optional[str] = None
    sublocality: Optional[str] = None
    points: int = 0
    points_history: List[PointsEntry] = Field(default_factory=list)
    warnings: Warnings = Field(default_factory=Warnings)
    account_status: AccountStatus = AccountStatus.active
    is_blacklisted: bool = False
    created_at: datetime = Field(default_factory=utcnow)

    @model_validator(mode="after")
    def has_contact(self):
        if not (self.email or self.phone or self.google_id):
            raise ValueError("one of email, phone or googleId is required")
        return self


class Admin(DocumentModel):
    admin_id: str
    name: str
    password: str
    email: Optional[str] = None
    assigned_city: str
    assigned_state: str
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)


class Department(DocumentModel):
    department_id: str
    name: str
    password: str
    department_type: DepartmentType
    assigned_city: str
    assigned_state: str
    assigned_district: str
    email: Optional[str] = None
    contact_number: Optional[str] = None
    is_active: bool = True
    created_at: datetime = Field(default_factory=utcnow)
