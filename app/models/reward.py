from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from app.core.enums import RedemptionStatus
from app.models.common import DocumentModel
from app.utils.dates import utcnow


class Reward(DocumentModel):
    title: str
    description: str
    category: str = "utility"
    points_required: int = Field(ge=0)
    icon: str = "gift"
    is_active: bool = True
    max_redemptions_per_user: int = 1
    # -1 == unlimited
    total_available: int = -1
    total_redeemed: int = 0
    valid_from: datetime = Field(default_factory=utcnow)
    valid_until: Optional[datetime] = None
    terms: str = "Terms and conditions apply."


class UserRedemption(DocumentModel):
    user_id: str
    reward_id: str
    reward_title: str
    points_spent: int
    redemption_code: str
    status: RedemptionStatus = RedemptionStatus.pending
    delivery_address: Optional[str] = None
    contact_phone: Optional[str] = None
    notes: Optional[str] = None
    email_sent: bool = False
    redeemed_at: datetime = Field(default_factory=utcnow)
