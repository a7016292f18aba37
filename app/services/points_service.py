from __future__ import annotations

import logging
from typing import Optional

from app.models.accounts import PointsEntry
from app.repositories.user_repository import UserRepository

logger = logging.getLogger(__name__)

APPROVAL_POINTS = 5
PHONE_APPROVAL_REASON = "Complaint approved via phone verification"
ADMIN_APPROVAL_REASON = "Complaint approved by admin"


class PointsService:
    def __init__(self, users: UserRepository):
        self.users = users

    async def award(self, user_id: str, points: int, reason: str, complaint_id: Optional[str] = None) -> Optional[dict]:
        entry = PointsEntry(points=points, reason=reason, complaint_id=complaint_id).to_document()
        user = await self.users.add_points(user_id, entry)
        if user is None:
            logger.warning("Points not awarded, user %s not found", user_id)
            return None
        logger.info("Awarded %d points to user %s (%s)", points, user_id, reason)
        return user

    async def spend(self, user_id: str, points: int, reason: str) -> Optional[dict]:
        """Deduct `points`; None when the balance is too low."""
        entry = PointsEntry(points=-points, reason=reason).to_document()
        return await self.users.spend_points(user_id, entry)

    async def summary(self, user_id: str) -> Optional[dict]:
        user = await self.users.get(user_id)
        if not user:
            return None
        history = sorted(user.get("pointsHistory", []), key=lambda e: e.get("awardedAt"), reverse=True)
        return {"points": user.get("points", 0), "pointsHistory": history}
