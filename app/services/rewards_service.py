from __future__ import annotations

import logging
import secrets
import string
import time
from datetime import datetime
from typing import List, Optional

from app.core.errors import (
    InsufficientPoints,
    NotFound,
    RedemptionLimitReached,
    RewardUnavailable,
)
from app.models.reward import UserRedemption
from app.repositories.reward_repository import RedemptionRepository, RewardRepository
from app.repositories.user_repository import UserRepository
from app.services.points_service import PointsService
from app.utils.dates import utcnow

logger = logging.getLogger(__name__)

_CODE_ALPHABET = string.ascii_uppercase + string.digits


def _base36(n: int) -> str:
    digits = string.digits + string.ascii_uppercase
    out = ""
    while n:
        n, r = divmod(n, 36)
        out = digits[r] + out
    return out or "0"


def generate_redemption_code() -> str:
    stamp = _base36(int(time.time() * 1000))
    tail = "".join(secrets.choice(_CODE_ALPHABET) for _ in range(5))
    return f"RDM{stamp}{tail}"


def is_available(reward: dict, now: Optional[datetime] = None) -> bool:
    now = now or utcnow()
    if not reward.get("isActive", True):
        return False
    valid_from = reward.get("validFrom")
    if valid_from and valid_from > now:
        return False
    valid_until = reward.get("validUntil")
    if valid_until and valid_until <= now:
        return False
    total = reward.get("totalAvailable", -1)
    if total > 0 and reward.get("totalRedeemed", 0) >= total:
        return False
    return True


class RewardsService:
    def __init__(
        self,
        rewards: RewardRepository,
        redemptions: RedemptionRepository,
        users: UserRepository,
        points: PointsService,
        email=None,
    ):
        self.rewards = rewards
        self.redemptions = redemptions
        self.users = users
        self.points = points
        self.email = email

    async def list_available(self, user_id: Optional[str] = None) -> dict:
        now = utcnow()
        rewards = [r for r in await self.rewards.list_active() if is_available(r, now)]
        balance = 0
        if user_id:
            user = await self.users.get(user_id)
            balance = (user or {}).get("points", 0)
        for r in rewards:
            r["canRedeem"] = balance >= r.get("pointsRequired", 0)
        return {"rewards": rewards, "userPoints": balance}

    async def redeem(
        self,
        user_id: str,
        reward_id: str,
        delivery_address: Optional[str] = None,
        contact_phone: Optional[str] = None,
        notes: Optional[str] = None,
        send_email: bool = False,
    ) -> dict:
        reward = await self.rewards.get(reward_id)
        if not reward:
            raise NotFound("Reward not found")
        if not is_available(reward):
            raise RewardUnavailable()

        user = await self.users.get(user_id)
        if not user:
            raise NotFound("User not found")

        cost = int(reward["pointsRequired"])
        balance = int(user.get("points", 0))
        if balance < cost:
            raise InsufficientPoints(
                f"Insufficient points. You need {cost} points but have only {balance} points."
            )

        limit = int(reward.get("maxRedemptionsPerUser", 1))
        if await self.rewards.claim(reward["_id"], user_id, limit) is None:
            raise RedemptionLimitReached(
                f"You have already redeemed this reward the maximum number of times ({limit})"
            )

        after = await self.points.spend(user_id, cost, f"Redeemed: {reward['title']}")
        if after is None:
            await self.rewards.release(reward["_id"], user_id)
            raise InsufficientPoints(
                f"Insufficient points. You need {cost} points but have only {balance} points."
            )

        doc = UserRedemption(
            user_id=user_id,
            reward_id=str(reward["_id"]),
            reward_title=reward["title"],
            points_spent=cost,
            redemption_code=generate_redemption_code(),
            delivery_address=delivery_address,
            contact_phone=contact_phone,
            notes=notes,
        ).to_document()
        try:
            redemption = await self.redemptions.create(doc)
        except Exception:
            logger.exception("Redemption insert failed, refunding %d points to %s", cost, user_id)
            await self.points.award(user_id, cost, f"Refund: {reward['title']}")
            await self.rewards.release(reward["_id"], user_id)
            raise
        logger.info("User %s redeemed %s (%s)", user_id, reward["title"], redemption["redemptionCode"])

        if send_email and user.get("email") and self.email is not None:
            await self._send_coupon(user, reward, redemption)

        return {"redemption": redemption, "remainingPoints": after.get("points", 0)}

    async def _send_coupon(self, user: dict, reward: dict, redemption: dict) -> None:
        body = (
            f"Hello {user.get('name', '')},\n\n"
            f"Your reward \"{reward['title']}\" has been redeemed.\n"
            f"Coupon code: {redemption['redemptionCode']}\n\n"
            f"{reward.get('terms', '')}\n"
        )
        try:
            sent = await self.email.send(user["email"], "Your reward coupon is ready", body)
        except Exception as exc:
            logger.warning("Coupon e-mail for %s failed: %s", redemption["redemptionCode"], exc)
            return
        if sent:
            await self.redemptions.set_email_sent(redemption["_id"])
            redemption["emailSent"] = True

    async def my_redemptions(self, user_id: str) -> List[dict]:
        return await self.redemptions.list_for_user(user_id)

    async def get_redemption(self, user_id: str, code: str) -> dict:
        redemption = await self.redemptions.get_by_code(code)
        if not redemption or redemption.get("userId") != user_id:
            raise NotFound("Redemption not found")
        return redemption
