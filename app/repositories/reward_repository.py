from __future__ import annotations

from typing import List, Optional

from pymongo import ReturnDocument

from app.utils.mongo import to_object_id


class RewardRepository:
    def __init__(self, col):
        self.col = col

    async def list_active(self) -> List[dict]:
        cur = self.col.find({"isActive": True}, {"redeemedBy": 0}).sort("pointsRequired", 1)
        return [r async for r in cur]

    async def get(self, reward_id) -> Optional[dict]:
        oid = to_object_id(reward_id)
        if oid is None:
            return None
        return await self.col.find_one({"_id": oid})

    async def create(self, data: dict) -> dict:
        r = await self.col.insert_one(data)
        data["_id"] = r.inserted_id
        return data

    async def claim(self, reward_id, user_id: str, per_user_limit: int) -> Optional[dict]:
        """
        Take one redemption slot for `user_id`. The per-user count lives on
        the reward document, so the limit check and the increment are one
        write. Returns None when the user has no slot left.
        """
        slot = f"redeemedBy.{user_id}"
        return await self.col.find_one_and_update(
            {
                "_id": to_object_id(reward_id),
                "$or": [{slot: {"$exists": False}}, {slot: {"$lt": per_user_limit}}],
            },
            {"$inc": {slot: 1, "totalRedeemed": 1}},
            return_document=ReturnDocument.AFTER,
        )

    async def release(self, reward_id, user_id: str) -> None:
        await self.col.update_one(
            {"_id": to_object_id(reward_id)},
            {"$inc": {f"redeemedBy.{user_id}": -1, "totalRedeemed": -1}},
        )


class RedemptionRepository:
    def __init__(self, col):
        self.col = col

    async def create(self, data: dict) -> dict:
        r = await self.col.insert_one(data)
        data["_id"] = r.inserted_id
        return data

    async def list_for_user(self, user_id: str) -> List[dict]:
        cur = self.col.find({"userId": user_id}).sort("redeemedAt", -1)
        return [r async for r in cur]

    async def get_by_code(self, code: str) -> Optional[dict]:
        return await self.col.find_one({"redemptionCode": code})

    async def set_email_sent(self, redemption_id) -> None:
        await self.col.update_one({"_id": redemption_id}, {"$set": {"emailSent": True}})
