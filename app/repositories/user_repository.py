from __future__ import annotations

from typing import Any, Dict, List, Optional

from pymongo import ReturnDocument

from app.utils.dates import utcnow
from app.utils.mongo import to_object_id

RANKING_FIELDS = {"name": 1, "city": 1, "state": 1, "district": 1, "points": 1, "pointsHistory": 1}


class UserRepository:
    def __init__(self, col):
        self.col = col

    async def get(self, user_id) -> Optional[dict]:
        oid = to_object_id(user_id)
        if oid is None:
            return None
        return await self.col.find_one({"_id": oid})

    async def find_by_login(self, email: Optional[str], phone: Optional[str]) -> Optional[dict]:
        if email:
            return await self.col.find_one({"email": email.lower()})
        if phone:
            return await self.col.find_one({"phone": phone})
        return None

    async def create(self, data: dict) -> dict:
        r = await self.col.insert_one(data)
        data["_id"] = r.inserted_id
        return data

    async def update(self, user_id, fields: Dict[str, Any]) -> Optional[dict]:
        return await self.col.find_one_and_update(
            {"_id": to_object_id(user_id)},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )

    async def add_points(self, user_id, entry: dict) -> Optional[dict]:
        # balance and ledger move in one document write
        return await self.col.find_one_and_update(
            {"_id": to_object_id(user_id)},
            {"$inc": {"points": entry["points"]}, "$push": {"pointsHistory": entry}},
            return_document=ReturnDocument.AFTER,
        )

    async def spend_points(self, user_id, entry: dict) -> Optional[dict]:
        cost = -entry["points"]
        return await self.col.find_one_and_update(
            {"_id": to_object_id(user_id), "points": {"$gte": cost}},
            {"$inc": {"points": entry["points"]}, "$push": {"pointsHistory": entry}},
            return_document=ReturnDocument.AFTER,
        )

    async def add_warning(self, user_id, entry: dict) -> Optional[dict]:
        return await self.col.find_one_and_update(
            {"_id": to_object_id(user_id)},
            {
                "$inc": {"warnings.count": 1},
                "$push": {"warnings.history": entry},
                "$set": {"updatedAt": utcnow()},
            },
            return_document=ReturnDocument.AFTER,
        )

    # -------------------------
    # Rankings
    # -------------------------
    async def top_by_points(self, scope: dict, limit: int) -> List[dict]:
        cur = (
            self.col.find({**scope, "points": {"$gt": 0}}, RANKING_FIELDS)
            .sort([("points", -1), ("_id", 1)])
            .limit(limit)
        )
        return [u async for u in cur]

    async def count_ranked(self, scope: dict, above: int = 0) -> int:
        return await self.col.count_documents({**scope, "points": {"$gt": above}})

    async def points_stats(self, scope: dict) -> Dict[str, Any]:
        pipeline = [
            {"$match": {**scope, "points": {"$gt": 0}}},
            {
                "$group": {
                    "_id": None,
                    "totalUsers": {"$sum": 1},
                    "totalPoints": {"$sum": "$points"},
                    "averagePoints": {"$avg": "$points"},
                }
            },
        ]
        async for row in self.col.aggregate(pipeline):
            row.pop("_id", None)
            return row
        return {"totalUsers": 0, "totalPoints": 0, "averagePoints": 0}
