from __future__ import annotations

from typing import List, Optional

from app.utils.dates import utcnow
from app.utils.mongo import to_object_id


class NotificationRepository:
    def __init__(self, col):
        self.col = col

    async def create(self, data: dict) -> dict:
        r = await self.col.insert_one(data)
        data["_id"] = r.inserted_id
        return data

    async def list(self, user_id: str, skip: int, limit: int) -> List[dict]:
        cur = self.col.find({"userId": user_id}).sort("createdAt", -1).skip(skip).limit(limit)
        return [n async for n in cur]

    async def count(self, user_id: str, status: Optional[str] = None) -> int:
        query = {"userId": user_id}
        if status:
            query["status"] = status
        return await self.col.count_documents(query)

    async def mark_read(self, notification_id, user_id: str) -> bool:
        oid = to_object_id(notification_id)
        if oid is None:
            return False
        r = await self.col.update_one(
            {"_id": oid, "userId": user_id},
            {"$set": {"status": "read", "readAt": utcnow()}},
        )
        return r.matched_count == 1

    async def mark_all_read(self, user_id: str) -> int:
        r = await self.col.update_many(
            {"userId": user_id, "status": "unread"},
            {"$set": {"status": "read", "readAt": utcnow()}},
        )
        return r.modified_count
