from __future__ import annotations

from typing import Any, Dict, Iterable, List, Optional, Tuple

from pymongo import ReturnDocument

from app.utils.dates import utcnow
from app.utils.mongo import to_object_id


class ComplaintRepository:
    def __init__(self, col):
        self.col = col

    async def create(self, data: dict) -> dict:
        r = await self.col.insert_one(data)
        data["_id"] = r.inserted_id
        return data

    async def get(self, complaint_id) -> Optional[dict]:
        oid = to_object_id(complaint_id)
        if oid is None:
            return None
        return await self.col.find_one({"_id": oid})

    async def list(
        self,
        query: dict,
        sort: str = "createdAt",
        limit: int = 0,
        skip: int = 0,
        projection: Optional[dict] = None,
    ) -> List[dict]:
        cur = self.col.find(query, projection).sort(sort, -1).skip(skip)
        if limit:
            cur = cur.limit(limit)
        return [d async for d in cur]

    async def update(self, complaint_id, fields: Dict[str, Any]) -> Optional[dict]:
        oid = to_object_id(complaint_id)
        if oid is None:
            return None
        fields = {**fields, "updatedAt": utcnow()}
        return await self.col.find_one_and_update(
            {"_id": oid},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
        )

    async def transition(
        self,
        complaint_id,
        from_statuses: Iterable[str],
        fields: Dict[str, Any],
        guard: Optional[dict] = None,
        push: Optional[dict] = None,
    ) -> Optional[dict]:
        """
        Compare-and-swap on `status`: the write only lands when the
        complaint is still in one of `from_statuses` (and matches `guard`).
        Returns the updated document, or None when the guard failed.
        """
        oid = to_object_id(complaint_id)
        if oid is None:
            return None
        statuses = [getattr(s, "value", s) for s in from_statuses]
        query = {"_id": oid, "status": {"$in": statuses}}
        if guard:
            query.update(guard)
        update: Dict[str, Any] = {"$set": {**fields, "updatedAt": utcnow()}}
        if push:
            update["$push"] = push
        return await self.col.find_one_and_update(
            query, update, return_document=ReturnDocument.AFTER
        )

    async def status_counts(self, query: dict) -> Dict[str, int]:
        pipeline = [
            {"$match": query},
            {"$group": {"_id": "$status", "count": {"$sum": 1}}},
        ]
        out: Dict[str, int] = {}
        async for row in self.col.aggregate(pipeline):
            out[row["_id"]] = row["count"]
        return out

    # -------------------------
    # Community
    # -------------------------
    async def toggle_vote(self, complaint_id, user_id: str, field: str, opposite: str) -> Tuple[Optional[dict], bool]:
        """
        Flip `user_id` in `field` ("upvotes" or "downvotes"). Adding a vote
        also pulls it from `opposite` in the same write. Returns the updated
        complaint and whether the vote was added.
        """
        oid = to_object_id(complaint_id)
        if oid is None:
            return None, False
        removed = await self.col.find_one_and_update(
            {"_id": oid, field: user_id},
            {"$pull": {field: user_id}},
            return_document=ReturnDocument.AFTER,
        )
        if removed is not None:
            return removed, False
        added = await self.col.find_one_and_update(
            {"_id": oid},
            {"$addToSet": {field: user_id}, "$pull": {opposite: user_id}},
            return_document=ReturnDocument.AFTER,
        )
        return added, added is not None

    async def add_comment(self, complaint_id, comment: dict) -> Optional[dict]:
        oid = to_object_id(complaint_id)
        if oid is None:
            return None
        return await self.col.find_one_and_update(
            {"_id": oid},
            {"$push": {"comments": comment}},
            return_document=ReturnDocument.AFTER,
        )

    async def remove_comment(self, complaint_id, comment_id, user_id: str) -> Optional[dict]:
        """Pull the comment only when `user_id` wrote it."""
        return await self.col.find_one_and_update(
            {"_id": to_object_id(complaint_id), "comments": {"$elemMatch": {"_id": comment_id, "userId": user_id}}},
            {"$pull": {"comments": {"_id": comment_id}}},
            return_document=ReturnDocument.AFTER,
        )
