from __future__ import annotations

from typing import Iterable, List, Optional

from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.utils.dates import utcnow


class ChatRepository:
    def __init__(self, col):
        self.col = col

    async def get(self, complaint_id: str, chat_type: str) -> Optional[dict]:
        return await self.col.find_one({"complaintId": complaint_id, "chatType": chat_type})

    async def create(self, data: dict) -> dict:
        """Insert unless another request won the race; returns the stored chat."""
        existing = await self.get(data["complaintId"], data["chatType"])
        if existing:
            return existing
        try:
            r = await self.col.insert_one(data)
        except DuplicateKeyError:
            return await self.get(data["complaintId"], data["chatType"])
        data["_id"] = r.inserted_id
        return data

    async def push_message(self, chat_id, message: dict) -> Optional[dict]:
        return await self.col.find_one_and_update(
            {"_id": chat_id},
            {"$push": {"messages": message}, "$set": {"lastActivity": utcnow()}},
            return_document=ReturnDocument.AFTER,
        )

    async def touch_participant(self, chat_id, participant_id: str) -> None:
        await self.col.update_one(
            {"_id": chat_id, "participants.participantId": participant_id},
            {"$set": {"participants.$.lastSeenAt": utcnow()}},
        )

    async def add_participant(self, chat_id, participant: dict) -> None:
        await self.col.update_one(
            {"_id": chat_id, "participants.participantId": {"$ne": participant["participantId"]}},
            {"$push": {"participants": participant}},
        )

    async def add_receipts(self, chat_id, indexes: Iterable[int], reader_id: str) -> int:
        # one guarded push per message, so a repeated read never doubles a receipt
        marked = 0
        for i in indexes:
            r = await self.col.update_one(
                {"_id": chat_id, f"messages.{i}.isRead.userId": {"$ne": reader_id}},
                {"$push": {f"messages.{i}.isRead": {"userId": reader_id, "readAt": utcnow()}}},
            )
            marked += r.modified_count
        return marked

    async def list_for_participant(self, participant_id: str) -> List[dict]:
        cur = self.col.find({"participants.participantId": participant_id}).sort("lastActivity", -1)
        return [c async for c in cur]
