from datetime import datetime, timezone
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from socialhub.models.message import MessageDocument
from socialhub.utils.ids import normalize, to_object_id


class MessageRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["messages"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("sender_id", ASCENDING), ("recipient_id", ASCENDING), ("created_at", ASCENDING)])
        await self.collection.create_index([("recipient_id", ASCENDING), ("read", ASCENDING)])
        await self.collection.create_index([("created_at", DESCENDING)])

    async def save_message(self, sender_id: str, recipient_id: str, content: str) -> MessageDocument:
        doc: MessageDocument = {
            "sender_id": sender_id,
            "recipient_id": recipient_id,
            "content": content,
            "read": False,
            "created_at": datetime.now(timezone.utc),
        }
        result = await self.collection.insert_one(doc)
        doc["_id"] = str(result.inserted_id)
        return doc

    async def get_by_id(self, message_id: str) -> Optional[MessageDocument]:
        oid = to_object_id(message_id)
        if oid is None:
            return None
        return normalize(await self.collection.find_one({"_id": oid}))

    async def list_between(self, user_a: str, user_b: str) -> List[MessageDocument]:
        query = {
            "$or": [
                {"sender_id": user_a, "recipient_id": user_b},
                {"sender_id": user_b, "recipient_id": user_a},
            ]
        }
        cursor = self.collection.find(query).sort([("created_at", ASCENDING), ("_id", ASCENDING)])
        return [normalize(doc) async for doc in cursor]

    async def mark_read_from(self, recipient_id: str, sender_id: str) -> int:
        # single bulk conditional update; re-running it when nothing matches is a no-op
        result = await self.collection.update_many(
            {"sender_id": sender_id, "recipient_id": recipient_id, "read": False},
            {"$set": {"read": True}},
        )
        return result.modified_count or 0

    async def delete(self, message_id: str) -> bool:
        oid = to_object_id(message_id)
        if oid is None:
            return False
        result = await self.collection.delete_one({"_id": oid})
        return result.deleted_count > 0

    def find_touching(self, user_id: str):
        """Cursor over every message the user sent or received, newest first."""
        query = {"$or": [{"sender_id": user_id}, {"recipient_id": user_id}]}
        return self.collection.find(query).sort([("created_at", DESCENDING), ("_id", DESCENDING)])
