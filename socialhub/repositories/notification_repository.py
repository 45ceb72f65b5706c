from datetime import datetime, timezone
from typing import List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from socialhub.models.notification import NotificationDocument
from socialhub.utils.ids import normalize, to_object_id


class NotificationRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["notifications"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("recipient_id", ASCENDING), ("created_at", DESCENDING)])
        await self.collection.create_index([("recipient_id", ASCENDING), ("read", ASCENDING)])

    async def insert(
        self,
        recipient_id: str,
        sender_id: str,
        kind: str,
        text: str,
        related_post_id: Optional[str] = None,
        related_comment_id: Optional[str] = None,
    ) -> NotificationDocument:
        doc: NotificationDocument = {
            "recipient_id": recipient_id,
            "sender_id": sender_id,
            "kind": kind,
            "text": text,
            "read": False,
            "related_post_id": related_post_id,
            "related_comment_id": related_comment_id,
            "created_at": datetime.now(timezone.utc),
        }
        result = await self.collection.insert_one(doc)
        doc["_id"] = str(result.inserted_id)
        return doc

    async def list_for_user(self, user_id: str, limit: int = 50) -> List[NotificationDocument]:
        cursor = (
            self.collection.find({"recipient_id": user_id})
            .sort([("created_at", DESCENDING), ("_id", DESCENDING)])
            .limit(limit)
        )
        items = await cursor.to_list(length=limit)
        return [normalize(it) for it in items]

    async def count_unread(self, user_id: str) -> int:
        return await self.collection.count_documents({"recipient_id": user_id, "read": False})

    async def mark_read(self, notification_id: str, user_id: str) -> bool:
        oid = to_object_id(notification_id)
        if oid is None:
            return False
        # scoped to the owner: someone else's notification simply does not match
        result = await self.collection.update_one(
            {"_id": oid, "recipient_id": user_id},
            {"$set": {"read": True}},
        )
        return bool(result.modified_count)

    async def mark_all_read(self, user_id: str) -> int:
        result = await self.collection.update_many(
            {"recipient_id": user_id, "read": False},
            {"$set": {"read": True}},
        )
        return result.modified_count or 0
