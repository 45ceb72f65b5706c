from typing import Dict, Iterable

from motor.motor_asyncio import AsyncIOMotorDatabase

from socialhub.models.user import UserSummary
from socialhub.utils.ids import to_object_id


class UserRepository:
    """Read-only view of the users collection owned by the auth service."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._collection = db["users"]

    async def get_summaries(self, user_ids: Iterable[str]) -> Dict[str, UserSummary]:
        ids = list(dict.fromkeys(user_ids))
        if not ids:
            return {}
        keys = ids + [oid for oid in map(to_object_id, ids) if oid is not None]
        cursor = self._collection.find({"_id": {"$in": keys}}, {"name": 1, "profile_picture": 1})
        summaries: Dict[str, UserSummary] = {}
        async for user in cursor:
            user_id = str(user["_id"])
            summaries[user_id] = {
                "_id": user_id,
                "name": user.get("name"),
                "profile_picture": user.get("profile_picture"),
            }
        return summaries

    async def get_summary(self, user_id: str) -> UserSummary:
        found = await self.get_summaries([user_id])
        return found.get(user_id, {"_id": user_id})
