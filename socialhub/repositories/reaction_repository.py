from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING

from socialhub.models.reaction import REACTION_KINDS


class ReactionRepository:
    """One row per (post, user): the only place a reaction is stored."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["post_reactions"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("post_id", ASCENDING), ("user_id", ASCENDING)], unique=True)

    async def set_reaction(self, post_id: str, user_id: str, kind: str) -> None:
        await self.collection.update_one(
            {"post_id": post_id, "user_id": user_id},
            {"$set": {"kind": kind, "updated_at": datetime.now(timezone.utc)}},
            upsert=True,
        )

    async def get_reaction(self, post_id: str, user_id: str) -> Optional[str]:
        doc = await self.collection.find_one({"post_id": post_id, "user_id": user_id})
        return doc.get("kind") if doc else None

    async def remove_reaction(self, post_id: str, user_id: str) -> bool:
        result = await self.collection.delete_one({"post_id": post_id, "user_id": user_id})
        return result.deleted_count > 0

    async def summarize(self, post_id: str) -> Dict[str, Any]:
        counts = {kind: 0 for kind in REACTION_KINDS}
        likes: List[str] = []
        async for doc in self.collection.find({"post_id": post_id}).sort("updated_at", ASCENDING):
            kind = doc.get("kind")
            if kind not in counts:
                continue
            counts[kind] += 1
            if kind == "like":
                likes.append(doc["user_id"])
        # legacy-shaped fields are derived here and never stored
        return {
            "post_id": post_id,
            "counts": counts,
            "reaction_count": sum(counts.values()),
            "like_count": counts["like"],
            "likes": likes,
        }
