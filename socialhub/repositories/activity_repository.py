from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING

from socialhub.models.activity import CommentDocument, PostDocument, StoryDocument
from socialhub.utils.ids import normalize, to_object_id


class PostRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["posts"]

    async def get_by_id(self, post_id: str) -> Optional[PostDocument]:
        oid = to_object_id(post_id)
        if oid is None:
            return None
        return normalize(await self.collection.find_one({"_id": oid}))

    async def add_share(self, post_id: str, user_id: str) -> bool:
        result = await self.collection.update_one(
            {"_id": to_object_id(post_id)},
            {"$push": {"shares": {"user_id": user_id, "shared_at": datetime.now(timezone.utc)}}},
        )
        return bool(result.modified_count)

    async def get_summaries(self, post_ids: Iterable[str]) -> Dict[str, Dict[str, Any]]:
        oids = [oid for oid in map(to_object_id, dict.fromkeys(post_ids)) if oid is not None]
        if not oids:
            return {}
        cursor = self.collection.find({"_id": {"$in": oids}}, {"title": 1})
        return {str(post["_id"]): {"_id": str(post["_id"]), "title": post.get("title")} async for post in cursor}


class CommentRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["comments"]

    async def create(self, post_id: str, author_id: str, content: str) -> CommentDocument:
        doc: CommentDocument = {
            "post_id": post_id,
            "author_id": author_id,
            "content": content,
            "created_at": datetime.now(timezone.utc),
        }
        result = await self.collection.insert_one(doc)
        doc["_id"] = str(result.inserted_id)
        return doc


class FollowRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["follows"]

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("follower_id", ASCENDING), ("followee_id", ASCENDING)], unique=True)

    async def follow(self, follower_id: str, followee_id: str) -> bool:
        """Returns True only when the edge did not exist before."""
        result = await self.collection.update_one(
            {"follower_id": follower_id, "followee_id": followee_id},
            {"$setOnInsert": {"created_at": datetime.now(timezone.utc)}},
            upsert=True,
        )
        return result.upserted_id is not None

    async def unfollow(self, follower_id: str, followee_id: str) -> bool:
        result = await self.collection.delete_one({"follower_id": follower_id, "followee_id": followee_id})
        return result.deleted_count > 0

    async def list_followers(self, user_id: str) -> List[str]:
        cursor = self.collection.find({"followee_id": user_id}).sort("created_at", ASCENDING)
        return [doc["follower_id"] async for doc in cursor]


class StoryRepository:

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._db = db

    @property
    def collection(self):
        return self._db["stories"]

    async def get_by_id(self, story_id: str) -> Optional[StoryDocument]:
        oid = to_object_id(story_id)
        if oid is None:
            return None
        return normalize(await self.collection.find_one({"_id": oid}))

    async def add_viewer(self, story_id: str, user_id: str) -> bool:
        # conditional on the viewer being absent, so repeated views are no-ops
        result = await self.collection.update_one(
            {"_id": to_object_id(story_id), "viewers.user_id": {"$ne": user_id}},
            {"$push": {"viewers": {"user_id": user_id, "viewed_at": datetime.now(timezone.utc)}}},
        )
        return bool(result.modified_count)
