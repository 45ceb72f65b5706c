from typing import Any, Dict, List

from socialhub.exceptions import ForbiddenError, NotFoundError
from socialhub.repositories.activity_repository import StoryRepository


class StoryService:

    def __init__(self, story_repo: StoryRepository) -> None:
        self._stories = story_repo

    async def view(self, story_id: str, user_id: str) -> bool:
        story = await self._stories.get_by_id(story_id)
        if not story:
            raise NotFoundError("Story not found")
        return await self._stories.add_viewer(story["_id"], user_id)

    async def viewers(self, story_id: str, user_id: str) -> List[Dict[str, Any]]:
        story = await self._stories.get_by_id(story_id)
        if not story:
            raise NotFoundError("Story not found")
        if story.get("author_id") != user_id:
            raise ForbiddenError("Not authorized")
        return story.get("viewers", [])
