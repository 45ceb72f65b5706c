from fastapi import APIRouter, Depends

from socialhub.database.connection import mongo_db_dependency
from socialhub.repositories.activity_repository import StoryRepository
from socialhub.services.story_service import StoryService
from socialhub.utils.dependencies import get_current_user


router = APIRouter(prefix="/stories", tags=["stories"])


def get_story_service(db = Depends(mongo_db_dependency)) -> StoryService:
    return StoryService(StoryRepository(db))


@router.post("/{story_id}/view")
async def view_story(story_id: str, current_user: dict = Depends(get_current_user), service: StoryService = Depends(get_story_service)):
    await service.view(story_id, current_user["_id"])
    return {"success": True}


@router.get("/{story_id}/viewers")
async def story_viewers(story_id: str, current_user: dict = Depends(get_current_user), service: StoryService = Depends(get_story_service)):
    return await service.viewers(story_id, current_user["_id"])
