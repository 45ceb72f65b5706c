from fastapi import APIRouter, Depends, status

from socialhub.database.connection import mongo_db_dependency
from socialhub.repositories.activity_repository import CommentRepository, FollowRepository, PostRepository
from socialhub.repositories.reaction_repository import ReactionRepository
from socialhub.schemas.activity import CommentRequest, ReactRequest
from socialhub.services.activity_service import ActivityService
from socialhub.services.notification_service import NotificationService
from socialhub.routers.notifications import get_notification_service
from socialhub.utils.dependencies import get_current_user


router = APIRouter(tags=["activity"])


def get_activity_service(db = Depends(mongo_db_dependency), notifications: NotificationService = Depends(get_notification_service)) -> ActivityService:
    return ActivityService(
        PostRepository(db),
        ReactionRepository(db),
        CommentRepository(db),
        FollowRepository(db),
        notifications,
    )


@router.post("/posts/{post_id}/react")
async def react(post_id: str, body: ReactRequest, current_user: dict = Depends(get_current_user), service: ActivityService = Depends(get_activity_service)):
    return await service.react(post_id, current_user["_id"], body.reaction_type)


@router.post("/posts/{post_id}/like")
async def toggle_like(post_id: str, current_user: dict = Depends(get_current_user), service: ActivityService = Depends(get_activity_service)):
    return await service.toggle_like(post_id, current_user["_id"])


@router.get("/posts/{post_id}/reactions")
async def reactions(post_id: str, current_user: dict = Depends(get_current_user), service: ActivityService = Depends(get_activity_service)):
    return await service.reaction_summary(post_id)


@router.post("/posts/{post_id}/comments", status_code=status.HTTP_201_CREATED)
async def comment(post_id: str, body: CommentRequest, current_user: dict = Depends(get_current_user), service: ActivityService = Depends(get_activity_service)):
    return await service.comment(post_id, current_user["_id"], body.content)


@router.post("/posts/{post_id}/share")
async def share(post_id: str, current_user: dict = Depends(get_current_user), service: ActivityService = Depends(get_activity_service)):
    await service.share(post_id, current_user["_id"])
    return {"success": True}


@router.post("/users/{user_id}/follow")
async def follow(user_id: str, current_user: dict = Depends(get_current_user), service: ActivityService = Depends(get_activity_service)):
    await service.follow(current_user["_id"], user_id)
    return {"message": "Followed successfully"}


@router.post("/users/{user_id}/unfollow")
async def unfollow(user_id: str, current_user: dict = Depends(get_current_user), service: ActivityService = Depends(get_activity_service)):
    await service.unfollow(current_user["_id"], user_id)
    return {"message": "Unfollowed successfully"}
