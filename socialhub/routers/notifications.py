from fastapi import APIRouter, Depends

from socialhub.database.connection import mongo_db_dependency
from socialhub.repositories.activity_repository import PostRepository
from socialhub.repositories.notification_repository import NotificationRepository
from socialhub.repositories.user_repository import UserRepository
from socialhub.services.notification_service import NotificationService
from socialhub.utils.dependencies import get_current_user, get_live_channel
from socialhub.utils.live_channel import LiveChannel


router = APIRouter(prefix="/notifications", tags=["notifications"])


def get_notification_service(db = Depends(mongo_db_dependency), live: LiveChannel = Depends(get_live_channel)) -> NotificationService:
    return NotificationService(NotificationRepository(db), UserRepository(db), live, post_repo=PostRepository(db))


@router.get("")
async def list_notifications(current_user: dict = Depends(get_current_user), service: NotificationService = Depends(get_notification_service)):
    return await service.list_for_user(current_user["_id"])


@router.get("/unread-count")
async def unread_count(current_user: dict = Depends(get_current_user), service: NotificationService = Depends(get_notification_service)):
    return {"count": await service.unread_count(current_user["_id"])}


@router.put("/mark-all-read")
async def mark_all_read(current_user: dict = Depends(get_current_user), service: NotificationService = Depends(get_notification_service)):
    await service.mark_all_read(current_user["_id"])
    return {"success": True}


@router.put("/{notification_id}/read")
async def mark_read(notification_id: str, current_user: dict = Depends(get_current_user), service: NotificationService = Depends(get_notification_service)):
    await service.mark_read(notification_id, current_user["_id"])
    return {"success": True}
