import logging
from typing import Any, Dict, List, Optional

from socialhub import config
from socialhub.exceptions import ValidationError
from socialhub.models.notification import NOTIFICATION_KINDS
from socialhub.repositories.activity_repository import PostRepository
from socialhub.repositories.notification_repository import NotificationRepository
from socialhub.repositories.user_repository import UserRepository
from socialhub.utils.live_channel import LiveChannel


logger = logging.getLogger(__name__)


class NotificationService:

    def __init__(
        self,
        notification_repo: NotificationRepository,
        user_repo: Optional[UserRepository] = None,
        live_channel: Optional[LiveChannel] = None,
        post_repo: Optional[PostRepository] = None,
    ) -> None:
        self._repo = notification_repo
        self._user_repo = user_repo
        self._live = live_channel
        self._post_repo = post_repo

    async def create(
        self,
        recipient_id: str,
        sender_id: str,
        kind: str,
        text: str,
        related_post_id: Optional[str] = None,
        related_comment_id: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """Store a notification and push it live to the recipient.

        Returns None without writing anything when the sender is the
        recipient; every producer goes through this guard.
        """
        if recipient_id == sender_id:
            return None
        if kind not in NOTIFICATION_KINDS:
            raise ValidationError(f"Unknown notification kind: {kind}")
        notification = await self._repo.insert(
            recipient_id, sender_id, kind, text,
            related_post_id=related_post_id,
            related_comment_id=related_comment_id,
        )
        if self._live is not None:
            payload = dict(notification)
            payload["sender"] = await self._sender_summary(sender_id)
            delivered = await self._live.push_to_user(recipient_id, "notification", payload)
            logger.debug("Notification %s for %s delivered live: %s", notification["_id"], recipient_id, delivered)
        return notification

    async def list_for_user(self, user_id: str, limit: int = config.NOTIFICATION_LIST_LIMIT) -> List[Dict[str, Any]]:
        items = await self._repo.list_for_user(user_id, limit=limit)
        if self._user_repo is not None and items:
            senders = await self._user_repo.get_summaries(n["sender_id"] for n in items)
            for item in items:
                item["sender"] = senders.get(item["sender_id"], {"_id": item["sender_id"]})
        if self._post_repo is not None and items:
            posts = await self._post_repo.get_summaries(n["related_post_id"] for n in items if n.get("related_post_id"))
            for item in items:
                if item.get("related_post_id"):
                    item["related_post"] = posts.get(item["related_post_id"], {"_id": item["related_post_id"]})
        return items

    async def unread_count(self, user_id: str) -> int:
        return await self._repo.count_unread(user_id)

    async def mark_read(self, notification_id: str, user_id: str) -> None:
        await self._repo.mark_read(notification_id, user_id)

    async def mark_all_read(self, user_id: str) -> None:
        await self._repo.mark_all_read(user_id)

    async def _sender_summary(self, sender_id: str) -> Dict[str, Any]:
        if self._user_repo is None:
            return {"_id": sender_id}
        return await self._user_repo.get_summary(sender_id)
