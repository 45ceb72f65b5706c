import logging
from typing import Any, Dict, List, Optional

from socialhub.exceptions import ForbiddenError, NotFoundError, ValidationError
from socialhub.repositories.conversation_repository import ConversationRepository
from socialhub.repositories.message_repository import MessageRepository
from socialhub.repositories.user_repository import UserRepository
from socialhub.utils.live_channel import LiveChannel


logger = logging.getLogger(__name__)


class ChatService:

    def __init__(
        self,
        message_repo: MessageRepository,
        conversation_repo: ConversationRepository,
        user_repo: Optional[UserRepository] = None,
        live_channel: Optional[LiveChannel] = None,
    ) -> None:
        self._message_repo = message_repo
        self._conversation_repo = conversation_repo
        self._user_repo = user_repo
        self._live = live_channel

    async def send_message(self, sender_id: str, recipient_id: str, content: Optional[str]) -> Dict[str, Any]:
        if not content or not content.strip():
            raise ValidationError("Message content is required")
        if not recipient_id:
            raise ValidationError("Recipient is required")
        saved = await self._message_repo.save_message(sender_id, recipient_id, content.strip())
        if self._live is not None:
            await self._live.push_to_user(recipient_id, "newMessage", saved)
        return saved

    async def list_between(self, user_id: str, peer_id: str) -> List[Dict[str, Any]]:
        """Thread between the caller and ``peer_id``, oldest first.

        Reading the thread marks everything the peer sent to the caller as
        read. The list is fetched before the update, so the returned
        messages still show the read state the caller saw on arrival.
        """
        messages = await self._message_repo.list_between(user_id, peer_id)
        updated = await self._message_repo.mark_read_from(user_id, peer_id)
        if updated:
            logger.debug("Marked %d messages from %s to %s as read", updated, peer_id, user_id)
        return messages

    async def delete_message(self, message_id: str, requester_id: str) -> None:
        message = await self._message_repo.get_by_id(message_id)
        if not message:
            raise NotFoundError("Message not found")
        if message["sender_id"] != requester_id:
            raise ForbiddenError("You can only delete your own messages")
        await self._message_repo.delete(message_id)

    async def list_conversations(self, user_id: str) -> List[Dict[str, Any]]:
        summaries = await self._conversation_repo.list_for_user(user_id)
        if self._user_repo is not None and summaries:
            peers = await self._user_repo.get_summaries(s["peer_id"] for s in summaries)
            for summary in summaries:
                if summary["peer_id"] in peers:
                    summary["peer"] = peers[summary["peer_id"]]
        return summaries
