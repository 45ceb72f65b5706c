from typing import Any, Dict, List

from motor.motor_asyncio import AsyncIOMotorDatabase

from socialhub.models.message import ConversationSummary
from socialhub.repositories.message_repository import MessageRepository
from socialhub.utils.ids import normalize


class ConversationRepository:
    """Conversations are not stored; they are derived from ``messages`` on every read."""

    def __init__(self, db: AsyncIOMotorDatabase) -> None:
        self._messages = MessageRepository(db)

    async def list_for_user(self, user_id: str) -> List[ConversationSummary]:
        last_by_peer: Dict[str, Dict[str, Any]] = {}
        unread_by_peer: Dict[str, int] = {}
        async for doc in self._messages.find_touching(user_id):
            incoming = doc["recipient_id"] == user_id
            peer_id = doc["sender_id"] if incoming else doc["recipient_id"]

            current = last_by_peer.get(peer_id)
            if current is None or _order_key(doc) > _order_key(current):
                last_by_peer[peer_id] = doc

            unread_by_peer.setdefault(peer_id, 0)
            if incoming and not doc.get("read", False):
                unread_by_peer[peer_id] += 1

        summaries: List[ConversationSummary] = [
            {
                "peer_id": peer_id,
                "last_message": normalize(dict(last)),
                "unread_count": unread_by_peer[peer_id],
            }
            for peer_id, last in last_by_peer.items()
        ]
        summaries.sort(key=lambda s: (s["last_message"]["created_at"], s["last_message"]["_id"]), reverse=True)
        return summaries


def _order_key(doc: Dict[str, Any]):
    return (doc["created_at"], str(doc["_id"]))
