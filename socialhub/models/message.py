from datetime import datetime
from typing import TypedDict


class MessageDocument(TypedDict, total=False):
    _id: str
    sender_id: str
    recipient_id: str
    content: str
    # flipped once by the recipient reading the thread
    read: bool
    created_at: datetime


class ConversationSummary(TypedDict, total=False):
    peer_id: str
    last_message: MessageDocument
    unread_count: int
    # only present when the users collection knows the peer
    peer: dict
