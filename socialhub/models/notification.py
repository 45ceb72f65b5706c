from datetime import datetime
from typing import Literal, Optional, TypedDict


NotificationKind = Literal["reaction", "comment", "follow", "message", "share"]
NOTIFICATION_KINDS = ("reaction", "comment", "follow", "message", "share")


class NotificationDocument(TypedDict, total=False):
    _id: str
    recipient_id: str
    sender_id: str
    kind: NotificationKind
    text: str
    read: bool
    related_post_id: Optional[str]
    related_comment_id: Optional[str]
    created_at: datetime
