import asyncio
import logging
from typing import Any, Dict, List, Optional

from fastapi.encoders import jsonable_encoder

from socialhub import config
from socialhub.utils.presence import PresenceRegistry


logger = logging.getLogger(__name__)


class LiveChannel:
    """Push side of the websocket layer.

    Delivery is at-most-once and best effort: if the target is not in the
    presence registry, or the send fails or times out, the event is dropped.
    The persisted stores stay the source of truth and clients catch up by
    polling.
    """

    def __init__(self, presence: PresenceRegistry, push_timeout: float = config.PUSH_TIMEOUT_SECONDS) -> None:
        self.presence = presence
        self.push_timeout = push_timeout
        self.active_connections: List[Any] = []

    def connect(self, handle: Any) -> None:
        self.active_connections.append(handle)

    async def join(self, user_id: str, handle: Any) -> None:
        released = await self.presence.announce(user_id, handle)
        if released is not None:
            await self.broadcast("userOffline", released, exclude=handle)
        await self.broadcast("userOnline", user_id, exclude=handle)

    async def disconnect(self, handle: Any) -> Optional[str]:
        try:
            self.active_connections.remove(handle)
        except ValueError:
            pass
        user_id = await self.presence.withdraw(handle)
        if user_id is not None:
            await self.broadcast("userOffline", user_id)
        return user_id

    async def push_to_user(self, user_id: str, event: str, data: Any) -> bool:
        handle = self.presence.resolve(user_id)
        if handle is None:
            logger.debug("Dropping %s for offline user %s", event, user_id)
            return False
        return await self.send(handle, event, data)

    async def broadcast(self, event: str, data: Any, exclude: Any = None) -> int:
        targets = [conn for conn in list(self.active_connections) if conn is not exclude]
        if not targets:
            return 0
        results = await asyncio.gather(*(self.send(conn, event, data) for conn in targets))
        return sum(1 for ok in results if ok)

    async def send(self, handle: Any, event: str, data: Any) -> bool:
        envelope: Dict[str, Any] = {"event": event, "data": jsonable_encoder(data)}
        try:
            await asyncio.wait_for(handle.send_json(envelope), timeout=self.push_timeout)
        except asyncio.TimeoutError:
            logger.debug("Push of %s timed out", event)
            return False
        except Exception as exc:
            logger.debug("Push of %s failed: %s", event, exc)
            return False
        return True
