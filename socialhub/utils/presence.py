import asyncio
from typing import Any, Dict, List, Optional


class PresenceRegistry:
    """Process-local map of user id to its live connection handle.

    At most one handle per user: the latest announce wins. A reverse map
    from handle to user is kept so a disconnecting socket can be resolved
    without knowing who it was.
    """

    def __init__(self) -> None:
        self._lock = asyncio.Lock()
        self._by_user: Dict[str, Any] = {}
        self._by_handle: Dict[int, str] = {}

    async def announce(self, user_id: str, handle: Any) -> Optional[str]:
        """Bind ``handle`` to ``user_id``.

        Returns the user the handle was previously bound to if that binding
        was dropped (the same socket re-announcing as someone else).
        """
        async with self._lock:
            released = None
            previous_user = self._by_handle.get(id(handle))
            if previous_user is not None and previous_user != user_id:
                if self._by_user.get(previous_user) is handle:
                    del self._by_user[previous_user]
                    released = previous_user

            previous_handle = self._by_user.get(user_id)
            if previous_handle is not None and previous_handle is not handle:
                self._by_handle.pop(id(previous_handle), None)

            self._by_user[user_id] = handle
            self._by_handle[id(handle)] = user_id
            return released

    async def withdraw(self, handle: Any) -> Optional[str]:
        """Remove the entry owned by ``handle``.

        Returns the user id whose entry was removed, or None when the
        handle never announced or has since been superseded.
        """
        async with self._lock:
            user_id = self._by_handle.pop(id(handle), None)
            if user_id is None:
                return None
            if self._by_user.get(user_id) is not handle:
                return None
            del self._by_user[user_id]
            return user_id

    def resolve(self, user_id: str) -> Optional[Any]:
        return self._by_user.get(user_id)

    def is_online(self, user_id: str) -> bool:
        return user_id in self._by_user

    def online_users(self) -> List[str]:
        return list(self._by_user)
