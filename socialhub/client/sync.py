import asyncio
import copy
import json
import logging
import os
import uuid
from datetime import datetime, timezone
from typing import Any, AsyncIterable, Dict, List, Optional, Set, Union

import httpx


logger = logging.getLogger(__name__)

DEFAULT_API_URL = os.getenv("SOCIALHUB_API_URL", "http://localhost:8000")

# a 2xx reply with an unexpected body fails the same way a transport error does
REQUEST_ERRORS = (httpx.HTTPError, ValueError, KeyError, TypeError)


class SyncClient:
    """Client-side view of conversations, threads and notifications.

    Three mechanisms keep the view converged with the server:

    - optimistic local mutations for the user's own actions, corrected by a
      fresh fetch if the request fails;
    - live events from the websocket, applied immediately;
    - polling on fixed intervals, which covers any event that was dropped.
    """

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_API_URL,
        user_id: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        thread_interval: float = 3.0,
        conversation_interval: float = 10.0,
        notification_interval: float = 30.0,
    ) -> None:
        self.user_id = user_id
        self.thread_interval = thread_interval
        self.conversation_interval = conversation_interval
        self.notification_interval = notification_interval
        self._http = httpx.AsyncClient(
            base_url=base_url,
            headers={"Authorization": f"Bearer {token}"},
            transport=transport,
        )

        self.conversations: List[Dict[str, Any]] = []
        self.threads: Dict[str, List[Dict[str, Any]]] = {}
        self.open_peer: Optional[str] = None
        self.notifications: List[Dict[str, Any]] = []
        self.unread_count = 0
        self.online_users: Set[str] = set()
        self.reactions: Dict[str, Dict[str, Any]] = {}
        self.my_reactions: Dict[str, str] = {}
        self.last_error: Optional[str] = None

    async def aclose(self) -> None:
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        response = await self._http.request(method, path, **kwargs)
        response.raise_for_status()
        return response.json()

    def _record_error(self, action: str, exc: Exception) -> None:
        self.last_error = f"{action} failed: {exc}"
        logger.warning(self.last_error)

    # reads

    async def refresh_conversations(self) -> List[Dict[str, Any]]:
        self.conversations = await self._request("GET", "/messages/conversations")
        return self.conversations

    async def refresh_thread(self, peer_id: str) -> List[Dict[str, Any]]:
        self.threads[peer_id] = await self._request("GET", f"/messages/{peer_id}")
        return self.threads[peer_id]

    async def open_thread(self, peer_id: str) -> List[Dict[str, Any]]:
        self.open_peer = peer_id
        return await self.refresh_thread(peer_id)

    def close_thread(self) -> None:
        self.open_peer = None

    async def refresh_notifications(self) -> None:
        self.notifications = await self._request("GET", "/notifications")
        self.unread_count = (await self._request("GET", "/notifications/unread-count"))["count"]

    # optimistic actions

    async def send_message(self, peer_id: str, content: str) -> Optional[Dict[str, Any]]:
        if not content or not content.strip():
            return None
        thread = self.threads.setdefault(peer_id, [])
        snapshot = copy.deepcopy(thread)
        pending = {
            "_id": f"local-{uuid.uuid4().hex}",
            "sender_id": self.user_id,
            "recipient_id": peer_id,
            "content": content.strip(),
            "read": False,
            "created_at": datetime.now(timezone.utc).isoformat(),
            "pending": True,
        }
        thread.append(pending)
        try:
            saved = await self._request("POST", "/messages", json={"recipientId": peer_id, "content": content})
        except REQUEST_ERRORS as exc:
            self._record_error("Send message", exc)
            await self._reload_thread(peer_id, snapshot)
            return None
        thread = self.threads.setdefault(peer_id, [])
        if any(m is pending for m in thread):
            self.threads[peer_id] = [saved if m is pending else m for m in thread]
        elif not any(m.get("_id") == saved.get("_id") for m in thread):
            # a poll replaced the thread while the request was in flight
            thread.append(saved)
        return saved

    async def delete_message(self, peer_id: str, message_id: str) -> bool:
        thread = self.threads.get(peer_id, [])
        snapshot = copy.deepcopy(thread)
        self.threads[peer_id] = [m for m in thread if m.get("_id") != message_id]
        try:
            await self._request("DELETE", f"/messages/{message_id}")
        except REQUEST_ERRORS as exc:
            self._record_error("Delete message", exc)
            await self._reload_thread(peer_id, snapshot)
            return False
        return True

    async def mark_notification_read(self, notification_id: str) -> bool:
        snapshot = (copy.deepcopy(self.notifications), self.unread_count)
        for notification in self.notifications:
            if notification.get("_id") == notification_id and not notification.get("read"):
                notification["read"] = True
                self.unread_count = max(0, self.unread_count - 1)
        try:
            await self._request("PUT", f"/notifications/{notification_id}/read")
        except REQUEST_ERRORS as exc:
            self._record_error("Mark notification read", exc)
            await self._reload_notifications(snapshot)
            return False
        return True

    async def mark_all_notifications_read(self) -> bool:
        snapshot = (copy.deepcopy(self.notifications), self.unread_count)
        for notification in self.notifications:
            notification["read"] = True
        self.unread_count = 0
        try:
            await self._request("PUT", "/notifications/mark-all-read")
        except REQUEST_ERRORS as exc:
            self._record_error("Mark all notifications read", exc)
            await self._reload_notifications(snapshot)
            return False
        return True

    async def react(self, post_id: str, kind: str) -> Optional[Dict[str, Any]]:
        snapshot = (copy.deepcopy(self.reactions.get(post_id)), self.my_reactions.get(post_id))
        summary = self.reactions.setdefault(post_id, {
            "post_id": post_id, "counts": {}, "reaction_count": 0, "like_count": 0, "likes": [],
        })
        self._apply_reaction(summary, snapshot[1], kind)
        self.my_reactions[post_id] = kind
        try:
            saved = await self._request("POST", f"/posts/{post_id}/react", json={"reactionType": kind})
        except REQUEST_ERRORS as exc:
            self._record_error("React", exc)
            await self._reload_reactions(post_id, snapshot)
            return None
        self.reactions[post_id] = saved
        return saved

    def _apply_reaction(self, summary: Dict[str, Any], previous: Optional[str], kind: str) -> None:
        if previous == kind:
            return
        counts = summary.setdefault("counts", {})
        likes = summary.setdefault("likes", [])
        if previous is not None:
            counts[previous] = max(0, counts.get(previous, 0) - 1)
            summary["reaction_count"] = max(0, summary.get("reaction_count", 0) - 1)
            if previous == "like" and self.user_id in likes:
                likes.remove(self.user_id)
        counts[kind] = counts.get(kind, 0) + 1
        summary["reaction_count"] = summary.get("reaction_count", 0) + 1
        if kind == "like":
            likes.append(self.user_id)
        summary["like_count"] = counts.get("like", 0)

    async def refresh_reactions(self, post_id: str) -> Dict[str, Any]:
        self.reactions[post_id] = await self._request("GET", f"/posts/{post_id}/reactions")
        return self.reactions[post_id]

    async def _reload_reactions(self, post_id: str, snapshot) -> None:
        summary, previous = snapshot
        self._set_my_reaction(post_id, previous)
        try:
            fresh = await self.refresh_reactions(post_id)
        except REQUEST_ERRORS as exc:
            logger.warning("Reload of reactions for %s failed: %s", post_id, exc)
            if summary is None:
                self.reactions.pop(post_id, None)
            else:
                self.reactions[post_id] = summary
            return
        if self.user_id in fresh.get("likes", []):
            self._set_my_reaction(post_id, "like")
        elif previous == "like":
            self._set_my_reaction(post_id, None)

    def _set_my_reaction(self, post_id: str, kind: Optional[str]) -> None:
        if kind is None:
            self.my_reactions.pop(post_id, None)
        else:
            self.my_reactions[post_id] = kind

    async def _reload_thread(self, peer_id: str, snapshot: List[Dict[str, Any]]) -> None:
        try:
            await self.refresh_thread(peer_id)
        except REQUEST_ERRORS as exc:
            logger.warning("Reload of thread %s failed: %s", peer_id, exc)
            self.threads[peer_id] = snapshot

    async def _reload_notifications(self, snapshot) -> None:
        try:
            await self.refresh_notifications()
        except REQUEST_ERRORS as exc:
            logger.warning("Reload of notifications failed: %s", exc)
            self.notifications, self.unread_count = snapshot

    # live events

    def apply_event(self, envelope: Dict[str, Any]) -> None:
        event = envelope.get("event")
        data = envelope.get("data")
        if event == "notification" and isinstance(data, dict):
            if any(n.get("_id") == data.get("_id") for n in self.notifications):
                return
            self.notifications.insert(0, data)
            if not data.get("read"):
                self.unread_count += 1
        elif event == "newMessage" and isinstance(data, dict):
            peer_id = data.get("sender_id")
            thread = self.threads.get(peer_id)
            if thread is not None and not any(m.get("_id") == data.get("_id") for m in thread):
                thread.append(data)
        elif event == "userOnline" and data:
            self.online_users.add(data)
        elif event == "userOffline" and data:
            self.online_users.discard(data)

    async def consume(self, events: AsyncIterable[Union[str, Dict[str, Any]]]) -> None:
        async for raw in events:
            if isinstance(raw, str):
                try:
                    raw = json.loads(raw)
                except json.JSONDecodeError:
                    logger.warning("Ignoring malformed live event: %r", raw)
                    continue
            if isinstance(raw, dict):
                self.apply_event(raw)

    # polling

    async def poll_thread(self) -> None:
        if self.open_peer is not None:
            await self.refresh_thread(self.open_peer)

    async def poll_conversations(self) -> None:
        await self.refresh_conversations()

    async def poll_notifications(self) -> None:
        await self.refresh_notifications()

    async def run(self, stop: asyncio.Event) -> None:
        await asyncio.gather(
            self._poll_loop(self.poll_thread, self.thread_interval, stop),
            self._poll_loop(self.poll_conversations, self.conversation_interval, stop),
            self._poll_loop(self.poll_notifications, self.notification_interval, stop),
        )

    async def _poll_loop(self, poll, interval: float, stop: asyncio.Event) -> None:
        while not stop.is_set():
            try:
                await poll()
            except REQUEST_ERRORS as exc:
                self._record_error(poll.__name__, exc)
            try:
                await asyncio.wait_for(stop.wait(), timeout=interval)
            except asyncio.TimeoutError:
                pass
