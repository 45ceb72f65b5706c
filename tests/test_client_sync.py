import asyncio
import copy
import json

import httpx
import pytest

from socialhub.client import SyncClient
from socialhub.main import app
from socialhub.utils.security import create_access_token


def asgi_client(user_id):
    return SyncClient(
        create_access_token(user_id),
        base_url="http://test",
        user_id=user_id,
        transport=httpx.ASGITransport(app=app),
    )


def mock_client(handler):
    return SyncClient("token", base_url="http://test", user_id="alice", transport=httpx.MockTransport(handler))


async def test_sync_against_live_app(api):
    alice, bob = asgi_client("alice"), asgi_client("bob")
    try:
        saved = await alice.send_message("bob", "hi")
        await alice.send_message("bob", "there")
        assert saved["content"] == "hi"
        assert [m["content"] for m in alice.threads["bob"]] == ["hi", "there"]
        assert not any(m.get("pending") for m in alice.threads["bob"])

        await bob.refresh_conversations()
        assert bob.conversations[0]["unread_count"] == 2

        await bob.open_thread("alice")
        await bob.poll_conversations()
        assert bob.conversations[0]["unread_count"] == 0
    finally:
        await alice.aclose()
        await bob.aclose()


async def test_failed_send_reloads_thread_from_server():
    server_thread = [{"_id": "m1", "sender_id": "bob", "recipient_id": "alice", "content": "yo"}]

    def handler(request):
        if request.method == "POST":
            return httpx.Response(500, json={"error": "Database unavailable"})
        return httpx.Response(200, json=server_thread)

    client = mock_client(handler)
    result = await client.send_message("bob", "lost")

    assert result is None
    assert client.threads["bob"] == server_thread
    assert "Send message failed" in client.last_error
    await client.aclose()


async def test_failed_send_with_failed_reload_restores_snapshot():
    def handler(request):
        raise httpx.ConnectError("offline", request=request)

    client = mock_client(handler)
    client.threads["bob"] = [{"_id": "m1", "content": "earlier"}]

    await client.send_message("bob", "lost")

    assert client.threads["bob"] == [{"_id": "m1", "content": "earlier"}]
    await client.aclose()


async def test_blank_message_is_not_sent():
    def handler(request):
        pytest.fail("no request expected")

    client = mock_client(handler)
    assert await client.send_message("bob", "   ") is None
    await client.aclose()


async def test_optimistic_delete_rolls_back_on_forbidden():
    server_thread = [{"_id": "m1", "sender_id": "bob", "content": "not yours"}]

    def handler(request):
        if request.method == "DELETE":
            return httpx.Response(403, json={"error": "You can only delete your own messages"})
        return httpx.Response(200, json=server_thread)

    client = mock_client(handler)
    client.threads["bob"] = list(server_thread)

    assert await client.delete_message("bob", "m1") is False
    assert client.threads["bob"] == server_thread
    await client.aclose()


async def test_mark_read_is_optimistic():
    def handler(request):
        return httpx.Response(200, json={"success": True})

    client = mock_client(handler)
    client.notifications = [{"_id": "n1", "read": False}, {"_id": "n2", "read": False}]
    client.unread_count = 2

    assert await client.mark_notification_read("n1") is True
    assert client.unread_count == 1
    assert client.notifications[0]["read"] is True

    assert await client.mark_all_notifications_read() is True
    assert client.unread_count == 0
    await client.aclose()


async def test_failed_mark_read_reloads_notifications():
    def handler(request):
        if request.method == "PUT":
            return httpx.Response(500, json={"error": "Database unavailable"})
        if request.url.path == "/notifications/unread-count":
            return httpx.Response(200, json={"count": 1})
        return httpx.Response(200, json=[{"_id": "n1", "read": False}])

    client = mock_client(handler)
    client.notifications = [{"_id": "n1", "read": False}]
    client.unread_count = 1

    assert await client.mark_notification_read("n1") is False
    assert client.notifications == [{"_id": "n1", "read": False}]
    assert client.unread_count == 1
    await client.aclose()


async def test_live_notification_is_prepended_once():
    client = mock_client(lambda request: httpx.Response(200, json=[]))
    client.notifications = [{"_id": "old", "read": True}]

    event = {"event": "notification", "data": {"_id": "new", "kind": "reaction", "read": False}}
    client.apply_event(event)
    client.apply_event(event)

    assert [n["_id"] for n in client.notifications] == ["new", "old"]
    assert client.unread_count == 1
    await client.aclose()


async def test_live_message_appends_to_known_thread():
    client = mock_client(lambda request: httpx.Response(200, json=[]))
    client.threads["bob"] = []

    message = {"_id": "m9", "sender_id": "bob", "recipient_id": "alice", "content": "hey"}
    client.apply_event({"event": "newMessage", "data": message})
    client.apply_event({"event": "newMessage", "data": message})
    client.apply_event({"event": "newMessage", "data": {"_id": "m10", "sender_id": "carol"}})

    assert client.threads == {"bob": [message]}
    await client.aclose()


async def test_consume_tracks_presence_and_skips_garbage():
    client = mock_client(lambda request: httpx.Response(200, json=[]))

    async def stream():
        yield json.dumps({"event": "userOnline", "data": "bob"})
        yield "{garbage"
        yield {"event": "userOnline", "data": "carol"}
        yield json.dumps({"event": "userOffline", "data": "bob"})
        yield json.dumps({"event": "somethingElse", "data": 1})

    await client.consume(stream())

    assert client.online_users == {"carol"}
    await client.aclose()


async def test_polling_recovers_after_failures():
    calls = {"conversations": 0, "notifications": 0}

    def handler(request):
        path = request.url.path
        if path == "/messages/conversations":
            calls["conversations"] += 1
            if calls["conversations"] == 1:
                return httpx.Response(500, json={"error": "Database unavailable"})
            return httpx.Response(200, json=[{"peer_id": "bob", "unread_count": 3}])
        if path == "/notifications/unread-count":
            return httpx.Response(200, json={"count": 4})
        if path == "/notifications":
            calls["notifications"] += 1
            return httpx.Response(200, json=[])
        return httpx.Response(200, json=[])

    client = SyncClient(
        "token",
        base_url="http://test",
        transport=httpx.MockTransport(handler),
        thread_interval=0.01,
        conversation_interval=0.01,
        notification_interval=0.01,
    )
    stop = asyncio.Event()
    runner = asyncio.create_task(client.run(stop))
    await asyncio.sleep(0.2)
    stop.set()
    await asyncio.wait_for(runner, timeout=1)

    assert calls["conversations"] >= 2
    assert client.conversations == [{"peer_id": "bob", "unread_count": 3}]
    assert client.unread_count == 4
    assert client.last_error is not None
    await client.aclose()


async def test_polling_survives_malformed_bodies():
    calls = {"conversations": 0}

    def handler(request):
        path = request.url.path
        if path == "/messages/conversations":
            calls["conversations"] += 1
            if calls["conversations"] == 1:
                return httpx.Response(200, text="<html>bad gateway</html>")
            return httpx.Response(200, json=[{"peer_id": "bob", "unread_count": 1}])
        if path == "/notifications/unread-count":
            return httpx.Response(200, json={})
        return httpx.Response(200, json=[])

    client = SyncClient(
        "token",
        base_url="http://test",
        transport=httpx.MockTransport(handler),
        thread_interval=0.01,
        conversation_interval=0.01,
        notification_interval=0.01,
    )
    stop = asyncio.Event()
    runner = asyncio.create_task(client.run(stop))
    await asyncio.sleep(0.2)
    stop.set()
    await asyncio.wait_for(runner, timeout=1)

    assert calls["conversations"] >= 2
    assert client.conversations == [{"peer_id": "bob", "unread_count": 1}]
    await client.aclose()


async def test_send_with_non_json_reply_reloads_thread():
    def handler(request):
        if request.method == "POST":
            return httpx.Response(200, text="ok")
        return httpx.Response(200, json=[])

    client = mock_client(handler)

    assert await client.send_message("bob", "hi") is None
    assert client.threads["bob"] == []
    await client.aclose()


async def test_saved_message_is_kept_when_a_poll_replaced_the_thread():
    saved = {"_id": "m2", "sender_id": "alice", "recipient_id": "bob", "content": "second"}
    client = None

    def handler(request):
        # an in-flight poll lands before the send completes
        client.threads["bob"] = [{"_id": "m1", "content": "first"}]
        return httpx.Response(201, json=saved)

    client = mock_client(handler)
    await client.send_message("bob", "second")

    assert [m["_id"] for m in client.threads["bob"]] == ["m1", "m2"]
    await client.aclose()


async def test_react_applies_locally_then_takes_server_summary():
    seen = []
    server_summary = {
        "post_id": "p1",
        "counts": {"like": 0, "love": 1},
        "reaction_count": 1,
        "like_count": 0,
        "likes": [],
    }

    def handler(request):
        seen.append(json.loads(request.content))
        return httpx.Response(200, json=server_summary)

    client = mock_client(handler)
    client.reactions["p1"] = {"post_id": "p1", "counts": {"like": 1}, "reaction_count": 1, "like_count": 1, "likes": ["alice"]}
    client.my_reactions["p1"] = "like"

    client._apply_reaction(client.reactions["p1"], "like", "love")
    assert client.reactions["p1"]["counts"] == {"like": 0, "love": 1}
    assert client.reactions["p1"]["likes"] == []
    assert client.reactions["p1"]["reaction_count"] == 1

    client.reactions["p1"] = {"post_id": "p1", "counts": {"like": 1}, "reaction_count": 1, "like_count": 1, "likes": ["alice"]}
    assert await client.react("p1", "love") == server_summary
    assert seen == [{"reactionType": "love"}]
    assert client.reactions["p1"] == server_summary
    assert client.my_reactions["p1"] == "love"
    await client.aclose()


async def test_failed_react_reloads_reactions():
    server_summary = {"post_id": "p1", "counts": {"like": 2}, "reaction_count": 2, "like_count": 2, "likes": ["bob", "carol"]}

    def handler(request):
        if request.method == "POST":
            return httpx.Response(500, json={"error": "Database unavailable"})
        return httpx.Response(200, json=server_summary)

    client = mock_client(handler)

    assert await client.react("p1", "like") is None
    assert client.reactions["p1"] == server_summary
    assert "p1" not in client.my_reactions
    assert "React failed" in client.last_error
    await client.aclose()


async def test_failed_react_with_failed_reload_restores_snapshot():
    def handler(request):
        raise httpx.ConnectError("offline", request=request)

    client = mock_client(handler)
    before = {"post_id": "p1", "counts": {"haha": 1}, "reaction_count": 1, "like_count": 0, "likes": []}
    client.reactions["p1"] = copy.deepcopy(before)

    await client.react("p1", "like")

    assert client.reactions["p1"] == before
    assert "p1" not in client.my_reactions
    await client.aclose()
