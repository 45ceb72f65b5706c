import pytest

from conftest import FakeConnection
from socialhub.exceptions import ValidationError
from socialhub.repositories.activity_repository import PostRepository
from socialhub.repositories.notification_repository import NotificationRepository
from socialhub.repositories.user_repository import UserRepository
from socialhub.services.notification_service import NotificationService


@pytest.fixture
def repo(db):
    return NotificationRepository(db)


@pytest.fixture
def service(repo, db, live):
    return NotificationService(repo, UserRepository(db), live, post_repo=PostRepository(db))


async def test_self_notification_is_suppressed(service, db):
    result = await service.create("alice", "alice", "reaction", "reacted to your post")

    assert result is None
    assert await db["notifications"].count_documents({}) == 0


async def test_unknown_kind_is_rejected(service):
    with pytest.raises(ValidationError):
        await service.create("bob", "alice", "poke", "poked you")


async def test_list_is_newest_first_and_limited(service, repo):
    for i in range(5):
        await service.create("bob", "alice", "comment", f"comment {i}")

    items = await repo.list_for_user("bob", limit=3)

    assert [n["text"] for n in items] == ["comment 4", "comment 3", "comment 2"]


async def test_list_only_returns_own_notifications(service):
    await service.create("bob", "alice", "follow", "started following you")
    await service.create("carol", "alice", "follow", "started following you")

    items = await service.list_for_user("bob")
    assert len(items) == 1
    assert items[0]["recipient_id"] == "bob"
    assert items[0]["sender"] == {"_id": "alice"}


async def test_unread_count_and_mark_read(service):
    first = await service.create("bob", "alice", "share", "shared your post")
    await service.create("bob", "carol", "share", "shared your post")
    assert await service.unread_count("bob") == 2

    await service.mark_read(first["_id"], "bob")

    assert await service.unread_count("bob") == 1


async def test_mark_read_by_non_owner_is_silent(service, db):
    notification = await service.create("bob", "alice", "comment", "commented on your post")

    await service.mark_read(notification["_id"], "mallory")
    await service.mark_read("5f0000000000000000000000", "bob")
    await service.mark_read("garbage", "bob")

    stored = await db["notifications"].find_one({"recipient_id": "bob"})
    assert stored["read"] is False


async def test_mark_all_read_only_touches_caller(service):
    await service.create("bob", "alice", "comment", "commented on your post")
    await service.create("bob", "alice", "reaction", "reacted to your post")
    await service.create("carol", "alice", "follow", "started following you")

    await service.mark_all_read("bob")

    assert await service.unread_count("bob") == 0
    assert await service.unread_count("carol") == 1


async def test_create_pushes_with_sender_summary(service, db, live):
    await db["users"].insert_one({"_id": "alice", "name": "Alice", "profile_picture": None})
    bob_socket = FakeConnection("bob")
    live.connect(bob_socket)
    await live.join("bob", bob_socket)

    notification = await service.create("bob", "alice", "follow", "started following you")

    pushed = bob_socket.events("notification")
    assert len(pushed) == 1
    assert pushed[0]["data"]["_id"] == notification["_id"]
    assert pushed[0]["data"]["kind"] == "follow"
    assert pushed[0]["data"]["sender"]["name"] == "Alice"


async def test_offline_recipient_still_gets_stored_notification(service):
    notification = await service.create("bob", "alice", "follow", "started following you")

    assert notification is not None
    assert await service.unread_count("bob") == 1


async def test_list_includes_related_post_title(service, db):
    post = await db["posts"].insert_one({"author_id": "bob", "title": "Weekend hike"})
    post_id = str(post.inserted_id)
    await service.create("bob", "alice", "comment", "commented on your post", related_post_id=post_id)
    await service.create("bob", "carol", "follow", "started following you")

    items = await service.list_for_user("bob")

    assert "related_post" not in items[0]
    assert items[1]["related_post"] == {"_id": post_id, "title": "Weekend hike"}
