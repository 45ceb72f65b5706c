import asyncio

from conftest import FakeConnection
from socialhub.utils.presence import PresenceRegistry


async def test_stale_handle_does_not_evict_newer_entry():
    registry = PresenceRegistry()
    h1, h2 = FakeConnection("h1"), FakeConnection("h2")

    await registry.announce("u", h1)
    await registry.announce("u", h2)
    removed = await registry.withdraw(h1)

    assert removed is None
    assert registry.resolve("u") is h2


async def test_withdraw_removes_owner_entry():
    registry = PresenceRegistry()
    h = FakeConnection()

    await registry.announce("u", h)
    assert registry.is_online("u")

    assert await registry.withdraw(h) == "u"
    assert registry.resolve("u") is None
    assert not registry.is_online("u")


async def test_withdraw_without_announce_is_noop():
    registry = PresenceRegistry()
    await registry.announce("u", FakeConnection("other"))

    assert await registry.withdraw(FakeConnection("never-joined")) is None
    assert registry.online_users() == ["u"]


async def test_handle_reannouncing_as_other_user_releases_first():
    registry = PresenceRegistry()
    h = FakeConnection()

    await registry.announce("u", h)
    released = await registry.announce("v", h)

    assert released == "u"
    assert registry.resolve("u") is None
    assert registry.resolve("v") is h


async def test_concurrent_announce_and_withdraw_keep_latest():
    registry = PresenceRegistry()
    old, new = FakeConnection("old"), FakeConnection("new")
    await registry.announce("u", old)

    await asyncio.gather(registry.withdraw(old), registry.announce("u", new))

    assert registry.resolve("u") is new
