import asyncio

import httpx
import pytest
from mongomock_motor import AsyncMongoMockClient

from socialhub.database import connection
from socialhub.main import app
from socialhub.utils.live_channel import LiveChannel
from socialhub.utils.presence import PresenceRegistry
from socialhub.utils.security import create_access_token


class FakeConnection:
    """Stands in for a websocket: records every envelope sent to it."""

    def __init__(self, name: str = "conn", fail: bool = False, delay: float = 0.0) -> None:
        self.name = name
        self.fail = fail
        self.delay = delay
        self.sent = []

    async def send_json(self, data):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(data)

    def events(self, name=None):
        return [e for e in self.sent if name is None or e["event"] == name]

    def __repr__(self):
        return f"FakeConnection({self.name})"


@pytest.fixture
def mongo_client():
    return AsyncMongoMockClient()


@pytest.fixture
def db(mongo_client):
    return mongo_client["socialhub_test"]


@pytest.fixture
def live():
    return LiveChannel(PresenceRegistry(), push_timeout=0.2)


@pytest.fixture
def patch_mongo(monkeypatch, mongo_client):
    monkeypatch.setattr(connection, "AsyncIOMotorClient", lambda *args, **kwargs: mongo_client)
    monkeypatch.setattr(connection.config, "MONGODB_DB", "socialhub_test")


@pytest.fixture
async def api(patch_mongo):
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
            yield client


def auth(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}
