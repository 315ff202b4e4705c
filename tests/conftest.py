"""Shared fixtures: temp sqlite actor storage, a controllable clock, an in-memory
cache and a LINE API double built on httpx.MockTransport."""

import json
import os
import random
import tempfile

# Must be set before groupbot.load_secrets is imported.
_tmp_dir = tempfile.mkdtemp(prefix="groupbot-tests-")
os.environ.setdefault("DATABASE_URL", f"sqlite+aiosqlite:///{_tmp_dir}/app.sqlite3")
os.environ.setdefault("LINE_CHANNEL_ACCESS_TOKEN", "test-token")
os.environ["ENABLE_SCHEDULER"] = "0"

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from groupbot.crud import CreateData
from groupbot.game_state_object import GameStateNamespace
from groupbot.services.game import RollGameService
from groupbot.services.line_api import LineClient

START_MS = 1_700_000_000_000


class FakeClock:
    def __init__(self, now_ms: int = START_MS):
        self.now_ms = now_ms

    def __call__(self) -> int:
        return self.now_ms

    def advance(self, ms: int) -> None:
        self.now_ms += ms


class FakeCache:
    """Stands in for KVCache: same get/put surface, values kept in a dict."""

    def __init__(self):
        self.values = {}
        self.ttls = {}

    async def get(self, key):
        return self.values.get(key)

    async def put(self, key, value, expiration_ttl):
        self.values[key] = value
        self.ttls[key] = expiration_ttl


class LineRecorder:
    """MockTransport handler answering the LINE reply and group member profile endpoints."""

    def __init__(self, names=None, reply_status=200):
        self.names = names or {}
        self.reply_status = reply_status
        self.replies = []
        self.profile_lookups = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path == "/v2/bot/message/reply":
            self.replies.append(json.loads(request.content))
            return httpx.Response(self.reply_status, json={})
        if "/member/" in path:
            user_id = path.rsplit("/", 1)[-1]
            self.profile_lookups.append(user_id)
            if user_id in self.names:
                return httpx.Response(200, json={"displayName": self.names[user_id]})
            return httpx.Response(404, json={"message": "Not found"})
        return httpx.Response(404)

    @property
    def texts(self):
        """Text of every reply, one list per reply call."""
        return [[message.get("text") for message in reply["messages"]] for reply in self.replies]


@pytest.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path}/actor_storage.sqlite3")
    await CreateData.create_table(engine)
    yield async_sessionmaker(autocommit=False, class_=AsyncSession, bind=engine)
    await engine.dispose()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def games(session_factory, clock):
    return GameStateNamespace(session_factory, clock=clock, rng=random.Random(7))


@pytest.fixture
def line_recorder():
    return LineRecorder(names={"u1": "Alice", "u2": "Bob", "u3": "Carol"})


@pytest.fixture
def line_client(line_recorder):
    return LineClient("test-token", transport=httpx.MockTransport(line_recorder))


@pytest.fixture
def roll_game_service(games, line_client):
    return RollGameService(games, line_client)


@pytest.fixture
def fake_cache():
    return FakeCache()
