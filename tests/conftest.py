"""Pytest configuration and shared fixtures."""

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional, Union

import pytest

# Add project root to path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from flipstaq.auth import MemoryTokenStore  # noqa: E402
from flipstaq.errors import TransportClosed, TransportError  # noqa: E402
from flipstaq.realtime import ChannelConfig, RealtimeChannelClient  # noqa: E402
from flipstaq.settings import get_settings  # noqa: E402

TEST_WS_URL = "ws://relay.test/ws"


class FakeConnection:
    """In-memory socket: tests push inbound frames and read what was sent."""

    def __init__(self):
        self.sent: list[str] = []
        self.closed_with: Optional[tuple[int, str]] = None
        self._inbox: asyncio.Queue = asyncio.Queue()
        self._open = True

    @property
    def is_open(self) -> bool:
        return self._open

    async def send(self, data: str) -> None:
        if not self._open:
            raise TransportClosed(1006, "send on closed socket")
        self.sent.append(data)

    async def recv(self) -> Union[str, bytes]:
        item = await self._inbox.get()
        if isinstance(item, BaseException):
            self._open = False
            raise item
        return item

    async def close(self, code: int = 1000, reason: str = "") -> None:
        self._open = False
        self.closed_with = (code, reason)
        self._inbox.put_nowait(TransportClosed(code, reason))

    # ── Test helpers ──

    def push(self, frame: Union[dict, str]) -> None:
        self._inbox.put_nowait(frame if isinstance(frame, str) else json.dumps(frame))

    def drop(self, code: int = 1006, reason: str = "") -> None:
        """Simulate the server side closing the socket."""
        self._inbox.put_nowait(TransportClosed(code, reason))

    def fail(self, message: str = "connection reset") -> None:
        self._inbox.put_nowait(TransportError(message))

    def sent_frames(self) -> list[dict]:
        return [json.loads(s) for s in self.sent]

    def sent_events(self) -> list[str]:
        return [f["event"] for f in self.sent_frames()]


class FakeTransport:
    """Transport handing out FakeConnections.

    ``fail_next`` refuses that many opens; ``always_fail`` refuses all of
    them; ``gate`` (when set) holds every open until the event is set.
    """

    def __init__(self):
        self.uris: list[str] = []
        self.connections: list[FakeConnection] = []
        self.fail_next = 0
        self.always_fail = False
        self.gate: Optional[asyncio.Event] = None

    async def connect(self, uri: str) -> FakeConnection:
        self.uris.append(uri)
        if self.gate is not None:
            await self.gate.wait()
        if self.always_fail or self.fail_next > 0:
            self.fail_next = max(0, self.fail_next - 1)
            raise TransportError("connection refused")
        conn = FakeConnection()
        self.connections.append(conn)
        return conn

    @property
    def last(self) -> FakeConnection:
        return self.connections[-1]


class RecordingSleep:
    """Backoff sleep that returns immediately and records each delay."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


async def drain(rounds: int = 50) -> None:
    """Let pending tasks (reader, reconnect chain) run to quiescence."""
    for _ in range(rounds):
        await asyncio.sleep(0)


@pytest.fixture(autouse=True)
def reset_settings():
    """Settings are cached; clear the cache around every test."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def backoff_sleep():
    return RecordingSleep()


@pytest.fixture
def token_store():
    return MemoryTokenStore("test-token")


@pytest.fixture
def channel_config():
    return ChannelConfig(url=TEST_WS_URL, heartbeat_interval=3600.0)


@pytest.fixture
def client(token_store, channel_config, transport, backoff_sleep):
    return RealtimeChannelClient(
        token_store,
        config=channel_config,
        transport=transport,
        backoff_sleep=backoff_sleep,
    )
