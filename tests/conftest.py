"""Pytest configuration and fixtures."""

import asyncio
import json
import sys
from pathlib import Path

import pytest
from starlette.websockets import WebSocketState

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from monitor_bridge.bus import BusConnectionError, QueryError  # noqa: E402
from monitor_bridge.models import RawMessage  # noqa: E402


def subject_matches(pattern: str, subject: str) -> bool:
    """NATS wildcard matching: '*' is one token, '>' one or more trailing tokens."""
    pattern_tokens = pattern.split(".")
    subject_tokens = subject.split(".")
    for i, token in enumerate(pattern_tokens):
        if token == ">":
            return len(subject_tokens) > i
        if i >= len(subject_tokens):
            return False
        if token != "*" and token != subject_tokens[i]:
            return False
    return len(pattern_tokens) == len(subject_tokens)


class FakeSubscription:
    """In-memory stand-in for BusSubscription."""

    def __init__(self, pattern: str):
        self.pattern = pattern
        self.closed = False
        self._queue: asyncio.Queue = asyncio.Queue()

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        while True:
            message = await self._queue.get()
            if message is None:
                return
            yield message

    def deliver(self, message: RawMessage) -> None:
        if not self.closed:
            self._queue.put_nowait(message)

    def end(self) -> None:
        """Simulate the bus connection going away."""
        self._queue.put_nowait(None)

    async def close(self) -> None:
        if not self.closed:
            self.closed = True
            self._queue.put_nowait(None)


class FakeBus:
    """In-memory bus implementing subscribe and durable subject counts."""

    def __init__(self, counts: dict[str, int] | None = None):
        self.counts = dict(counts or {})
        self.is_connected = True
        self.subscriptions: list[FakeSubscription] = []
        self.backlog: list[RawMessage] = []
        self.query_error: Exception | None = None
        self.fail_subscribe = False
        self.queried_streams: list[str] = []

    async def subscribe(self, pattern: str) -> FakeSubscription:
        if self.fail_subscribe:
            raise BusConnectionError(f"Cannot subscribe to {pattern}")
        sub = FakeSubscription(pattern)
        for message in self.backlog:
            if subject_matches(pattern, message.subject):
                sub.deliver(message)
        self.subscriptions.append(sub)
        return sub

    def publish(self, subject: str, payload) -> None:
        data = payload if isinstance(payload, bytes) else json.dumps(payload).encode()
        for sub in self.subscriptions:
            if subject_matches(sub.pattern, subject):
                sub.deliver(RawMessage(subject=subject, data=data))

    async def query_durable_subject_counts(self, stream_name: str) -> dict[str, int]:
        self.queried_streams.append(stream_name)
        if self.query_error is not None:
            raise self.query_error
        return dict(self.counts)


class FakeWebSocket:
    """Duck-typed Starlette WebSocket recording what the server sends."""

    def __init__(self, block_sends: bool = False):
        self.client_state = WebSocketState.CONNECTED
        self.application_state = WebSocketState.CONNECTED
        self.accepted = False
        self.closed = False
        self.sent: list[str] = []
        self._inbox: asyncio.Queue = asyncio.Queue()
        self._unblock = asyncio.Event()
        if not block_sends:
            self._unblock.set()

    async def accept(self) -> None:
        self.accepted = True

    async def receive(self) -> dict:
        return await self._inbox.get()

    async def send_text(self, data: str) -> None:
        await self._unblock.wait()
        if self.client_state != WebSocketState.CONNECTED:
            raise RuntimeError("socket closed")
        self.sent.append(data)

    async def close(self, code: int = 1000) -> None:
        self.closed = True
        self.application_state = WebSocketState.DISCONNECTED
        self._inbox.put_nowait({"type": "websocket.disconnect", "code": code})

    def client_says(self, text: str) -> None:
        self._inbox.put_nowait({"type": "websocket.receive", "text": text})

    def client_sends_bytes(self, data: bytes) -> None:
        self._inbox.put_nowait({"type": "websocket.receive", "bytes": data})

    def subscribe(self, pattern: str) -> None:
        self.client_says(json.dumps({"action": "subscribe", "pattern": pattern}))

    def disconnect(self) -> None:
        self._inbox.put_nowait({"type": "websocket.disconnect", "code": 1000})

    def frames(self) -> list[dict]:
        return [json.loads(frame) for frame in self.sent]


@pytest.fixture
def fake_bus():
    """Create an in-memory bus."""
    return FakeBus()


@pytest.fixture
def make_websocket():
    """Factory for fake WebSocket clients."""
    return FakeWebSocket


@pytest.fixture
def registry():
    """Agent registry under the "ns" subject namespace."""
    from monitor_bridge.config import build_agent_registry

    return build_agent_registry(namespace="ns", stream="ns-events")


@pytest.fixture
def query_error():
    """A typical durable-count failure."""
    return QueryError("stream not found")


@pytest.fixture
def wait_until():
    """Poll a predicate until it holds or a timeout expires."""

    async def _wait_until(predicate, timeout: float = 1.0) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while not predicate():
            if loop.time() > deadline:
                raise AssertionError("condition not met before timeout")
            await asyncio.sleep(0.005)

    return _wait_until
