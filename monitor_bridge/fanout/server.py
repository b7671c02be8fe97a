"""LiveFanoutServer: per-client bus subscriptions pushed over WebSockets.

Every subscribe command opens its own upstream subscription, even when
another client already follows the same pattern. Delivery is best-effort:
a frame that cannot be queued for a client right away is dropped.
"""

import asyncio
import json
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Protocol

from starlette.websockets import WebSocketState

from ..bus import BusConnectionError, BusSubscription, IBusConnection
from ..classifier import classify_message
from ..logging_config import get_logger
from ..models import LiveCounters

logger = get_logger(__name__)


class WebSocketProtocol(Protocol):
    """The parts of a Starlette WebSocket the fan-out relies on."""

    client_state: WebSocketState
    application_state: WebSocketState

    async def accept(self) -> None: ...

    async def receive(self) -> dict: ...

    async def send_text(self, data: str) -> None: ...

    async def close(self, code: int = 1000) -> None: ...

class SessionState(str, Enum):
    """Lifecycle of one live client."""

    CONNECTED = "connected"
    SUBSCRIBING = "subscribing"
    STREAMING = "streaming"
    CLOSED = "closed"


@dataclass
class LiveSubscription:
    """A bus subscription owned by one client, and the task consuming it."""

    pattern: str
    subscription: BusSubscription
    task: asyncio.Task


class ClientSession:
    """One connected live client with a bounded outbox."""

    def __init__(
        self,
        websocket: WebSocketProtocol,
        outbox_size: int = 256,
        on_broken: Callable[["ClientSession"], Awaitable[None]] | None = None,
    ):
        self.id = str(uuid.uuid4())
        self.websocket = websocket
        self.state = SessionState.CONNECTED
        self.subscriptions: list[LiveSubscription] = []
        self.delivered = 0
        self.dropped = 0
        self._outbox: asyncio.Queue[str] = asyncio.Queue(maxsize=max(1, outbox_size))
        self._writer: asyncio.Task | None = None
        self._broken = False
        self._on_broken = on_broken
        self._closer: asyncio.Task | None = None

    def is_writable(self) -> bool:
        """Whether a frame can be handed to this client without waiting."""
        return (
            self.state is not SessionState.CLOSED
            and not self._broken
            and self.websocket.client_state == WebSocketState.CONNECTED
            and self.websocket.application_state == WebSocketState.CONNECTED
            and not self._outbox.full()
        )

    def try_send(self, frame: str) -> bool:
        """Queue a frame if the client is writable; drop it otherwise."""
        if not self.is_writable():
            self.dropped += 1
            return False
        self._outbox.put_nowait(frame)
        return True

    def start_writer(self) -> None:
        if self._writer is None:
            self._writer = asyncio.create_task(self._drain())

    async def _drain(self) -> None:
        while True:
            frame = await self._outbox.get()
            try:
                await self.websocket.send_text(frame)
            except Exception as e:
                logger.debug("Send to client %s failed: %s", self.id, e)
                self._broken = True
                # Runs outside the writer, which on_close cancels
                if self._on_broken is not None:
                    self._closer = asyncio.create_task(self._on_broken(self))
                return
            self.delivered += 1

    async def stop_writer(self) -> None:
        if self._writer is None:
            return
        self._writer.cancel()
        await asyncio.gather(self._writer, return_exceptions=True)
        self._writer = None


def parse_command(text: str) -> dict[str, Any] | None:
    """Decode a control-channel command; None when it is not a JSON object."""
    try:
        command = json.loads(text)
    except ValueError:
        return None
    return command if isinstance(command, dict) else None


class LiveFanoutServer:
    """Accepts live clients and streams classified bus events to them."""

    def __init__(
        self,
        bus: IBusConnection,
        counters: LiveCounters | None = None,
        outbox_size: int = 256,
    ):
        self._bus = bus
        self._counters = counters if counters is not None else LiveCounters()
        self._outbox_size = outbox_size
        self._sessions: dict[str, ClientSession] = {}

    @property
    def counters(self) -> LiveCounters:
        return self._counters

    @property
    def client_count(self) -> int:
        return len(self._sessions)

    @property
    def sessions(self) -> list[ClientSession]:
        return list(self._sessions.values())

    async def on_connect(self, websocket: WebSocketProtocol) -> ClientSession:
        """Register a freshly accepted connection."""
        session = ClientSession(websocket, self._outbox_size, on_broken=self._close_broken)
        session.start_writer()
        self._sessions[session.id] = session
        logger.info("Client %s connected (%s total)", session.id, self.client_count)
        return session

    async def on_message(self, session: ClientSession, text: str) -> None:
        """Handle one control-channel command from a client."""
        command = parse_command(text)
        if command is None:
            logger.warning("Ignoring malformed command from %s: %.100s", session.id, text)
            return

        action = command.get("action")
        pattern = command.get("pattern")
        if action != "subscribe" or not isinstance(pattern, str) or not pattern:
            logger.warning(
                "Ignoring unsupported command from %s: action=%r", session.id, action
            )
            return

        await self._subscribe(session, pattern)

    async def _subscribe(self, session: ClientSession, pattern: str) -> None:
        if session.state is SessionState.CLOSED:
            return

        previous = session.state
        session.state = SessionState.SUBSCRIBING
        try:
            subscription = await self._bus.subscribe(pattern)
        except BusConnectionError as e:
            logger.warning("Client %s could not subscribe to %s: %s", session.id, pattern, e)
            session.state = previous
            return

        # The client may have gone away while the subscription was opening
        if session.state is SessionState.CLOSED:
            await subscription.close()
            return

        task = asyncio.create_task(self._consume(session, subscription))
        session.subscriptions.append(LiveSubscription(pattern, subscription, task))
        session.state = SessionState.STREAMING
        logger.info("Client %s subscribed to %s", session.id, pattern)

    async def _consume(self, session: ClientSession, subscription: BusSubscription) -> None:
        try:
            async for raw in subscription:
                event = classify_message(raw)
                self._counters.record(event.category, event.agent_id)
                frame = json.dumps(event.to_frame())
                if not session.try_send(frame):
                    self._counters.record_drop()
                    logger.debug("Dropped %s for non-writable client %s", raw.subject, session.id)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(
                "Subscription %s of client %s failed", subscription.pattern, session.id
            )
        finally:
            await subscription.close()

    async def on_close(self, session: ClientSession) -> None:
        """Cancel everything the client owns and forget it."""
        if session.state is SessionState.CLOSED:
            return
        session.state = SessionState.CLOSED
        self._sessions.pop(session.id, None)

        tasks = [sub.task for sub in session.subscriptions]
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        for sub in session.subscriptions:
            await sub.subscription.close()
        await session.stop_writer()

        logger.info(
            "Client %s disconnected (%s delivered, %s dropped, %s remaining)",
            session.id,
            session.delivered,
            session.dropped,
            self.client_count,
        )

    async def _close_broken(self, session: ClientSession) -> None:
        """Tear down a client whose socket failed on send."""
        logger.warning("Closing client %s after a failed send", session.id)
        await self.on_close(session)
        try:
            await session.websocket.close()
        except Exception as e:
            logger.debug("Close of client %s failed: %s", session.id, e)

    async def serve(self, websocket: WebSocketProtocol) -> None:
        """Run one client connection from accept to close."""
        await websocket.accept()
        session = await self.on_connect(websocket)
        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.disconnect":
                    break
                text = message.get("text")
                if text is None:
                    text = (message.get("bytes") or b"").decode("utf-8", errors="replace")
                await self.on_message(session, text)
        finally:
            await self.on_close(session)

    async def stop(self) -> None:
        """Close every connected client's subscriptions."""
        for session in list(self._sessions.values()):
            await self.on_close(session)
