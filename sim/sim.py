"""SIM implementation - publishes synthetic fleet events to the bus."""

import asyncio
import json
import random
import uuid
from typing import Protocol

import nats
import nats.errors

from monitor_bridge.bus import parse_bus_url
from monitor_bridge.logging_config import get_logger

logger = get_logger(__name__)

# Event types a fleet agent emits, as the last subject segment
EVENT_TYPES = (
    "message_in",
    "message_out",
    "tool_call",
    "tool_result",
    "knowledge_write",
    "lifecycle_started",
    "lifecycle_ended",
)


class ISim(Protocol):
    """Generate test traffic on the bus."""

    async def start(self) -> None:
        """Start publishing."""
        ...

    async def stop(self) -> None:
        """Stop publishing."""
        ...


def build_event(
    namespace: str, agent_id: str, event_type: str, legacy: bool = False
) -> tuple[str, dict]:
    """
    Build one (subject, payload) pair.

    Legacy events reproduce pre-fix publishers: the subject carries the
    generic "agent" segment and only the session key names the agent.
    """
    subject_agent = "agent" if legacy else agent_id
    subject = f"{namespace}.events.{subject_agent}.{event_type}"
    payload = {
        "session": f"agent:{agent_id}:{uuid.uuid4().hex[:8]}",
        "type": event_type,
    }
    return subject, payload


class Sim:
    """SIM publishing a random mix of agent events."""

    def __init__(
        self,
        bus_url: str = "nats://localhost:4222",
        namespace: str = "openclaw",
        agents: tuple[str, ...] = ("main", "vera", "stella", "viola"),
        interval: float = 1.0,
        legacy_ratio: float = 0.1,
    ):
        self._bus_url = bus_url
        self._namespace = namespace
        self._agents = agents
        self._interval = interval
        self._legacy_ratio = legacy_ratio
        self._running = False
        self._task: asyncio.Task | None = None
        self._nc = None
        self.published = 0

    async def start(self) -> None:
        """Connect and start publishing in the background."""
        if self._running:
            return

        address = parse_bus_url(self._bus_url)
        options: dict = {"servers": [f"nats://{address.servers}"]}
        if address.authenticated:
            options["user"] = address.user
            options["password"] = address.password
        self._nc = await nats.connect(**options)

        self._running = True
        self._task = asyncio.create_task(self._run_scenario())

    async def stop(self) -> None:
        """Stop publishing and disconnect."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass

        if self._nc:
            await self._nc.drain()
            self._nc = None

    async def publish_one(self) -> str:
        """Publish a single random event; returns its subject."""
        subject, payload = build_event(
            self._namespace,
            random.choice(self._agents),
            random.choice(EVENT_TYPES),
            legacy=random.random() < self._legacy_ratio,
        )
        await self._nc.publish(subject, json.dumps(payload).encode("utf-8"))
        self.published += 1
        return subject

    async def _run_scenario(self) -> None:
        """Publish until stopped."""
        try:
            while self._running:
                subject = await self.publish_one()
                logger.debug("SIM: published %s", subject)
                await asyncio.sleep(random.uniform(0.5, 1.5) * self._interval)
        except asyncio.CancelledError:
            pass
        except nats.errors.Error as e:
            logger.error("SIM publish error: %s", e)


async def _run(bus_url: str, namespace: str) -> None:
    sim = Sim(bus_url=bus_url, namespace=namespace)
    await sim.start()
    try:
        await asyncio.Event().wait()
    finally:
        await sim.stop()


if __name__ == "__main__":
    import os

    from dotenv import load_dotenv

    from monitor_bridge.logging_config import setup_logging

    load_dotenv()
    setup_logging()
    asyncio.run(
        _run(
            os.getenv("NATS_URL", "nats://localhost:4222"),
            os.getenv("SUBJECT_NAMESPACE", "openclaw"),
        )
    )
