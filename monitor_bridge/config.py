"""Project-level configuration and path helpers."""

import os
from dataclasses import dataclass, field
from pathlib import Path

from .models import AgentDescriptor

PROJECT_ROOT = Path(__file__).resolve().parent.parent
LOGS_DIR = PROJECT_ROOT / "logs"
DEFAULT_LOG_PATH = LOGS_DIR / "bridge.log"

DEFAULT_NATS_URL = "nats://localhost:4222"
DEFAULT_STREAM = "openclaw-events"
DEFAULT_NAMESPACE = "openclaw"

# (id, display name, icon) of every agent the fleet is known to run
AGENT_TABLE: tuple[tuple[str, str, str], ...] = (
    ("main", "Claudia", "🛡️"),
    ("mondo-assistant", "Mona", "🌙"),
    ("vera", "Vera", "🔒"),
    ("stella", "Stella", "💰"),
    ("viola", "Viola", "⚙️"),
    ("agent", "Legacy (pre-fix)", "📦"),
)


def build_agent_registry(
    namespace: str = DEFAULT_NAMESPACE,
    stream: str = DEFAULT_STREAM,
    table: tuple[tuple[str, str, str], ...] = AGENT_TABLE,
) -> tuple[AgentDescriptor, ...]:
    """Build the static agent registry for a subject namespace."""
    return tuple(
        AgentDescriptor(
            id=agent_id,
            display_name=name,
            icon=icon,
            stream_name=stream,
            subject_prefix=f"{namespace}.events.{agent_id}.",
        )
        for agent_id, name, icon in table
    )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


@dataclass(frozen=True)
class Settings:
    """Runtime settings of the bridge."""

    nats_url: str = DEFAULT_NATS_URL
    host: str = "0.0.0.0"
    ws_port: int = 8765
    http_port: int = 8766
    nats_cli: str = "nats"
    count_source: str = "jetstream"  # "jetstream" or "cli"
    stream: str = DEFAULT_STREAM
    namespace: str = DEFAULT_NAMESPACE
    query_timeout: float = 5.0
    cache_ttl: float = 0.0
    outbox_size: int = 256
    gateway_pattern: str = "openclaw-gateway"
    agents: tuple[AgentDescriptor, ...] = field(default_factory=build_agent_registry)

    @classmethod
    def from_env(cls) -> "Settings":
        """Read settings from environment variables."""
        stream = os.getenv("EVENTS_STREAM", DEFAULT_STREAM)
        namespace = os.getenv("SUBJECT_NAMESPACE", DEFAULT_NAMESPACE)

        count_source = os.getenv("SUBJECT_COUNT_SOURCE", "jetstream").lower()
        if count_source not in ("jetstream", "cli"):
            raise ValueError(
                f"SUBJECT_COUNT_SOURCE must be 'jetstream' or 'cli', got {count_source!r}"
            )

        return cls(
            nats_url=os.getenv("NATS_URL", DEFAULT_NATS_URL),
            host=os.getenv("BRIDGE_HOST", "0.0.0.0"),
            ws_port=_env_int("WS_PORT", 8765),
            http_port=_env_int("HTTP_PORT", 8766),
            nats_cli=os.getenv("NATS_CLI", "nats"),
            count_source=count_source,
            stream=stream,
            namespace=namespace,
            query_timeout=_env_float("STATS_QUERY_TIMEOUT", 5.0),
            cache_ttl=_env_float("STATS_CACHE_TTL", 0.0),
            outbox_size=_env_int("CLIENT_OUTBOX_SIZE", 256),
            gateway_pattern=os.getenv("GATEWAY_PROCESS_PATTERN", "openclaw-gateway"),
            agents=build_agent_registry(namespace, stream),
        )
