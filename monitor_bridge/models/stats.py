"""Statistics data models."""

from dataclasses import dataclass, field

from .events import Category


@dataclass
class LiveCounters:
    """In-memory counters of events observed since process start."""

    total: int = 0
    by_category: dict[str, int] = field(default_factory=dict)
    by_agent: dict[str, int] = field(default_factory=dict)
    dropped: int = 0  # frames not delivered to a non-writable client

    def record(self, category: Category, agent_id: str) -> None:
        """Count one observed event."""
        self.total += 1
        self.by_category[category.value] = self.by_category.get(category.value, 0) + 1
        self.by_agent[agent_id] = self.by_agent.get(agent_id, 0) + 1

    def record_drop(self) -> None:
        self.dropped += 1

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "byCategory": dict(self.by_category),
            "byAgent": dict(self.by_agent),
            "dropped": self.dropped,
        }


@dataclass
class AgentStats:
    """Durable per-agent counts derived from subject counts."""

    agent_id: str
    display_name: str
    icon: str
    stream_name: str
    subject_prefix: str
    message_count: int = 0
    in_count: int = 0
    out_count: int = 0
    tool_call_count: int = 0
    lifecycle_count: int = 0


@dataclass
class DurableSnapshot:
    """Statistics fully recomputed from the bus's durable counters."""

    total: int = 0
    by_category: dict[str, int] = field(default_factory=dict)
    by_sub_category: dict[str, int] = field(default_factory=dict)
    by_agent: dict[str, AgentStats] = field(default_factory=dict)
    degraded: bool = False


@dataclass(frozen=True)
class Uptime:
    """Measured lifetime of the monitored gateway, or of the bridge itself."""

    seconds: int
    formatted: str
    source: str  # "gateway" or "bridge"
