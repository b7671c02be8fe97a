"""Monitor bridge: live and aggregate views of a fleet's event bus."""

from .app import Application, IApplication
from .bus import (
    BusConnection,
    BusConnectionError,
    BusError,
    NatsCliSubjectCounter,
    QueryError,
)
from .classifier import classify_agent, classify_category, classify_message, decode_payload
from .config import Settings, build_agent_registry
from .fanout import LiveFanoutServer
from .models import (
    AgentDescriptor,
    AgentStats,
    Category,
    ClassifiedEvent,
    DurableSnapshot,
    LiveCounters,
    RawMessage,
    Uptime,
)
from .stats import StatsAggregator, UptimeProbe

__version__ = "0.1.0"

__all__ = [
    # Application
    "Application",
    "IApplication",
    "Settings",
    "build_agent_registry",
    # Models
    "AgentDescriptor",
    "RawMessage",
    "Category",
    "ClassifiedEvent",
    "LiveCounters",
    "AgentStats",
    "DurableSnapshot",
    "Uptime",
    # Components
    "BusConnection",
    "NatsCliSubjectCounter",
    "classify_agent",
    "classify_category",
    "classify_message",
    "decode_payload",
    "StatsAggregator",
    "UptimeProbe",
    "LiveFanoutServer",
    # Errors
    "BusError",
    "BusConnectionError",
    "QueryError",
]
