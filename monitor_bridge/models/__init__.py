"""Core data models for the monitor bridge."""

from .agents import AgentDescriptor
from .events import Category, ClassifiedEvent, RawMessage
from .stats import AgentStats, DurableSnapshot, LiveCounters, Uptime

__all__ = [
    # Agents
    "AgentDescriptor",
    # Events
    "Category",
    "RawMessage",
    "ClassifiedEvent",
    # Stats
    "LiveCounters",
    "AgentStats",
    "DurableSnapshot",
    "Uptime",
]
