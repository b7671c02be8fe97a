"""Statistics module."""

from .aggregator import (
    AGENT_COUNTER_RULES,
    IStatsAggregator,
    StatsAggregator,
    aggregate_subject_counts,
    empty_snapshot,
)
from .uptime import UptimeProbe, format_uptime

__all__ = [
    "AGENT_COUNTER_RULES",
    "IStatsAggregator",
    "StatsAggregator",
    "aggregate_subject_counts",
    "empty_snapshot",
    "UptimeProbe",
    "format_uptime",
]
