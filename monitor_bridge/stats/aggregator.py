"""StatsAggregator: snapshots rebuilt from durable per-subject counts."""

import asyncio
import time
from typing import Callable, Iterable, Mapping, Protocol

from ..bus import ISubjectCounter, QueryError
from ..classifier import classify_category, sub_category
from ..logging_config import get_logger
from ..models import AgentDescriptor, AgentStats, DurableSnapshot

logger = get_logger(__name__)

# Per-agent breakdown; first matching substring wins
AGENT_COUNTER_RULES: tuple[tuple[str, str], ...] = (
    ("message_in", "in_count"),
    ("message_out", "out_count"),
    ("tool", "tool_call_count"),
    ("lifecycle", "lifecycle_count"),
)


class IStatsAggregator(Protocol):
    """On-demand builder of durable statistics snapshots."""

    async def build_snapshot(self) -> DurableSnapshot:
        """Recompute a snapshot; never raises."""
        ...


def _agent_stats(agent: AgentDescriptor) -> AgentStats:
    return AgentStats(
        agent_id=agent.id,
        display_name=agent.display_name,
        icon=agent.icon,
        stream_name=agent.stream_name,
        subject_prefix=agent.subject_prefix,
    )


def empty_snapshot(agents: Iterable[AgentDescriptor], degraded: bool = True) -> DurableSnapshot:
    """Snapshot with every configured agent present and all counts zero."""
    return DurableSnapshot(
        by_agent={agent.id: _agent_stats(agent) for agent in agents},
        degraded=degraded,
    )


def aggregate_subject_counts(
    counts: Mapping[str, int],
    agents: Iterable[AgentDescriptor],
) -> DurableSnapshot:
    """
    Derive a full snapshot from a subject -> count mapping.

    Args:
        counts: Subject -> durable message count.
        agents: Configured agent registry.

    Subjects that belong to no configured agent are ignored everywhere, so
    total, the sum of per-agent counts and the sum of categories agree.
    """
    snapshot = DurableSnapshot()

    for agent in agents:
        stats = _agent_stats(agent)

        for subject in sorted(counts):
            if not agent.owns(subject):
                continue
            count = counts[subject]
            stats.message_count += count

            for needle, attr in AGENT_COUNTER_RULES:
                if needle in subject:
                    setattr(stats, attr, getattr(stats, attr) + count)
                    break

            category = classify_category(subject).value
            snapshot.by_category[category] = snapshot.by_category.get(category, 0) + count
            sub = sub_category(subject)
            snapshot.by_sub_category[sub] = snapshot.by_sub_category.get(sub, 0) + count

        snapshot.by_agent[agent.id] = stats
        snapshot.total += stats.message_count

    return snapshot


class StatsAggregator:
    """Builds DurableSnapshots from a subject-count source."""

    def __init__(
        self,
        counter: ISubjectCounter,
        agents: Iterable[AgentDescriptor],
        query_timeout: float = 5.0,
        cache_ttl: float = 0.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._counter = counter
        self._agents = tuple(agents)
        self._query_timeout = query_timeout
        # Snapshots younger than cache_ttl seconds are served as-is
        self._cache_ttl = cache_ttl
        self._clock = clock
        self._last_snapshot: DurableSnapshot | None = None
        self._built_at: float | None = None

    @property
    def agents(self) -> tuple[AgentDescriptor, ...]:
        return self._agents

    @property
    def last_snapshot(self) -> DurableSnapshot | None:
        """Most recently published snapshot."""
        return self._last_snapshot

    def _cached(self) -> DurableSnapshot | None:
        if self._cache_ttl <= 0 or self._last_snapshot is None or self._built_at is None:
            return None
        if self._last_snapshot.degraded:
            return None
        if self._clock() - self._built_at < self._cache_ttl:
            return self._last_snapshot
        return None

    async def _query_counts(self) -> dict[str, int]:
        # One query per distinct stream; agents normally share a single one
        counts: dict[str, int] = {}
        for stream in dict.fromkeys(agent.stream_name for agent in self._agents):
            subjects = await asyncio.wait_for(
                self._counter.query_durable_subject_counts(stream),
                timeout=self._query_timeout,
            )
            for subject, count in subjects.items():
                counts[subject] = counts.get(subject, 0) + count
        return counts

    async def build_snapshot(self) -> DurableSnapshot:
        """Recompute the snapshot, degrading to zeros if counts are unavailable."""
        cached = self._cached()
        if cached is not None:
            return cached

        try:
            counts = await self._query_counts()
        except QueryError as e:
            logger.warning("Subject count query failed: %s", e)
            snapshot = empty_snapshot(self._agents)
        except asyncio.TimeoutError:
            logger.warning(
                "Subject count query timed out after %ss", self._query_timeout
            )
            snapshot = empty_snapshot(self._agents)
        except Exception:
            logger.exception("Unexpected subject count failure")
            snapshot = empty_snapshot(self._agents)
        else:
            snapshot = aggregate_subject_counts(counts, self._agents)

        # Publish only the fully built snapshot
        self._last_snapshot = snapshot
        self._built_at = self._clock()
        return snapshot
