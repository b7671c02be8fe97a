"""Snapshot API routes."""

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
from fastapi import APIRouter

from ...app import IApplication
from ...models import AgentStats, DurableSnapshot, LiveCounters, Uptime


class CamelModel(BaseModel):
    """Response model serialized with camelCase field names."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AgentStatsResponse(CamelModel):
    """Durable counts of one agent."""

    id: str
    display_name: str
    icon: str
    stream_name: str
    subject_prefix: str
    message_count: int
    in_count: int
    out_count: int
    tool_call_count: int
    lifecycle_count: int

    @classmethod
    def from_stats(cls, stats: AgentStats) -> "AgentStatsResponse":
        return cls(
            id=stats.agent_id,
            display_name=stats.display_name,
            icon=stats.icon,
            stream_name=stats.stream_name,
            subject_prefix=stats.subject_prefix,
            message_count=stats.message_count,
            in_count=stats.in_count,
            out_count=stats.out_count,
            tool_call_count=stats.tool_call_count,
            lifecycle_count=stats.lifecycle_count,
        )


class UptimeResponse(CamelModel):
    """Response model for uptime."""

    seconds: int
    formatted: str
    source: str


class LiveCountersResponse(CamelModel):
    """Session counters since the bridge started."""

    total: int
    by_category: dict[str, int]
    by_agent: dict[str, int]
    dropped: int


class StatsResponse(CamelModel):
    """Response model for /stats."""

    total: int
    by_category: dict[str, int]
    by_sub_category: dict[str, int]
    by_agent: dict[str, AgentStatsResponse]
    degraded: bool
    uptime: UptimeResponse
    live: LiveCountersResponse


class HealthResponse(CamelModel):
    """Response model for /health."""

    status: str
    bus_connected: bool
    clients: int


def build_stats_response(
    snapshot: DurableSnapshot, uptime: Uptime, live: LiveCounters
) -> StatsResponse:
    """Combine a durable snapshot with uptime and live counters."""
    return StatsResponse(
        total=snapshot.total,
        by_category=dict(snapshot.by_category),
        by_sub_category=dict(snapshot.by_sub_category),
        by_agent={
            agent_id: AgentStatsResponse.from_stats(stats)
            for agent_id, stats in snapshot.by_agent.items()
        },
        degraded=snapshot.degraded,
        uptime=UptimeResponse(
            seconds=uptime.seconds, formatted=uptime.formatted, source=uptime.source
        ),
        live=LiveCountersResponse(
            total=live.total,
            by_category=dict(live.by_category),
            by_agent=dict(live.by_agent),
            dropped=live.dropped,
        ),
    )


def create_stats_router(app: IApplication) -> APIRouter:
    """Create snapshot router."""
    router = APIRouter(tags=["stats"])

    @router.get("/stats", response_model=StatsResponse)
    async def get_stats() -> StatsResponse:
        """Durable statistics recomputed from the bus, plus uptime."""
        snapshot = await app.aggregator.build_snapshot()
        uptime = await app.uptime_probe.measure()
        return build_stats_response(snapshot, uptime, app.fanout.counters)

    @router.get("/health", response_model=HealthResponse)
    async def get_health() -> HealthResponse:
        """Liveness and bus connectivity."""
        return HealthResponse(
            status="ok",
            bus_connected=app.bus.is_connected,
            clients=app.fanout.client_count,
        )

    return router
