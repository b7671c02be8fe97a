"""Application bootstrap and lifecycle management."""

from typing import Protocol

from .bus import BusConnection, ISubjectCounter, NatsCliSubjectCounter
from .config import Settings
from .fanout import LiveFanoutServer
from .logging_config import get_logger
from .stats import StatsAggregator, UptimeProbe

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    @property
    def bus(self) -> BusConnection: ...

    @property
    def aggregator(self) -> StatsAggregator: ...

    @property
    def fanout(self) -> LiveFanoutServer: ...

    @property
    def uptime_probe(self) -> UptimeProbe: ...


class Application:
    """Main application bootstrap."""

    def __init__(self, settings: Settings | None = None):
        self._settings = settings or Settings.from_env()

        # Components (will be initialized in start())
        self._bus: BusConnection | None = None
        self._aggregator: StatsAggregator | None = None
        self._uptime_probe: UptimeProbe | None = None
        self._fanout: LiveFanoutServer | None = None

    @property
    def settings(self) -> Settings:
        return self._settings

    def _subject_counter(self, bus: BusConnection) -> ISubjectCounter:
        if self._settings.count_source == "cli":
            return NatsCliSubjectCounter(
                self._settings.nats_cli,
                url=self._settings.nats_url,
                timeout=self._settings.query_timeout,
            )
        return bus

    async def start(self) -> None:
        """
        Initialize components in dependency order.

        Raises:
            BusConnectionError: If the bus cannot be reached. Callers treat
                this as fatal.
        """
        logger.info("Starting monitor bridge")

        # 1. BusConnection (no dependencies)
        bus = BusConnection(
            self._settings.nats_url, query_timeout=self._settings.query_timeout
        )
        await bus.connect()
        self._bus = bus

        # 2. StatsAggregator (depends on a subject-count source)
        self._aggregator = StatsAggregator(
            self._subject_counter(bus),
            self._settings.agents,
            query_timeout=self._settings.query_timeout,
            cache_ttl=self._settings.cache_ttl,
        )
        self._uptime_probe = UptimeProbe(self._settings.gateway_pattern)
        logger.info("StatsAggregator initialized")

        # 3. LiveFanoutServer (depends on BusConnection)
        self._fanout = LiveFanoutServer(bus, outbox_size=self._settings.outbox_size)
        logger.info("LiveFanoutServer initialized")

        snapshot = await self._aggregator.build_snapshot()
        logger.info(
            "Stream %s has %s events%s",
            self._settings.stream,
            snapshot.total,
            " (counts unavailable)" if snapshot.degraded else "",
            extra={"context": {"by_category": snapshot.by_category}},
        )

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._fanout:
            await self._fanout.stop()
        if self._bus:
            await self._bus.close()
        logger.info("Monitor bridge stopped")

    @property
    def bus(self) -> BusConnection:
        """Get bus connection."""
        if not self._bus:
            raise RuntimeError("Application not started")
        return self._bus

    @property
    def aggregator(self) -> StatsAggregator:
        """Get stats aggregator."""
        if not self._aggregator:
            raise RuntimeError("Application not started")
        return self._aggregator

    @property
    def uptime_probe(self) -> UptimeProbe:
        """Get uptime probe."""
        if not self._uptime_probe:
            raise RuntimeError("Application not started")
        return self._uptime_probe

    @property
    def fanout(self) -> LiveFanoutServer:
        """Get live fan-out server."""
        if not self._fanout:
            raise RuntimeError("Application not started")
        return self._fanout
