"""Uptime of the monitored gateway process, with the bridge as fallback."""

import asyncio
import os
import time

import psutil

from ..logging_config import get_logger
from ..models import Uptime

logger = get_logger(__name__)


def format_uptime(seconds: int) -> str:
    """Render seconds as "Xd Xh Xm", "Xh Xm Xs" or "Xm Xs"."""
    days, rest = divmod(seconds, 86400)
    hours, rest = divmod(rest, 3600)
    minutes, secs = divmod(rest, 60)
    if days > 0:
        return f"{days}d {hours}h {minutes}m"
    if hours > 0:
        return f"{hours}h {minutes}m {secs}s"
    return f"{minutes}m {secs}s"


class UptimeProbe:
    """Measures how long the gateway (or, failing that, the bridge) has run."""

    def __init__(self, process_pattern: str, started_at: float | None = None):
        self._pattern = process_pattern
        self._started_at = time.time() if started_at is None else started_at

    def find_process_start(self) -> float | None:
        """Creation time of the oldest process whose command line matches."""
        if not self._pattern:
            return None

        own_pid = os.getpid()
        oldest: float | None = None
        for proc in psutil.process_iter(["pid", "cmdline", "create_time"]):
            info = proc.info
            if info["pid"] == own_pid or not info["cmdline"]:
                continue
            if self._pattern not in " ".join(info["cmdline"]):
                continue
            created = info["create_time"]
            if created is not None and (oldest is None or created < oldest):
                oldest = created
        return oldest

    async def measure(self) -> Uptime:
        """Gateway uptime when its process is visible, else bridge uptime."""
        try:
            created = await asyncio.to_thread(self.find_process_start)
        except psutil.Error as e:
            logger.debug("Gateway process lookup failed: %s", e)
            created = None

        now = time.time()
        if created is not None:
            seconds = max(0, int(now - created))
            return Uptime(seconds=seconds, formatted=format_uptime(seconds), source="gateway")

        seconds = max(0, int(now - self._started_at))
        return Uptime(
            seconds=seconds,
            formatted=f"{format_uptime(seconds)} (bridge)",
            source="bridge",
        )
