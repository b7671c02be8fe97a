"""Live fan-out module."""

from .server import ClientSession, LiveFanoutServer, LiveSubscription, SessionState

__all__ = ["ClientSession", "LiveFanoutServer", "LiveSubscription", "SessionState"]
