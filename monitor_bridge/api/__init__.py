"""HTTP and WebSocket API module."""

from .app import create_live_app, create_stats_app

__all__ = ["create_live_app", "create_stats_app"]
