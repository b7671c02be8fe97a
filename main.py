"""Main entry point for the monitor bridge."""

import asyncio
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from monitor_bridge.api import create_live_app, create_stats_app
from monitor_bridge.app import Application
from monitor_bridge.bus import BusConnectionError
from monitor_bridge.config import Settings
from monitor_bridge.logging_config import get_logger, setup_logging

logger = get_logger(__name__)


async def serve(settings: Settings) -> int:
    """Start the bridge and run both servers until one of them exits."""
    application = Application(settings)
    try:
        await application.start()
    except BusConnectionError as e:
        logger.error("Bus connection failed: %s", e)
        return 1

    servers = [
        uvicorn.Server(
            uvicorn.Config(
                create_live_app(application),
                host=settings.host,
                port=settings.ws_port,
                log_config=None,
            )
        ),
        uvicorn.Server(
            uvicorn.Config(
                create_stats_app(application),
                host=settings.host,
                port=settings.http_port,
                log_config=None,
            )
        ),
    ]
    logger.info(
        "Live stream on ws://%s:%s, stats API on http://%s:%s",
        settings.host,
        settings.ws_port,
        settings.host,
        settings.http_port,
    )

    tasks = [asyncio.create_task(server.serve()) for server in servers]
    try:
        # Signal handlers land on whichever server installed them last
        await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        for server in servers:
            server.should_exit = True
        await asyncio.gather(*tasks, return_exceptions=True)
    finally:
        await application.stop()
    return 0


def main():
    """Run the bridge."""
    project_root = Path(__file__).resolve().parent
    load_dotenv(project_root / ".env")
    setup_logging()

    settings = Settings.from_env()
    sys.exit(asyncio.run(serve(settings)))


if __name__ == "__main__":
    main()
