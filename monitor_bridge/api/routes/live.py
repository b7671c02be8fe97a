"""Live event stream routes."""

from fastapi import APIRouter, WebSocket

from ...app import IApplication


def create_live_router(app: IApplication) -> APIRouter:
    """Create live stream router."""
    router = APIRouter(tags=["live"])

    @router.websocket("/")
    async def live_events(websocket: WebSocket) -> None:
        """Stream classified bus events for the patterns a client subscribes to."""
        await app.fanout.serve(websocket)

    return router
