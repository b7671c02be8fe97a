"""FastAPI application setup."""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from ..app import IApplication
from .routes import live, stats


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    """Render HTTP errors as {"error": ...} bodies."""
    message = "Not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": message},
        headers=getattr(exc, "headers", None),
    )


def _add_cors(fastapi_app: FastAPI) -> None:
    # Display clients are served from anywhere
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # CORSMiddleware only answers requests that carry an Origin header
    @fastapi_app.middleware("http")
    async def allow_any_origin(request: Request, call_next):
        response = await call_next(request)
        response.headers.setdefault("Access-Control-Allow-Origin", "*")
        return response


def create_stats_app(application: IApplication) -> FastAPI:
    """Create the snapshot (HTTP) application."""
    fastapi_app = FastAPI(
        title="Monitor Bridge Stats API",
        description="Durable fleet statistics and bridge health",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    _add_cors(fastapi_app)
    fastapi_app.add_exception_handler(StarletteHTTPException, http_error_handler)
    fastapi_app.include_router(stats.create_stats_router(application))
    return fastapi_app


def create_live_app(application: IApplication) -> FastAPI:
    """Create the live stream (WebSocket) application."""
    fastapi_app = FastAPI(
        title="Monitor Bridge Live Stream",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    fastapi_app.add_exception_handler(StarletteHTTPException, http_error_handler)
    fastapi_app.include_router(live.create_live_router(application))
    return fastapi_app
