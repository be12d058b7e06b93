"""Starlette ASGI application exposing the analytics engine as JSON.

Endpoints (all under /api/v1):
- GET  /health                   liveness, history size, last poll error
- GET  /pnodes                   current roster
- GET  /analytics                health/reputation maps, regions, anomalies, partition
- GET  /nodes/{node_id}/explain  why-strings and predictions for one node
- GET  /time-travel              historical or synthetic roster for a window
- POST /roster                   push a roster fetched elsewhere into the engine
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Any

from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse
from starlette.routing import Route

from .. import __version__
from ..core.config import get_config
from ..core.engine import GossipAnalytics
from ..core.exceptions import NotFoundError, RosterFormatError
from ..core.logging import configure_logging
from ..core.time_travel import TimeWindow
from ..network.poller import RosterPoller, extract_nodes
from .errors import (
    VALIDATION_INVALID_FORMAT,
    invalid_json_error,
    not_found_error,
    validation_error,
)

logger = logging.getLogger(__name__)

API_V1 = "/api/v1"


def _engine(request: Request) -> GossipAnalytics:
    return request.app.state.engine


async def health_endpoint(request: Request) -> JSONResponse:
    """Health check endpoint."""
    engine = _engine(request)
    poller: RosterPoller | None = request.app.state.poller

    health_data: dict[str, Any] = {
        "status": "healthy",
        "version": __version__,
        "snapshots": len(engine.store),
        "updated_at": engine.state.updated_at,
    }
    if poller is not None:
        health_data["poller"] = {
            "running": poller.running,
            "cycles": poller.cycles,
            "last_success": poller.last_success,
            "last_error": poller.last_error,
        }
        if poller.last_error:
            health_data["status"] = "degraded"

    return JSONResponse(health_data)


async def pnodes_endpoint(request: Request) -> JSONResponse:
    """Current roster in upstream shape."""
    state = _engine(request).state
    return JSONResponse(
        {
            "nodes": [n.to_dict() for n in state.nodes],
            "updatedAt": state.updated_at,
        }
    )


async def analytics_endpoint(request: Request) -> JSONResponse:
    """Derived signals for the latest roster."""
    return JSONResponse(_engine(request).state.to_dict())


async def explain_endpoint(request: Request) -> JSONResponse:
    """Explainability for a single node."""
    node_id = request.path_params["node_id"]
    try:
        result = _engine(request).explain(node_id)
    except NotFoundError:
        return not_found_error(f"pNode {node_id}")
    return JSONResponse({"pnodeId": node_id, **result.to_dict()})


async def time_travel_endpoint(request: Request) -> JSONResponse:
    """Historical (or synthetic) roster for ?window=1h|24h|7d&index=N."""
    window_raw = request.query_params.get("window", TimeWindow.ONE_HOUR.value)
    try:
        window = TimeWindow(window_raw)
    except ValueError:
        allowed = ", ".join(w.value for w in TimeWindow)
        return validation_error(f"window must be one of: {allowed}")

    try:
        index = int(request.query_params.get("index", "0"))
    except ValueError:
        return validation_error("index must be an integer", code=VALIDATION_INVALID_FORMAT)

    view = _engine(request).time_travel(window, index=index)
    return JSONResponse({"window": window.value, **view.to_dict()})


async def roster_endpoint(request: Request) -> JSONResponse:
    """Ingest a roster pushed by an external fetcher."""
    try:
        payload = await request.json()
    except ValueError:
        return invalid_json_error()

    try:
        raw_nodes = extract_nodes(payload)
    except RosterFormatError as e:
        return validation_error(e.message, code=VALIDATION_INVALID_FORMAT)

    state = _engine(request).ingest(raw_nodes)
    return JSONResponse(
        {
            "success": True,
            "ingested": state.stats.total,
            "updated_at": state.updated_at,
        }
    )


def create_app(
    engine: GossipAnalytics | None = None,
    poller: RosterPoller | None = None,
) -> Starlette:
    """Create the Starlette ASGI application.

    Args:
        engine: Engine to serve; a fresh one is created when omitted
        poller: Optional poller whose lifecycle follows the app's
    """
    settings = get_config()
    engine = engine or GossipAnalytics(capacity=settings.snapshot_capacity)

    @asynccontextmanager
    async def lifespan(app: Starlette):
        logger.info(f"Starting orbital API v{__version__}")
        if poller is not None:
            await poller.start()
        yield
        if poller is not None:
            await poller.stop()
        logger.info("orbital API shutting down")

    routes = [
        Route(f"{API_V1}/health", health_endpoint, methods=["GET"]),
        Route(f"{API_V1}/pnodes", pnodes_endpoint, methods=["GET"]),
        Route(f"{API_V1}/analytics", analytics_endpoint, methods=["GET"]),
        Route(f"{API_V1}/nodes/{{node_id}}/explain", explain_endpoint, methods=["GET"]),
        Route(f"{API_V1}/time-travel", time_travel_endpoint, methods=["GET"]),
        Route(f"{API_V1}/roster", roster_endpoint, methods=["POST"]),
    ]

    middleware = [
        Middleware(
            CORSMiddleware,
            allow_origins=settings.allowed_origins,
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["Content-Type"],
        ),
    ]

    app = Starlette(routes=routes, middleware=middleware, lifespan=lifespan)
    app.state.engine = engine
    app.state.poller = poller
    return app


def create_polling_app() -> Starlette:
    """App factory wired to the configured roster endpoint."""
    settings = get_config()
    engine = GossipAnalytics(capacity=settings.snapshot_capacity)
    poller = RosterPoller(
        engine,
        settings.api_url,
        interval=settings.poll_interval_seconds,
        timeout=settings.request_timeout_seconds,
    )
    return create_app(engine=engine, poller=poller)


def run(host: str | None = None, port: int | None = None, log_level: str | None = None) -> None:
    """Run the server using uvicorn, with orbital's log handlers in charge."""
    import uvicorn

    configure_logging(level=log_level)

    settings = get_config()
    host = host or settings.host
    port = port or settings.port

    logger.info(f"Starting orbital HTTP API on {host}:{port}")

    uvicorn.run(
        "orbital.server.app:create_polling_app",
        factory=True,
        host=host,
        port=port,
        log_config=None,
    )
