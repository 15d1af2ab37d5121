"""Gateway admin application.

Runs the OAuth load pass at startup and exposes the resulting route table.
Forwarding traffic to upstreams belongs to the transport layer, which takes
routes from the table and wraps its handlers with ``Route.build``.
"""

import threading
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, status
from pydantic import BaseModel

from shared.config import Settings, get_settings
from shared.errors import FatalLoadError
from shared.logging import get_logger, log_context, setup_logging
from shared.models import LoadSummary
from oauth_server.store import FileRepository, Repository
from routing.register import RouteTable
from loader.oauth_loader import OAuthLoader

logger = get_logger(__name__)

VERSION = "0.1.0"


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    route_count: int


class RouteInfo(BaseModel):
    """A registered route as seen by the admin API."""
    listen_path: str
    upstream_url: str
    methods: list[str]
    chain: list[str]


class RouteListResponse(BaseModel):
    """List of registered routes."""
    routes: list[RouteInfo]
    count: int


# Global instances
_settings: Optional[Settings] = None
_repository: Optional[Repository] = None
_route_table: Optional[RouteTable] = None
_loader: Optional[OAuthLoader] = None
_load_lock = threading.Lock()


def run_load() -> LoadSummary:
    """Run one load pass against the configured definition store."""
    if _loader is None or _repository is None:
        raise RuntimeError("Gateway not initialized")

    with _load_lock, log_context(load_id=str(uuid.uuid4())):
        return _loader.load(_repository)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    global _settings, _repository, _route_table, _loader

    _settings = get_settings()
    setup_logging(_settings.log_level, json_output=_settings.environment == "production")

    logger.info("Starting gateway", definitions_path=_settings.loader.definitions_path)

    _repository = FileRepository(_settings.loader.definitions_path)
    _route_table = RouteTable(replace_existing=_settings.loader.replace_existing_routes)
    _loader = OAuthLoader(_route_table)

    # A fatal load error aborts startup
    summary = run_load()
    logger.info("Gateway started", servers=summary.servers, route_count=len(_route_table))

    yield

    logger.info("Shutting down gateway")
    _loader.close()


app = FastAPI(
    title="Gateway OAuth Loader",
    description="Registers OAuth server endpoints into the gateway route table",
    version=VERSION,
    lifespan=lifespan
)


def _require_table() -> RouteTable:
    if _route_table is None:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Gateway not initialized"
        )
    return _route_table


@app.get("/health", response_model=HealthResponse, tags=["System"])
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        version=VERSION,
        route_count=len(_require_table())
    )


@app.get("/routes", response_model=RouteListResponse, tags=["Routes"])
async def list_routes():
    """List registered routes with their middleware chains."""
    routes = [
        RouteInfo(
            listen_path=route.listen_path,
            upstream_url=route.definition.upstream_url,
            methods=route.definition.methods,
            chain=list(route.inbound.names),
        )
        for route in _require_table().routes()
    ]
    return RouteListResponse(routes=routes, count=len(routes))


@app.post("/reload", response_model=LoadSummary, tags=["Routes"])
def reload_routes():
    """
    Re-run the OAuth load pass.

    Every server is processed again; routes are added or replaced, never
    diffed against the current table. The pass reads the definition store
    synchronously, so FastAPI runs this endpoint in its threadpool.
    """
    _require_table()
    try:
        return run_load()
    except FatalLoadError as e:
        logger.error("Reload failed", error=str(e))
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=str(e)
        )


def main():
    """Run the gateway admin API."""
    import uvicorn

    settings = get_settings()

    uvicorn.run(
        "gateway.main:app",
        host=settings.admin.host,
        port=settings.admin.port,
        reload=settings.environment == "development"
    )


if __name__ == "__main__":
    main()
