"""Shared fixtures for gateway OAuth loader tests."""

import pytest
from fastapi.responses import JSONResponse

from shared.models import (
    EndpointDefinition,
    OAuthEndpoints,
    OAuthServerConfig,
    TokenStrategy,
)


def endpoint(path: str, upstream: str = "http://auth.internal:8080") -> EndpointDefinition:
    """Build a valid endpoint definition for ``path``."""
    return EndpointDefinition(listen_path=path, upstream_url=f"{upstream}{path}")


def server_config(name: str = "default", **overrides) -> OAuthServerConfig:
    """Build an OAuth server with authorize and token endpoints."""
    data = {
        "name": name,
        "cors_meta": {"domains": ["*"]},
        "rate_limit": {"limit": "5-M"},
        "token_strategy": TokenStrategy(name="basic"),
        "endpoints": OAuthEndpoints(
            authorize=endpoint(f"/{name}/authorize"),
            token=endpoint(f"/{name}/token"),
        ),
    }
    data.update(overrides)
    return OAuthServerConfig(**data)


async def echo_app(scope, receive, send):
    """Upstream stand-in that echoes the Authorization header it received."""
    headers = {k.decode("latin-1"): v.decode("latin-1") for k, v in scope["headers"]}
    response = JSONResponse({"authorization": headers.get("authorization")})
    await response(scope, receive, send)


@pytest.fixture
def default_server() -> OAuthServerConfig:
    return server_config()
