"""Core data models for the OAuth route loader.

This module defines the declarative OAuth server definitions read from a
definition store, and the endpoint definitions installed into the route table.
"""

from enum import Enum
from typing import Any, Optional
from urllib.parse import urlparse

from pydantic import BaseModel, Field


HTTP_METHODS = {
    "ALL",
    "GET",
    "HEAD",
    "POST",
    "PUT",
    "PATCH",
    "DELETE",
    "OPTIONS",
    "CONNECT",
    "TRACE",
}


class EndpointKind(str, Enum):
    """Endpoint slots of an OAuth server, in registration order."""
    AUTHORIZE = "authorize"
    TOKEN = "token"
    INFO = "info"
    REVOKE = "revoke"
    CLIENT_CREATE = "client_create"
    CLIENT_REMOVE = "client_remove"


class CorsMeta(BaseModel):
    """CORS policy for every endpoint of an OAuth server."""
    domains: list[str] = Field(default_factory=list)
    methods: list[str] = Field(default_factory=list)
    request_headers: list[str] = Field(default_factory=list)
    exposed_headers: list[str] = Field(default_factory=list)


class RateLimitMeta(BaseModel):
    """Rate limit policy, formatted as ``<limit>-<period>`` (e.g. ``5-M``)."""
    limit: str = Field(default="", description="Formatted rate, e.g. 10-S")


class TokenStrategy(BaseModel):
    """Token management strategy descriptor."""
    name: str
    settings: dict[str, Any] = Field(default_factory=dict)


class EndpointDefinition(BaseModel):
    """
    A single proxied OAuth endpoint.

    Holds everything the route table needs to expose ``listen_path`` and
    forward matching requests to ``upstream_url``.
    """
    listen_path: str = ""
    upstream_url: str = ""
    methods: list[str] = Field(default_factory=lambda: ["ALL"])
    hosts: list[str] = Field(default_factory=list)
    strip_path: bool = False
    append_path: bool = False
    preserve_host: bool = False

    def validate_definition(self) -> tuple[bool, Optional[str]]:
        """
        Check that the definition can be installed into the route table.

        Returns:
            Tuple of (is_valid, error_message)
        """
        if not self.listen_path:
            return False, "listen_path is required"

        if not self.listen_path.startswith("/"):
            return False, f"listen_path '{self.listen_path}' must start with '/'"

        if not self.upstream_url:
            return False, "upstream_url is required"

        upstream = urlparse(self.upstream_url)
        if upstream.scheme not in ("http", "https") or not upstream.netloc:
            return False, f"upstream_url '{self.upstream_url}' is not a valid http(s) URL"

        unknown = [m for m in self.methods if m.upper() not in HTTP_METHODS]
        if unknown:
            return False, f"unsupported methods: {', '.join(unknown)}"

        return True, None


class OAuthEndpoints(BaseModel):
    """Token lifecycle endpoints of an OAuth server."""
    authorize: Optional[EndpointDefinition] = None
    token: Optional[EndpointDefinition] = None
    info: Optional[EndpointDefinition] = None
    revoke: Optional[EndpointDefinition] = None


class ClientEndpoints(BaseModel):
    """Client management endpoints of an OAuth server."""
    create: Optional[EndpointDefinition] = None
    remove: Optional[EndpointDefinition] = None


class OAuthServerConfig(BaseModel):
    """
    Declarative definition of one OAuth server.

    Describes the server's CORS policy, rate limit, token strategy and the
    endpoints it exposes through the gateway.
    """
    name: str = Field(..., description="Unique OAuth server name")
    cors_meta: CorsMeta = Field(default_factory=CorsMeta)
    rate_limit: RateLimitMeta = Field(default_factory=RateLimitMeta)
    token_strategy: TokenStrategy
    endpoints: OAuthEndpoints = Field(default_factory=OAuthEndpoints)
    client_endpoints: ClientEndpoints = Field(default_factory=ClientEndpoints)

    # client_id -> client_secret, used on the token endpoint
    secrets: dict[str, str] = Field(default_factory=dict)

    def endpoint_for(self, kind: EndpointKind) -> Optional[EndpointDefinition]:
        """Return the endpoint configured for a slot, if any."""
        slots = {
            EndpointKind.AUTHORIZE: self.endpoints.authorize,
            EndpointKind.TOKEN: self.endpoints.token,
            EndpointKind.INFO: self.endpoints.info,
            EndpointKind.REVOKE: self.endpoints.revoke,
            EndpointKind.CLIENT_CREATE: self.client_endpoints.create,
            EndpointKind.CLIENT_REMOVE: self.client_endpoints.remove,
        }
        return slots[kind]


class LoadSummary(BaseModel):
    """Outcome of one load pass."""
    servers: list[str] = Field(default_factory=list)
    registered: list[str] = Field(default_factory=list)
    skipped: int = 0
    failed: int = 0
