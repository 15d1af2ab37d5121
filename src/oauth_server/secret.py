"""Client secret middleware for OAuth token endpoints.

Token requests that carry only a ``client_id`` get the matching client
credentials attached as HTTP Basic authorization before they reach the
OAuth server, so public clients never hold the secret themselves.
"""

import base64

from fastapi.responses import JSONResponse
from starlette.datastructures import Headers, MutableHeaders, QueryParams
from starlette.types import ASGIApp, Receive, Scope, Send

from shared.logging import get_logger
from oauth_server.spec import OAuthSpec

logger = get_logger(__name__)

CLIENT_ID_NOT_FOUND = "the client ID was not found"


def basic_credentials(client_id: str, client_secret: str) -> str:
    """Encode client credentials as an HTTP Basic authorization value."""
    token = base64.b64encode(f"{client_id}:{client_secret}".encode()).decode("ascii")
    return f"Basic {token}"


class SecretMiddleware:
    """ASGI middleware injecting client credentials on token requests."""

    def __init__(self, app: ASGIApp, spec: OAuthSpec) -> None:
        self.app = app
        self.spec = spec

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        if Headers(scope=scope).get("authorization"):
            logger.debug("Authorization is set, proxying", server=self.spec.name)
            await self.app(scope, receive, send)
            return

        client_id = QueryParams(scope.get("query_string", b"")).get("client_id")
        client_secret = self.spec.oauth.secrets.get(client_id) if client_id else None
        if client_secret is None:
            logger.debug("Client ID not found", server=self.spec.name, client_id=client_id)
            response = JSONResponse({"error": CLIENT_ID_NOT_FOUND}, status_code=400)
            await response(scope, receive, send)
            return

        headers = MutableHeaders(scope=scope)
        headers["Authorization"] = basic_credentials(client_id, client_secret)
        await self.app(scope, receive, send)
