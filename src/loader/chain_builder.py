"""Middleware chain assembly for OAuth server endpoints."""

from functools import partial

from fastapi.middleware.cors import CORSMiddleware

from shared.errors import RateFormatError
from shared.logging import get_logger
from shared.models import EndpointKind
from oauth_server.secret import SecretMiddleware
from oauth_server.spec import OAuthSpec
from routing.chain import ChainLink, MiddlewareChain
from routing.ratelimit import Limiter, MemoryStore, Rate, RateLimitMiddleware, parse_rate
from loader import events

logger = get_logger(__name__)

# Used when the server leaves a CORS list empty
DEFAULT_CORS_ORIGINS = ["*"]
DEFAULT_CORS_METHODS = ["GET", "POST", "HEAD"]
DEFAULT_CORS_HEADERS = ["Origin", "Accept", "Content-Type", "X-Requested-With"]


class MiddlewareChainBuilder:
    """
    Builds the middleware chains for one OAuth server.

    The CORS policy and the rate limiter are built once per server, so all
    of the server's endpoints share a single counter store. Chains are
    ordered CORS, rate limit, then client secret (token endpoint only).
    """

    def __init__(self, spec: OAuthSpec) -> None:
        self.spec = spec
        self.limiter = Limiter(MemoryStore(), self._rate())

        self._cors = ChainLink("cors", self._cors_middleware())
        self._rate_limit = ChainLink("rate_limit", partial(RateLimitMiddleware, limiter=self.limiter))
        self._client_secret = ChainLink("client_secret", partial(SecretMiddleware, spec=spec))

    def _cors_middleware(self):
        meta = self.spec.oauth.cors_meta
        return partial(
            CORSMiddleware,
            allow_origins=meta.domains or DEFAULT_CORS_ORIGINS,
            allow_methods=meta.methods or DEFAULT_CORS_METHODS,
            allow_headers=meta.request_headers or DEFAULT_CORS_HEADERS,
            expose_headers=meta.exposed_headers,
            allow_credentials=True,
        )

    def _rate(self) -> Rate:
        formatted = self.spec.oauth.rate_limit.limit
        try:
            return parse_rate(formatted)
        except RateFormatError as e:
            # Registration goes on with a rate that rejects every request
            logger.error(
                events.RATE_LIMIT_DEGRADED,
                server=self.spec.name,
                rate=formatted,
                error=str(e)
            )
            return Rate.zero()

    def build(self, kind: EndpointKind) -> MiddlewareChain:
        """
        Build the chain for one endpoint kind.

        Args:
            kind: Endpoint slot the chain will guard

        Returns:
            Chain with CORS outermost
        """
        if kind is EndpointKind.TOKEN:
            return MiddlewareChain(self._cors, self._rate_limit, self._client_secret)
        return MiddlewareChain(self._cors, self._rate_limit)
