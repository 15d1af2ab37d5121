"""Tests for middleware chains, rate limiting and the route table."""

from concurrent.futures import ThreadPoolExecutor
from unittest.mock import Mock

import pytest
from fastapi.testclient import TestClient

from conftest import echo_app, endpoint
from shared.errors import RateFormatError, RouteConflictError


def recording_middleware(name, calls):
    """Middleware factory that records the order requests pass through it."""
    def factory(app):
        async def middleware(scope, receive, send):
            calls.append(name)
            await app(scope, receive, send)
        return middleware
    return factory


class TestMiddlewareChain:
    """Tests for chain ordering and immutability."""

    def test_first_link_is_outermost(self):
        """Test that requests pass links in declaration order."""
        from routing.chain import ChainLink, MiddlewareChain

        calls = []
        chain = MiddlewareChain(
            ChainLink("outer", recording_middleware("outer", calls)),
            ChainLink("inner", recording_middleware("inner", calls)),
        )

        response = TestClient(chain.apply(echo_app)).get("/")

        assert response.status_code == 200
        assert calls == ["outer", "inner"]
        assert chain.names == ("outer", "inner")
        assert len(chain) == 2
        assert "inner" in chain

    def test_chain_is_immutable(self):
        """Test that links cannot be reassigned."""
        from routing.chain import ChainLink, MiddlewareChain

        chain = MiddlewareChain(ChainLink("only", lambda app: app))

        with pytest.raises(AttributeError):
            chain.extra = "value"
        assert isinstance(chain.links, tuple)


class TestParseRate:
    """Tests for formatted rate parsing."""

    @pytest.mark.parametrize(
        "formatted, limit, period",
        [
            ("5-M", 5, 60),
            ("10-S", 10, 1),
            ("1000-h", 1000, 3600),
            ("0-D", 0, 86400),
        ],
    )
    def test_valid_rates(self, formatted, limit, period):
        """Test parsing well-formed rates."""
        from routing.ratelimit import parse_rate

        rate = parse_rate(formatted)

        assert rate.limit == limit
        assert rate.period == period
        assert rate.formatted == formatted

    @pytest.mark.parametrize("formatted", ["", "5", "5-W", "five-M", "5-M-S"])
    def test_malformed_rates(self, formatted):
        """Test that malformed rates raise a soft configuration error."""
        from routing.ratelimit import parse_rate

        with pytest.raises(RateFormatError):
            parse_rate(formatted)

    def test_limit_checked_before_period(self):
        """Test that errors are reported in the order the format is written."""
        from routing.ratelimit import parse_rate

        with pytest.raises(RateFormatError, match="incorrect limit 'abc'"):
            parse_rate("abc-X")


class TestMemoryStore:
    """Tests for the shared counter store."""

    def test_window_resets(self):
        """Test that counts restart once the window expires."""
        from routing.ratelimit import MemoryStore

        store = MemoryStore()

        assert store.increment("client", 60, now=1000.0) == (1, 1060.0)
        assert store.increment("client", 60, now=1010.0) == (2, 1060.0)
        assert store.increment("client", 60, now=1060.0) == (1, 1120.0)

    def test_concurrent_increments_are_atomic(self):
        """Test that no hit is lost under concurrent callers."""
        from routing.ratelimit import MemoryStore

        store = MemoryStore()

        def hit(_):
            store.increment("client", 3600)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(hit, range(2000)))

        count, _ = store.increment("client", 3600)
        assert count == 2001


class TestLimiter:
    """Tests for rate decisions."""

    def test_limit_reached_after_rate(self):
        """Test that hits beyond the limit are reported as reached."""
        from routing.ratelimit import Limiter, MemoryStore, parse_rate

        limiter = Limiter(MemoryStore(), parse_rate("2-M"))

        first = limiter.get("client")
        second = limiter.get("client")
        third = limiter.get("client")

        assert (first.remaining, first.reached) == (1, False)
        assert (second.remaining, second.reached) == (0, False)
        assert third.reached
        assert not limiter.get("other").reached

    def test_zero_rate_rejects_everything(self):
        """Test that the degraded zero rate never lets a request through."""
        from routing.ratelimit import Limiter, MemoryStore, Rate

        limiter = Limiter(MemoryStore(), Rate.zero())

        assert limiter.get("client").reached


class TestRateLimitMiddleware:
    """Tests for request-time rate limiting."""

    def setup_method(self):
        """Set up an echo app limited to two requests per minute."""
        from routing.ratelimit import Limiter, MemoryStore, RateLimitMiddleware, parse_rate

        self.limiter = Limiter(MemoryStore(), parse_rate("2-M"))
        self.client = TestClient(RateLimitMiddleware(echo_app, limiter=self.limiter))

    def test_headers_and_rejection(self):
        """Test rate headers on success and 429 once the limit is hit."""
        first = self.client.get("/")
        self.client.get("/")
        third = self.client.get("/")

        assert first.status_code == 200
        assert first.headers["X-RateLimit-Limit"] == "2"
        assert first.headers["X-RateLimit-Remaining"] == "1"
        assert third.status_code == 429
        assert third.text == "Limit exceeded"
        assert third.headers["X-RateLimit-Remaining"] == "0"

    def test_forwarded_clients_counted_separately(self):
        """Test that callers are keyed by their forwarded address."""
        for _ in range(2):
            self.client.get("/", headers={"X-Forwarded-For": "10.0.0.1, 172.16.0.1"})

        blocked = self.client.get("/", headers={"X-Forwarded-For": "10.0.0.1"})
        allowed = self.client.get("/", headers={"X-Real-IP": "10.0.0.2"})

        assert blocked.status_code == 429
        assert allowed.status_code == 200


class TestClientKey:
    """Tests for caller identification."""

    def test_precedence(self):
        """Test forwarded-for, then real IP, then peer address."""
        from routing.ratelimit import client_key

        def scope(headers, client=("192.168.1.5", 5000)):
            return {
                "type": "http",
                "headers": [(k.encode(), v.encode()) for k, v in headers.items()],
                "client": client,
            }

        assert client_key(scope({"x-forwarded-for": "1.1.1.1, 2.2.2.2"})) == "1.1.1.1"
        assert client_key(scope({"x-real-ip": "3.3.3.3"})) == "3.3.3.3"
        assert client_key(scope({})) == "192.168.1.5"
        assert client_key(scope({}, client=None)) == "unknown"


class TestRouteTable:
    """Tests for the live route table."""

    def test_add_and_lookup(self):
        """Test installing and finding routes."""
        from routing.chain import MiddlewareChain
        from routing.register import Route, RouteTable

        table = RouteTable()
        route = Route(endpoint("/auth/token"), MiddlewareChain())
        table.add(route)

        assert "/auth/token" in table
        assert table.get("/auth/token") is route
        assert table.get("/missing") is None
        assert len(table) == 1

    def test_replace_existing(self):
        """Test that a second route for a listen path replaces the first."""
        from routing.chain import MiddlewareChain
        from routing.register import Route, RouteTable

        table = RouteTable()
        table.add(Route(endpoint("/auth/token"), MiddlewareChain()))
        newer = Route(endpoint("/auth/token", upstream="http://other"), MiddlewareChain())
        table.add(newer)

        assert table.routes() == [newer]

    def test_conflict_rejected(self):
        """Test that a strict table refuses duplicate listen paths."""
        from routing.chain import MiddlewareChain
        from routing.register import Route, RouteTable

        table = RouteTable(replace_existing=False)
        table.add(Route(endpoint("/auth/token"), MiddlewareChain()))

        with pytest.raises(RouteConflictError, match="already registered"):
            table.add(Route(endpoint("/auth/token"), MiddlewareChain()))

        table.clear()
        assert len(table) == 0

    def test_route_build_applies_chain(self):
        """Test that a route wraps the transport handler with its chain."""
        from routing.chain import ChainLink, MiddlewareChain
        from routing.register import Route

        wrapped = Mock(return_value=echo_app)
        route = Route(endpoint("/auth/token"), MiddlewareChain(ChainLink("mock", wrapped)))

        assert route.build(echo_app) is echo_app
        wrapped.assert_called_once_with(echo_app)


class TestNonHttpScopes:
    """Tests for scopes the guards do not handle."""

    @pytest.mark.asyncio
    async def test_lifespan_scope_passes_through(self):
        """Test that non-HTTP scopes skip rate limiting entirely."""
        from routing.ratelimit import Limiter, MemoryStore, Rate, RateLimitMiddleware

        seen = []

        async def app(scope, receive, send):
            seen.append(scope["type"])

        middleware = RateLimitMiddleware(app, limiter=Limiter(MemoryStore(), Rate.zero()))

        await middleware({"type": "lifespan"}, None, None)

        assert seen == ["lifespan"]
        assert len(middleware.limiter.store) == 0
