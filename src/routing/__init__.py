"""Routing - middleware chains, rate limiting and the live route table."""

from routing.chain import ChainLink, Middleware, MiddlewareChain
from routing.ratelimit import Limiter, MemoryStore, Rate, RateLimitMiddleware, parse_rate
from routing.register import Route, RouteTable

__all__ = [
    "ChainLink",
    "Middleware",
    "MiddlewareChain",
    "Limiter",
    "MemoryStore",
    "Rate",
    "RateLimitMiddleware",
    "parse_rate",
    "Route",
    "RouteTable",
]
