"""In-process rate limiting for gateway routes.

Rates are written as ``<limit>-<period>`` where period is one of ``S``,
``M``, ``H`` or ``D`` (e.g. ``5-M`` is five requests per minute). Counting
uses fixed windows per client key. One ``MemoryStore`` is shared by every
request hitting the routes it was built for, so increments happen under a
lock.
"""

import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

from fastapi.responses import PlainTextResponse
from starlette.datastructures import Headers, MutableHeaders
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from shared.errors import RateFormatError

PERIODS: dict[str, int] = {
    "S": 1,
    "M": 60,
    "H": 60 * 60,
    "D": 60 * 60 * 24,
}


@dataclass(frozen=True)
class Rate:
    """Number of requests allowed per period (in seconds)."""
    formatted: str
    limit: int
    period: int

    @classmethod
    def zero(cls) -> "Rate":
        """A rate that allows nothing."""
        return cls(formatted="", limit=0, period=0)


def parse_rate(formatted: str) -> Rate:
    """
    Parse a ``<limit>-<period>`` rate string.

    Raises:
        RateFormatError: If the string is malformed
    """
    values = formatted.split("-")
    if len(values) != 2:
        raise RateFormatError(f"incorrect format '{formatted}'")

    limit, period = values[0].strip(), values[1].strip().upper()

    try:
        count = int(limit)
    except ValueError:
        raise RateFormatError(f"incorrect limit '{limit}' in '{formatted}'") from None

    if count < 0:
        raise RateFormatError(f"negative limit in '{formatted}'")

    if period not in PERIODS:
        raise RateFormatError(f"incorrect period '{period}' in '{formatted}'")

    return Rate(formatted=formatted, limit=count, period=PERIODS[period])


@dataclass(frozen=True)
class LimitContext:
    """Limiter state for one request."""
    limit: int
    remaining: int
    reset: int
    reached: bool


class MemoryStore:
    """Fixed-window counters keyed by client, safe for concurrent use."""

    def __init__(self, clean_interval: float = 30.0) -> None:
        self._counters: dict[str, tuple[int, float]] = {}
        self._lock = threading.Lock()
        self._clean_interval = clean_interval
        self._next_cleanup = time.time() + clean_interval

    def _cleanup(self, now: float) -> None:
        if now < self._next_cleanup:
            return
        self._counters = {k: v for k, v in self._counters.items() if v[1] > now}
        self._next_cleanup = now + self._clean_interval

    def increment(self, key: str, period: float, now: Optional[float] = None) -> tuple[int, float]:
        """
        Count one hit for ``key``.

        Returns:
            Tuple of (hits in the current window, window expiry timestamp)
        """
        with self._lock:
            now = time.time() if now is None else now
            self._cleanup(now)

            count, expires_at = self._counters.get(key, (0, 0.0))
            if expires_at <= now:
                count, expires_at = 0, now + period

            count += 1
            self._counters[key] = (count, expires_at)
            return count, expires_at

    def __len__(self) -> int:
        with self._lock:
            return len(self._counters)


class Limiter:
    """Applies a rate to a counter store."""

    def __init__(self, store: MemoryStore, rate: Rate) -> None:
        self.store = store
        self.rate = rate

    def get(self, key: str) -> LimitContext:
        """Count a hit for ``key`` and report whether the limit is reached."""
        if self.rate.limit <= 0 or self.rate.period <= 0:
            return LimitContext(limit=0, remaining=0, reset=int(time.time()), reached=True)

        count, expires_at = self.store.increment(key, self.rate.period)
        return LimitContext(
            limit=self.rate.limit,
            remaining=max(self.rate.limit - count, 0),
            reset=int(expires_at),
            reached=count > self.rate.limit,
        )


def client_key(scope: Scope) -> str:
    """Identify the caller by forwarded address, falling back to the peer."""
    headers = Headers(scope=scope)

    forwarded_for = headers.get("x-forwarded-for")
    if forwarded_for:
        return forwarded_for.split(",")[0].strip()

    real_ip = headers.get("x-real-ip")
    if real_ip:
        return real_ip.strip()

    client = scope.get("client")
    return client[0] if client else "unknown"


class RateLimitMiddleware:
    """ASGI middleware rejecting callers over their rate with 429."""

    def __init__(
        self,
        app: ASGIApp,
        limiter: Limiter,
        key_func: Callable[[Scope], str] = client_key
    ) -> None:
        self.app = app
        self.limiter = limiter
        self.key_func = key_func

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        context = self.limiter.get(self.key_func(scope))
        rate_headers = {
            "X-RateLimit-Limit": str(context.limit),
            "X-RateLimit-Remaining": str(context.remaining),
            "X-RateLimit-Reset": str(context.reset),
        }

        if context.reached:
            response = PlainTextResponse("Limit exceeded", status_code=429, headers=rate_headers)
            await response(scope, receive, send)
            return

        async def send_with_rate_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for name, value in rate_headers.items():
                    headers.append(name, value)
            await send(message)

        await self.app(scope, receive, send_with_rate_headers)
