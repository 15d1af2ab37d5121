"""Route table for the gateway.

Holds the live mapping from listen path to route. The table is written by
the loader at startup or reload and read by request handling concurrently,
so every access goes through a lock.
"""

import threading
from typing import Optional

from starlette.types import ASGIApp

from shared.errors import RouteConflictError
from shared.logging import get_logger
from shared.models import EndpointDefinition
from routing.chain import MiddlewareChain

logger = get_logger(__name__)


class Route:
    """An endpoint definition guarded by an inbound middleware chain."""

    def __init__(self, definition: EndpointDefinition, inbound: MiddlewareChain) -> None:
        self.definition = definition
        self.inbound = inbound

    @property
    def listen_path(self) -> str:
        return self.definition.listen_path

    def build(self, app: ASGIApp) -> ASGIApp:
        """Wrap the transport's upstream handler with the inbound chain."""
        return self.inbound.apply(app)

    def __repr__(self) -> str:
        return f"Route({self.listen_path!r}, {self.inbound!r})"


class RouteTable:
    """
    Live routes keyed by listen path.

    When a listen path is added twice the newer route replaces the older
    one, unless the table was created with ``replace_existing=False``, in
    which case ``add`` raises ``RouteConflictError``.
    """

    def __init__(self, replace_existing: bool = True) -> None:
        self.replace_existing = replace_existing
        self._routes: dict[str, Route] = {}
        self._lock = threading.Lock()

    def add(self, route: Route) -> None:
        """
        Install a route.

        Raises:
            RouteConflictError: If the listen path is taken and replacing is disabled
        """
        listen_path = route.listen_path

        with self._lock:
            if listen_path in self._routes:
                if not self.replace_existing:
                    raise RouteConflictError(f"listen path '{listen_path}' is already registered")
                logger.info("Route replaced", listen_path=listen_path)

            self._routes[listen_path] = route

        logger.debug("Route added", listen_path=listen_path, chain=list(route.inbound.names))

    def get(self, listen_path: str) -> Optional[Route]:
        with self._lock:
            return self._routes.get(listen_path)

    def routes(self) -> list[Route]:
        """All routes in installation order."""
        with self._lock:
            return list(self._routes.values())

    def clear(self) -> None:
        """Remove every route."""
        with self._lock:
            self._routes.clear()
        logger.warning("Route table cleared")

    def __len__(self) -> int:
        with self._lock:
            return len(self._routes)

    def __contains__(self, listen_path: object) -> bool:
        with self._lock:
            return listen_path in self._routes
