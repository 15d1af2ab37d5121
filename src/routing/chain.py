"""Middleware chains for gateway routes.

A chain is an ordered, immutable sequence of named ASGI middleware
factories. The first link is the outermost wrapper: it sees the request
first and the response last.
"""

from typing import Callable, Iterator, NamedTuple

from starlette.types import ASGIApp

# Wraps an ASGI app into another ASGI app
Middleware = Callable[[ASGIApp], ASGIApp]


class ChainLink(NamedTuple):
    """A named middleware factory."""
    name: str
    middleware: Middleware


class MiddlewareChain:
    """Ordered, immutable list of middleware, outermost first."""

    __slots__ = ("_links",)

    def __init__(self, *links: ChainLink) -> None:
        self._links: tuple[ChainLink, ...] = tuple(links)

    @property
    def links(self) -> tuple[ChainLink, ...]:
        return self._links

    @property
    def names(self) -> tuple[str, ...]:
        """Link names from outermost to innermost."""
        return tuple(link.name for link in self._links)

    def apply(self, app: ASGIApp) -> ASGIApp:
        """Wrap ``app`` so that the first link runs first."""
        for link in reversed(self._links):
            app = link.middleware(app)
        return app

    def __len__(self) -> int:
        return len(self._links)

    def __iter__(self) -> Iterator[ChainLink]:
        return iter(self._links)

    def __contains__(self, name: object) -> bool:
        return name in self.names

    def __repr__(self) -> str:
        return f"MiddlewareChain({' -> '.join(self.names)})"
