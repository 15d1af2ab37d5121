"""Error taxonomy for the OAuth route loader.

Only ``FatalLoadError`` escapes a load pass. Every other error is contained
at the server or endpoint it concerns and is observable through logs.
"""


class GatewayError(Exception):
    """Base exception for gateway loader errors."""
    pass


class RepositoryError(GatewayError):
    """The definition store could not return the server list."""
    pass


class FatalLoadError(GatewayError):
    """Definition retrieval failed; nothing was registered."""
    pass


class ServerSkipError(GatewayError):
    """An OAuth server cannot be used and contributes no routes."""

    def __init__(self, server: str, message: str) -> None:
        super().__init__(message)
        self.server = server


class UnknownStrategyError(ServerSkipError):
    """The token strategy name does not match any known strategy."""

    def __init__(self, server: str, strategy: str) -> None:
        super().__init__(server, f"unknown token strategy '{strategy}'")
        self.strategy = strategy


class ManagerBuildError(ServerSkipError):
    """The token manager could not be constructed from its settings."""
    pass


class EndpointSkipError(GatewayError):
    """An endpoint failed validation and was not installed."""

    def __init__(self, listen_path: str, reason: str) -> None:
        super().__init__(f"endpoint '{listen_path}' rejected: {reason}")
        self.listen_path = listen_path
        self.reason = reason


class RouteConflictError(GatewayError):
    """The route table refused a route because its listen path is taken."""
    pass


class SoftConfigWarning(GatewayError):
    """Malformed optional configuration; processing continues degraded."""
    pass


class RateFormatError(SoftConfigWarning, ValueError):
    """A rate string is not in the ``<limit>-<period>`` format."""
    pass
