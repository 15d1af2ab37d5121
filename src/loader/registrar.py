"""Validation and installation of OAuth endpoints into the route table."""

from enum import Enum
from typing import Optional

from shared.errors import EndpointSkipError, RouteConflictError
from shared.logging import get_logger
from shared.models import EndpointDefinition, EndpointKind
from routing.chain import MiddlewareChain
from routing.register import Route, RouteTable
from loader import events

logger = get_logger(__name__)


class RegistrationOutcome(str, Enum):
    """Result of registering one endpoint slot."""
    REGISTERED = "registered"
    SKIPPED = "skipped"
    FAILED = "failed"


class RouteRegistrar:
    """
    Installs validated endpoints into a route table.

    Absent endpoints are skipped and invalid ones are reported; neither
    stops the remaining endpoints from registering.
    """

    def __init__(self, route_table: RouteTable) -> None:
        self.route_table = route_table

    def register(
        self,
        kind: EndpointKind,
        endpoint: Optional[EndpointDefinition],
        chain: MiddlewareChain
    ) -> RegistrationOutcome:
        """
        Register one endpoint slot.

        Args:
            kind: Endpoint slot being registered
            endpoint: Endpoint definition, None if the server has none
            chain: Middleware chain guarding the endpoint

        Returns:
            Whether the endpoint was registered, skipped or failed
        """
        if endpoint is None:
            logger.debug(events.ENDPOINT_ABSENT, kind=kind.value)
            return RegistrationOutcome.SKIPPED

        log = logger.bind(kind=kind.value, listen_path=endpoint.listen_path)
        log.debug(events.ENDPOINT_REGISTERING)

        try:
            self._install(endpoint, chain)
        except (EndpointSkipError, RouteConflictError) as e:
            log.error(events.ENDPOINT_FAILED, error=str(e))
            return RegistrationOutcome.FAILED

        log.debug(events.ENDPOINT_REGISTERED, chain=list(chain.names))
        return RegistrationOutcome.REGISTERED

    def _install(self, endpoint: EndpointDefinition, chain: MiddlewareChain) -> None:
        is_valid, error = endpoint.validate_definition()
        if not is_valid or error is not None:
            raise EndpointSkipError(endpoint.listen_path, error or "definition is not valid")

        self.route_table.add(Route(endpoint, chain))
