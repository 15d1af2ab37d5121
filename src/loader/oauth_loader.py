"""OAuth loader - registers OAuth servers into the gateway's route table.

A load pass reads every OAuth server definition, resolves its token
manager, builds one middleware chain per endpoint and installs the valid
endpoints. Only a failing definition store aborts the pass; a bad server
or endpoint is logged and left out.
"""

from typing import NamedTuple, Optional

from shared.logging import get_logger, log_context
from shared.models import EndpointDefinition, EndpointKind, LoadSummary
from oauth_server.spec import OAuthSpec
from oauth_server.store import Repository
from routing.chain import MiddlewareChain
from routing.register import RouteTable
from loader import events
from loader.assembler import DefinitionAssembler
from loader.chain_builder import MiddlewareChainBuilder
from loader.registrar import RegistrationOutcome, RouteRegistrar
from loader.resolver import ManagerResolver

logger = get_logger(__name__)


class EndpointSlot(NamedTuple):
    """An endpoint slot of a server with the chain that guards it."""
    kind: EndpointKind
    endpoint: Optional[EndpointDefinition]
    chain: MiddlewareChain


class OAuthLoader:
    """
    Loads OAuth servers from a definition store into a route table.

    Each call to ``load`` reprocesses every server from scratch; routes are
    added through the table, which decides what happens to listen paths
    that are already present. The managers of the previous pass are closed
    once a new pass has registered its servers.
    """

    def __init__(
        self,
        route_table: RouteTable,
        resolver: Optional[ManagerResolver] = None
    ) -> None:
        self.route_table = route_table
        self.assembler = DefinitionAssembler(resolver)
        self.registrar = RouteRegistrar(route_table)
        self.active_specs: list[OAuthSpec] = []

    def load(self, repository: Repository) -> LoadSummary:
        """
        Load all OAuth servers from a definition store.

        Raises:
            FatalLoadError: If the store cannot return the definitions
        """
        specs = self.assembler.assemble(repository)
        return self.register_oauth_servers(specs)

    def register_oauth_servers(self, specs: list[OAuthSpec]) -> LoadSummary:
        """Register the endpoints of already resolved OAuth servers."""
        logger.debug(events.SERVERS_LOADING, count=len(specs))
        summary = LoadSummary()

        for spec in specs:
            server_logger = logger.bind(server=spec.name)
            server_logger.debug(events.SERVER_REGISTERING)

            with log_context(server=spec.name):
                for slot in self.endpoint_slots(spec):
                    outcome = self.registrar.register(slot.kind, slot.endpoint, slot.chain)
                    if outcome is RegistrationOutcome.REGISTERED:
                        summary.registered.append(slot.endpoint.listen_path)
                    elif outcome is RegistrationOutcome.SKIPPED:
                        summary.skipped += 1
                    else:
                        summary.failed += 1

            summary.servers.append(spec.name)
            server_logger.debug(events.SERVER_REGISTERED)

        logger.info(
            events.SERVERS_LOADED,
            servers=len(summary.servers),
            routes=len(summary.registered),
            skipped=summary.skipped,
            failed=summary.failed
        )

        previous, self.active_specs = self.active_specs, list(specs)
        self._close_managers(previous)
        return summary

    def close(self) -> None:
        """Close the managers of the last load pass."""
        previous, self.active_specs = self.active_specs, []
        self._close_managers(previous)

    def _close_managers(self, specs: list[OAuthSpec]) -> None:
        current = {id(spec.manager) for spec in self.active_specs}
        for spec in specs:
            if id(spec.manager) in current:
                continue
            try:
                spec.manager.close()
            except Exception as e:
                logger.warning("Failed to close token manager", server=spec.name, error=str(e))

    def endpoint_slots(self, spec: OAuthSpec) -> list[EndpointSlot]:
        """Pair each of the server's endpoint slots with its chain."""
        builder = MiddlewareChainBuilder(spec)
        return [
            EndpointSlot(kind, spec.oauth.endpoint_for(kind), builder.build(kind))
            for kind in EndpointKind
        ]
