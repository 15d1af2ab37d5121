"""Assembly of OAuth specs from a definition store."""

from typing import Optional

from shared.errors import FatalLoadError, ServerSkipError
from shared.logging import get_logger
from oauth_server.spec import OAuthSpec
from oauth_server.store import Repository
from loader import events
from loader.resolver import ManagerResolver

logger = get_logger(__name__)


class DefinitionAssembler:
    """
    Turns raw OAuth server definitions into resolved specs.

    A store failure aborts the load. A server whose manager cannot be
    resolved is logged and left out; the remaining specs keep their order.
    """

    def __init__(self, resolver: Optional[ManagerResolver] = None) -> None:
        self.resolver = resolver or ManagerResolver()

    def assemble(self, repository: Repository) -> list[OAuthSpec]:
        """
        Read and resolve every OAuth server definition.

        Args:
            repository: Definition store

        Returns:
            Resolved specs in store order, possibly empty

        Raises:
            FatalLoadError: If the store cannot return the definitions
        """
        try:
            configs = repository.find_all()
        except Exception as e:
            logger.error(events.DEFINITIONS_UNAVAILABLE, error=str(e))
            raise FatalLoadError(f"could not retrieve OAuth definitions: {e}") from e

        specs: list[OAuthSpec] = []
        for config in configs:
            try:
                manager = self.resolver.resolve(config)
            except ServerSkipError as e:
                logger.error(
                    events.SERVER_SKIPPED,
                    server=config.name,
                    error=str(e),
                    reason="OAuth definition is not well configured, skipping"
                )
                continue

            specs.append(OAuthSpec(oauth=config, manager=manager))

        return specs
