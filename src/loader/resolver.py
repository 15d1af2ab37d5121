"""Token manager resolution for OAuth server definitions."""

from shared.errors import ManagerBuildError, UnknownStrategyError
from shared.models import OAuthServerConfig
from oauth_server.manager import Manager, ManagerFactory, parse_type


class ManagerResolver:
    """
    Maps a server's token strategy to a constructed manager.

    Resolution has no side effects beyond building the manager.
    """

    def __init__(self, factory_class: type[ManagerFactory] = ManagerFactory) -> None:
        self.factory_class = factory_class

    def resolve(self, config: OAuthServerConfig) -> Manager:
        """
        Build the token manager for an OAuth server.

        Args:
            config: OAuth server definition

        Returns:
            The server's token manager

        Raises:
            UnknownStrategyError: If the strategy name is not known
            ManagerBuildError: If the manager cannot be built from the settings
        """
        strategy = config.token_strategy

        try:
            kind = parse_type(strategy.name)
        except ValueError:
            raise UnknownStrategyError(config.name, strategy.name) from None

        try:
            return self.factory_class(strategy.settings).build(kind)
        except Exception as e:
            # Any factory failure is contained to this server
            raise ManagerBuildError(config.name, str(e)) from e
