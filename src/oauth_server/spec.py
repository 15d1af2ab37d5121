"""Resolved OAuth server specification."""

from pydantic import BaseModel, ConfigDict

from shared.models import OAuthServerConfig
from oauth_server.manager import Manager


class OAuthSpec(BaseModel):
    """
    An OAuth server definition paired with its constructed token manager.

    Only built after the manager resolved, so ``manager`` is never None.
    """
    model_config = ConfigDict(arbitrary_types_allowed=True, frozen=True)

    oauth: OAuthServerConfig
    manager: Manager

    @property
    def name(self) -> str:
        return self.oauth.name
