"""OAuth servers - token managers, definition stores and request guards."""

from oauth_server.manager import Manager, ManagerFactory, ManagerType, parse_type
from oauth_server.spec import OAuthSpec
from oauth_server.store import FileRepository, InMemoryRepository, Repository
from oauth_server.secret import SecretMiddleware

__all__ = [
    "Manager",
    "ManagerFactory",
    "ManagerType",
    "parse_type",
    "OAuthSpec",
    "FileRepository",
    "InMemoryRepository",
    "Repository",
    "SecretMiddleware",
]
