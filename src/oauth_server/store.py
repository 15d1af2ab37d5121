"""OAuth server definition stores.

A store returns every configured OAuth server in a stable order, or fails
as a whole with ``RepositoryError``. It never returns a partial list.
"""

import json
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Iterable, Optional

import yaml
from pydantic import ValidationError

from shared.errors import RepositoryError
from shared.logging import get_logger
from shared.models import OAuthServerConfig

logger = get_logger(__name__)

DEFINITION_SUFFIXES = (".yaml", ".yml", ".json")


class Repository(ABC):
    """Source of OAuth server definitions."""

    @abstractmethod
    def find_all(self) -> list[OAuthServerConfig]:
        """
        Return all OAuth server definitions.

        Raises:
            RepositoryError: If the definitions cannot be retrieved
        """
        pass


class InMemoryRepository(Repository):
    """Definitions held in process memory, in insertion order."""

    def __init__(self, servers: Optional[Iterable[OAuthServerConfig]] = None) -> None:
        self._servers: dict[str, OAuthServerConfig] = {}
        for server in servers or []:
            self.add(server)

    def add(self, server: OAuthServerConfig) -> None:
        """Add or replace a definition by name."""
        self._servers[server.name] = server

    def remove(self, name: str) -> bool:
        """Remove a definition; returns False if it was not present."""
        return self._servers.pop(name, None) is not None

    def find_all(self) -> list[OAuthServerConfig]:
        return list(self._servers.values())


class FileRepository(Repository):
    """
    Definitions read from a directory of YAML or JSON files.

    Each file holds either one server definition or a list of them. Files are
    read in name order on every ``find_all`` call, so edits are picked up on
    the next reload.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def _read(self, file: Path) -> Any:
        with open(file) as f:
            if file.suffix == ".json":
                return json.load(f)
            return yaml.safe_load(f)

    def find_all(self) -> list[OAuthServerConfig]:
        if not self.path.is_dir():
            raise RepositoryError(f"definitions directory '{self.path}' does not exist")

        servers: list[OAuthServerConfig] = []
        files = sorted(p for p in self.path.iterdir() if p.suffix in DEFINITION_SUFFIXES)

        for file in files:
            try:
                data = self._read(file)
            except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
                raise RepositoryError(f"cannot read '{file.name}': {e}") from e

            if data is None:
                logger.debug("Empty definition file", file=file.name)
                continue

            documents = data if isinstance(data, list) else [data]
            try:
                servers.extend(OAuthServerConfig.model_validate(d) for d in documents)
            except ValidationError as e:
                raise RepositoryError(f"invalid definition in '{file.name}': {e}") from e

        logger.debug("OAuth definitions read", path=str(self.path), count=len(servers))
        return servers
