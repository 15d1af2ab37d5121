"""Token managers for OAuth servers.

A manager decides whether an access token issued by an OAuth server is
valid. Managers are built once per load pass from a server's token strategy
settings and are shared by every request hitting that server's routes, so
they never mutate their own state after construction.
"""

import secrets
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, Callable, Optional

import httpx
from jose import JWTError, jwt
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from shared.logging import get_logger
from shared.schema import validate_schema

logger = get_logger(__name__)


class ManagerType(str, Enum):
    """Known token strategies."""
    BASIC = "basic"
    JWT = "jwt"
    INTROSPECTION = "introspection"


def parse_type(name: str) -> ManagerType:
    """
    Parse a token strategy name.

    Raises:
        ValueError: If the name does not match a known strategy
    """
    try:
        return ManagerType(name.strip().lower())
    except ValueError:
        raise ValueError(f"unknown manager type '{name}'") from None


class Manager(ABC):
    """Validates access tokens for one OAuth server."""

    @abstractmethod
    def is_key_valid(self, access_token: str) -> bool:
        """Return True if the access token is currently valid."""
        pass

    def close(self) -> None:
        """Release resources held by the manager."""
        pass


class BasicManager(Manager):
    """Accepts a fixed set of opaque bearer tokens."""

    def __init__(self, tokens: list[str]) -> None:
        self._tokens = frozenset(tokens)

    def is_key_valid(self, access_token: str) -> bool:
        if not access_token:
            return False
        return any(secrets.compare_digest(access_token, t) for t in self._tokens)


class JWTManager(Manager):
    """Verifies self-contained JWT access tokens."""

    def __init__(
        self,
        secret: str,
        algorithms: Optional[list[str]] = None,
        audience: Optional[str] = None,
        issuer: Optional[str] = None,
        leeway: int = 0
    ) -> None:
        self._secret = secret
        self._algorithms = tuple(algorithms or ["HS256"])
        self._audience = audience
        self._issuer = issuer
        self._leeway = leeway

    def is_key_valid(self, access_token: str) -> bool:
        try:
            jwt.decode(
                access_token,
                self._secret,
                algorithms=list(self._algorithms),
                audience=self._audience,
                issuer=self._issuer,
                options={"leeway": self._leeway, "verify_aud": self._audience is not None},
            )
        except JWTError as e:
            logger.debug("JWT rejected", error=str(e))
            return False
        return True


class IntrospectionManager(Manager):
    """
    Asks the OAuth server whether a token is active (RFC 7662).

    The underlying ``httpx.Client`` is thread-safe and reused across requests.
    """

    def __init__(
        self,
        url: str,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        timeout: float = 5.0,
        transport: Optional[httpx.BaseTransport] = None
    ) -> None:
        self.url = url
        auth = (client_id, client_secret or "") if client_id else None
        self._client = httpx.Client(timeout=timeout, auth=auth, transport=transport)

    @retry(
        stop=stop_after_attempt(3),
        wait=wait_exponential(multiplier=0.2, max=2),
        retry=retry_if_exception_type(httpx.TransportError),
        reraise=True
    )
    def _introspect(self, access_token: str) -> dict[str, Any]:
        response = self._client.post(
            self.url,
            data={"token": access_token, "token_type_hint": "access_token"},
            headers={"Accept": "application/json"},
        )
        response.raise_for_status()
        return response.json()

    def is_key_valid(self, access_token: str) -> bool:
        if not access_token:
            return False
        try:
            payload = self._introspect(access_token)
        except (httpx.HTTPError, ValueError) as e:
            logger.warning("Token introspection failed", url=self.url, error=str(e))
            return False
        return payload.get("active") is True

    def close(self) -> None:
        """Close the HTTP client."""
        self._client.close()


# JSON Schemas for each strategy's settings block
SETTINGS_SCHEMAS: dict[ManagerType, dict[str, Any]] = {
    ManagerType.BASIC: {
        "type": "object",
        "properties": {
            "tokens": {"type": "array", "items": {"type": "string", "minLength": 1}},
        },
        "additionalProperties": False,
    },
    ManagerType.JWT: {
        "type": "object",
        "properties": {
            "secret": {"type": "string", "minLength": 1},
            "algorithms": {
                "type": "array",
                "minItems": 1,
                "items": {
                    "enum": [
                        "HS256", "HS384", "HS512",
                        "RS256", "RS384", "RS512",
                        "ES256", "ES384", "ES512",
                    ]
                },
            },
            "audience": {"type": "string"},
            "issuer": {"type": "string"},
            "leeway": {"type": "integer", "minimum": 0},
        },
        "required": ["secret"],
        "additionalProperties": False,
    },
    ManagerType.INTROSPECTION: {
        "type": "object",
        "properties": {
            "url": {"type": "string", "pattern": "^https?://"},
            "client_id": {"type": "string"},
            "client_secret": {"type": "string"},
            "timeout": {"type": "number", "exclusiveMinimum": 0},
        },
        "required": ["url"],
        "additionalProperties": False,
    },
}


class ManagerFactory:
    """Builds managers from a token strategy's settings block."""

    def __init__(self, settings: Optional[dict[str, Any]] = None) -> None:
        self.settings = dict(settings or {})
        self._builders: dict[ManagerType, Callable[[dict[str, Any]], Manager]] = {
            ManagerType.BASIC: lambda s: BasicManager(tokens=s.get("tokens", [])),
            ManagerType.JWT: lambda s: JWTManager(**s),
            ManagerType.INTROSPECTION: lambda s: IntrospectionManager(**s),
        }

    def build(self, kind: ManagerType) -> Manager:
        """
        Build a manager of the given kind.

        Raises:
            ValueError: If the settings do not match the strategy's schema
        """
        is_valid, errors = validate_schema(self.settings, SETTINGS_SCHEMAS[kind])
        if not is_valid:
            raise ValueError(f"invalid {kind.value} settings: {'; '.join(errors)}")

        return self._builders[kind](self.settings)
