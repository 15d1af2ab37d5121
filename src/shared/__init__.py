"""Shared models, configuration and utilities for the gateway OAuth loader."""

from shared.models import (
    ClientEndpoints,
    CorsMeta,
    EndpointDefinition,
    EndpointKind,
    LoadSummary,
    OAuthEndpoints,
    OAuthServerConfig,
    RateLimitMeta,
    TokenStrategy,
)
from shared.config import Settings, get_settings
from shared.logging import get_logger, setup_logging

__all__ = [
    "ClientEndpoints",
    "CorsMeta",
    "EndpointDefinition",
    "EndpointKind",
    "LoadSummary",
    "OAuthEndpoints",
    "OAuthServerConfig",
    "RateLimitMeta",
    "TokenStrategy",
    "Settings",
    "get_settings",
    "get_logger",
    "setup_logging",
]
