"""Loader - turns OAuth server definitions into guarded gateway routes.

Pipeline: definition retrieval, manager resolution, middleware chain
assembly, endpoint validation and route activation.
"""

from loader.resolver import ManagerResolver
from loader.assembler import DefinitionAssembler
from loader.chain_builder import MiddlewareChainBuilder
from loader.registrar import RegistrationOutcome, RouteRegistrar
from loader.oauth_loader import EndpointSlot, OAuthLoader

__all__ = [
    "ManagerResolver",
    "DefinitionAssembler",
    "MiddlewareChainBuilder",
    "RegistrationOutcome",
    "RouteRegistrar",
    "EndpointSlot",
    "OAuthLoader",
]
