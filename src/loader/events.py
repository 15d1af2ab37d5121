"""Diagnostic event names emitted at load pipeline checkpoints."""

DEFINITIONS_UNAVAILABLE = "oauth.definitions.unavailable"

SERVERS_LOADING = "oauth.servers.loading"
SERVERS_LOADED = "oauth.servers.loaded"

SERVER_SKIPPED = "oauth.server.skipped"
SERVER_REGISTERING = "oauth.server.registering"
SERVER_REGISTERED = "oauth.server.registered"

RATE_LIMIT_DEGRADED = "oauth.rate_limit.degraded"

ENDPOINT_ABSENT = "oauth.endpoint.absent"
ENDPOINT_REGISTERING = "oauth.endpoint.registering"
ENDPOINT_REGISTERED = "oauth.endpoint.registered"
ENDPOINT_FAILED = "oauth.endpoint.failed"
