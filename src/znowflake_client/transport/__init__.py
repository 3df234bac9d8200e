"""Request/response transport to the ID service."""

from znowflake_client.transport.client import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    TransportClient,
    build_endpoint,
)

__all__ = ["TransportClient", "build_endpoint", "DEFAULT_HOST", "DEFAULT_PORT"]
