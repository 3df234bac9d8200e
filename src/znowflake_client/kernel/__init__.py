"""
Kernel - Cross-cutting infrastructure

Errors, structured logging, metrics and retry policy shared by the identifier,
transport and session layers.
"""

from znowflake_client.kernel.errors import (
    ConnectionClosed,
    ConnectionFailed,
    FormatError,
    LockStepViolation,
    TransportError,
    TransportTimeout,
    ZnowflakeError,
)

__all__ = [
    "ZnowflakeError",
    "FormatError",
    "TransportError",
    "ConnectionFailed",
    "ConnectionClosed",
    "TransportTimeout",
    "LockStepViolation",
]
