"""
Custom exceptions for the znowflake client

Two failure families matter to a caller: the service answered with something
that is not an identifier (FormatError), or the round trip itself broke
(TransportError). Everything else is a programming error.

Fun fact: ZeroMQ reports a REQ socket used out of turn with EFSM - "finite
state machine" - because a REQ socket really is a two-state machine!
"""


class ZnowflakeError(Exception):
    """Base exception for all znowflake client errors"""

    pass


class FormatError(ZnowflakeError):
    """
    Raised when a response payload is not a well-formed identifier

    Identifiers travel as exactly 8 bytes. Anything longer, shorter, or split
    across several frames is rejected rather than truncated or padded.
    """

    def __init__(self, message: str, payload_size: int | None = None) -> None:
        self.payload_size = payload_size
        super().__init__(message)


class TransportError(ZnowflakeError):
    """Base class for failures of the request/response round trip"""

    def __init__(self, endpoint: str, message: str) -> None:
        self.endpoint = endpoint
        super().__init__(f"{endpoint}: {message}")


class ConnectionFailed(TransportError):
    """Raised when the socket cannot be set up or a request cannot be sent"""

    pass


class ConnectionClosed(TransportError):
    """Raised when the client or its ZeroMQ context has already been closed"""

    pass


class TransportTimeout(TransportError):
    """Raised when no reply arrives within the configured timeout"""

    def __init__(self, endpoint: str, timeout_ms: int) -> None:
        self.timeout_ms = timeout_ms
        super().__init__(endpoint, f"no reply within {timeout_ms} ms")


class LockStepViolation(TransportError):
    """
    Raised when request/response alternation would be broken

    A REQ socket must see exactly one reply per request, in order. Issuing a
    second request before the first resolves desynchronizes the session.
    """

    def __init__(self, endpoint: str, message: str = "") -> None:
        super().__init__(
            endpoint,
            message or "request issued while a previous request is still awaiting its reply",
        )
