"""
ZeroMQ REQ client for the ID service

One REQ socket, one request in flight at a time. The service answers each
empty request with one 8-byte frame; the client hands that frame back
untouched and leaves decoding to the codec.

A REQ socket that timed out waiting for a reply can never send again, so on
timeout the socket is thrown away and a fresh one is connected on the next
request (the ZeroMQ guide's "lazy pirate" pattern).
"""

from typing import Any

import zmq

from znowflake_client.kernel.errors import (
    ConnectionClosed,
    ConnectionFailed,
    FormatError,
    LockStepViolation,
    TransportError,
    TransportTimeout,
)
from znowflake_client.kernel.logging import get_logger
from znowflake_client.kernel.metrics import track_request_duration

logger = get_logger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 23138

EMPTY_REQUEST = b""


def build_endpoint(host: str = DEFAULT_HOST, port: int = DEFAULT_PORT) -> str:
    """ZeroMQ TCP endpoint for host and port"""
    return f"tcp://{host}:{port}"


class TransportClient:
    """
    Lock-step request/response client over a ZeroMQ REQ socket

    The socket is connected lazily on the first request. Use as a context
    manager, or call close() when done.

    Not thread-safe: one thread owns a client, like the ZeroMQ socket under
    it. The in-flight check catches re-entry from that same thread (e.g. a
    reporter callback that requests again), not concurrent callers.
    """

    def __init__(
        self,
        endpoint: str,
        timeout_ms: int | None = None,
        context: zmq.Context | None = None,
    ) -> None:
        """
        Initialize transport client

        Args:
            endpoint: ZeroMQ endpoint, e.g. "tcp://127.0.0.1:23138"
            timeout_ms: Reply timeout in milliseconds (None blocks forever)
            context: ZeroMQ context to create sockets from (a private one is
                created, and terminated on close, if None)
        """
        self.endpoint = endpoint
        self.timeout_ms = timeout_ms

        self._owns_context = context is None
        self._context = context if context is not None else zmq.Context()
        self._socket: Any = None
        self._in_flight = False
        self._closed = False

    @property
    def connected(self) -> bool:
        return self._socket is not None

    def connect(self) -> None:
        """Create and connect the REQ socket if there is none yet"""
        if self._closed:
            raise ConnectionClosed(self.endpoint, "client is closed")
        if self._socket is not None:
            return

        try:
            socket = self._context.socket(zmq.REQ)
        except zmq.ContextTerminated as exc:
            raise ConnectionClosed(self.endpoint, "ZeroMQ context terminated") from exc
        except zmq.ZMQError as exc:
            raise ConnectionFailed(self.endpoint, f"cannot create socket: {exc}") from exc

        try:
            socket.setsockopt(zmq.LINGER, 0)
            socket.connect(self.endpoint)
        except zmq.ZMQError as exc:
            socket.close()
            raise ConnectionFailed(self.endpoint, f"cannot connect: {exc}") from exc

        self._socket = socket
        logger.debug("Connected to ID service", endpoint=self.endpoint)

    @track_request_duration
    def request_identifier(self) -> bytes:
        """
        Send one empty request and block until its reply arrives

        Returns:
            The raw reply payload (expected to be 8 bytes; not validated here)

        Raises:
            LockStepViolation: If a request is already awaiting its reply
            TransportTimeout: If timeout_ms elapses without a reply
            ConnectionFailed: If the socket cannot be set up or used
            ConnectionClosed: If the client or its context is closed
            FormatError: If the reply has more than one frame
        """
        if self._in_flight:
            raise LockStepViolation(self.endpoint)

        self._in_flight = True
        try:
            return self._round_trip()
        finally:
            self._in_flight = False

    def _round_trip(self) -> bytes:
        self.connect()
        socket = self._socket

        try:
            socket.send(EMPTY_REQUEST)
        except zmq.ZMQError as exc:
            self._reset()
            raise self._translate(exc, "send failed") from exc

        try:
            if self.timeout_ms is not None and not socket.poll(self.timeout_ms, zmq.POLLIN):
                logger.warning(
                    "No reply from ID service, resetting socket",
                    endpoint=self.endpoint,
                    timeout_ms=self.timeout_ms,
                )
                self._reset()
                raise TransportTimeout(self.endpoint, self.timeout_ms)
            frames = socket.recv_multipart()
        except zmq.ZMQError as exc:
            self._reset()
            raise self._translate(exc, "receive failed") from exc

        if len(frames) != 1:
            raise FormatError(
                f"expected a single-frame reply, got {len(frames)} frames",
                payload_size=sum(len(frame) for frame in frames),
            )
        return bytes(frames[0])

    def _translate(self, exc: zmq.ZMQError, action: str) -> TransportError:
        if isinstance(exc, zmq.ContextTerminated):
            return ConnectionClosed(self.endpoint, "ZeroMQ context terminated")
        if exc.errno == zmq.EFSM:
            return LockStepViolation(self.endpoint, f"socket out of turn: {exc}")
        return ConnectionFailed(self.endpoint, f"{action}: {exc}")

    def _reset(self) -> None:
        if self._socket is not None:
            self._socket.close()
            self._socket = None

    def close(self) -> None:
        """Close the socket (and the context, if this client created it)"""
        if self._closed:
            return
        self._closed = True
        self._reset()
        if self._owns_context:
            self._context.term()
        logger.debug("Transport closed", endpoint=self.endpoint)

    def __enter__(self) -> "TransportClient":
        self.connect()
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
