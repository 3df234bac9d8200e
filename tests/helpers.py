"""
Test Helpers - ZeroMQ test doubles and known identifiers

Two doubles stand in for the ID service:
- FakeContext / FakeReqSocket: in-memory, no network, enforce REQ alternation
- FakeIdService: a real ZeroMQ REP socket on a loopback port in a thread

Fun fact: A REP socket that gets two requests in a row never sees the second
one until it has replied to the first - ZeroMQ queues it for you!
"""

import threading
from collections import deque
from collections.abc import Callable, Iterable

import zmq

# (1000 << 25) | (42 << 10) | 7 with the default 39/15/10 layout
KNOWN_ID = 33554475015
KNOWN_ID_BYTES = bytes([0x00, 0x00, 0x00, 0x07, 0xD0, 0x00, 0xA8, 0x07])
KNOWN_TIMESTAMP_MS = 1337000001000
KNOWN_MACHINE_ID = 42
KNOWN_SEQUENCE = 7


class FakeReqSocket:
    """
    In-memory REQ socket

    Replies are taken from a shared deque of frame lists. Sending twice
    without receiving, or receiving without sending, raises EFSM like a real
    REQ socket.
    """

    def __init__(
        self,
        replies: deque[list[bytes]],
        on_send: Callable[[], None] | None = None,
    ) -> None:
        self.replies = replies
        self.on_send = on_send
        self.sent: list[bytes] = []
        self.options: dict[int, int] = {}
        self.endpoint: str | None = None
        self.closed = False
        self.awaiting_reply = False

    def setsockopt(self, option: int, value: int) -> None:
        self.options[option] = value

    def connect(self, endpoint: str) -> None:
        if not endpoint.startswith("tcp://"):
            raise zmq.ZMQError(zmq.EINVAL)
        self.endpoint = endpoint

    def send(self, data: bytes) -> None:
        if self.awaiting_reply:
            raise zmq.ZMQError(zmq.EFSM)
        if self.on_send is not None:
            self.on_send()
        self.sent.append(data)
        self.awaiting_reply = True

    def poll(self, timeout: int | None = None, flags: int = zmq.POLLIN) -> int:
        return zmq.POLLIN if self.awaiting_reply and self.replies else 0

    def recv_multipart(self) -> list[bytes]:
        if not self.awaiting_reply:
            raise zmq.ZMQError(zmq.EFSM)
        if not self.replies:
            raise AssertionError("recv would block forever: no reply queued")
        self.awaiting_reply = False
        return self.replies.popleft()

    def close(self, linger: int | None = None) -> None:
        self.closed = True


class FakeContext:
    """Hands out FakeReqSockets that share one reply queue"""

    def __init__(
        self,
        replies: Iterable[list[bytes]] = (),
        on_send: Callable[[], None] | None = None,
    ) -> None:
        self.replies: deque[list[bytes]] = deque(replies)
        self.on_send = on_send
        self.sockets: list[FakeReqSocket] = []
        self.terminated = False

    def queue(self, *frames: bytes) -> None:
        """Queue one reply made of the given frames"""
        self.replies.append(list(frames))

    def socket(self, socket_type: int) -> FakeReqSocket:
        assert socket_type == zmq.REQ
        if self.terminated:
            raise zmq.ContextTerminated()
        sock = FakeReqSocket(self.replies, on_send=self.on_send)
        self.sockets.append(sock)
        return sock

    def term(self) -> None:
        self.terminated = True


class FakeIdService:
    """
    ZeroMQ REP service on a random loopback port

    Args:
        reply: Frames to answer every request with, or a callable taking the
            1-based request number and returning the frames
        respond: If False, requests are received but never answered
    """

    def __init__(
        self,
        reply: list[bytes] | Callable[[int], list[bytes]] = (KNOWN_ID_BYTES,),
        respond: bool = True,
    ) -> None:
        self._reply = reply
        self.respond = respond
        self.requests: list[list[bytes]] = []
        self.port: int | None = None

        self._context = zmq.Context()
        self._ready = threading.Event()
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._serve, daemon=True)

    @property
    def endpoint(self) -> str:
        return f"tcp://127.0.0.1:{self.port}"

    def _frames_for(self, request_number: int) -> list[bytes]:
        if callable(self._reply):
            return self._reply(request_number)
        return list(self._reply)

    def _serve(self) -> None:
        sock = self._context.socket(zmq.REP)
        sock.setsockopt(zmq.LINGER, 0)
        try:
            self.port = sock.bind_to_random_port("tcp://127.0.0.1")
            self._ready.set()
            while not self._stop.is_set():
                if not sock.poll(20, zmq.POLLIN):
                    continue
                self.requests.append(sock.recv_multipart())
                if self.respond:
                    sock.send_multipart(self._frames_for(len(self.requests)))
        finally:
            sock.close()

    def __enter__(self) -> "FakeIdService":
        self._thread.start()
        if not self._ready.wait(timeout=5):
            raise RuntimeError("fake ID service did not start")
        return self

    def __exit__(self, *exc_info: object) -> None:
        self._stop.set()
        self._thread.join(timeout=5)
        self._context.term()
