"""
Session - drives round trips against the ID service

A session asks the transport for one payload at a time, decodes it with the
configured bit layout, and hands the result to a reporter. Requests are
strictly sequential: request k+1 is never sent before request k has been
answered or has failed.

Example:
    >>> from znowflake_client import ClientConfig, run_session
    >>> config = ClientConfig(port=23138, iterations=3)
    >>> run_session(config, reporter=print)
    3
"""

import itertools
import time
from collections.abc import Callable, Iterator

import zmq

from znowflake_client.config import DEFAULT_ITERATIONS, ClientConfig, FailurePolicy
from znowflake_client.identifier.codec import decode_bytes_to_u64, decompose
from znowflake_client.identifier.layout import BitFieldConfig
from znowflake_client.identifier.models import DecodedIdentifier
from znowflake_client.kernel.errors import FormatError
from znowflake_client.kernel.logging import LogOperation, generate_session_id, get_logger, set_session_id
from znowflake_client.kernel.metrics import identifiers_received_total, request_errors_total
from znowflake_client.kernel.retry import retry_on_transport_error
from znowflake_client.report import Reporter
from znowflake_client.transport.client import TransportClient

logger = get_logger(__name__)


class Session:
    """
    Fetch, decode and report a run of identifiers

    Failures are never swallowed: under FAIL_FAST the first error ends the
    run, under RETRY transport errors are retried and the last one ends it.
    """

    def __init__(
        self,
        transport: TransportClient,
        layout: BitFieldConfig,
        reporter: Reporter,
        iterations: int | None = DEFAULT_ITERATIONS,
        rate: float | None = None,
        failure_policy: FailurePolicy = FailurePolicy.FAIL_FAST,
        retry_attempts: int = 3,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """
        Initialize session

        Args:
            transport: Connected (or lazily connecting) transport client
            layout: Bit layout used to decode identifiers
            reporter: Called once per decoded identifier
            iterations: Number of identifiers to fetch (None runs until interrupted)
            rate: Requests per second (None means no pacing)
            failure_policy: How request failures are handled
            retry_attempts: Attempts per request under the RETRY policy
            sleep: Sleep function used for pacing (injectable for tests)
        """
        self.transport = transport
        self.layout = layout
        self.reporter = reporter
        self.iterations = iterations
        self.rate = rate
        self.failure_policy = failure_policy
        self._sleep = sleep

        if failure_policy is FailurePolicy.RETRY:
            self._request = retry_on_transport_error(max_attempts=retry_attempts)(
                transport.request_identifier
            )
        else:
            self._request = transport.request_identifier

    @classmethod
    def from_config(
        cls,
        config: ClientConfig,
        transport: TransportClient,
        reporter: Reporter,
        sleep: Callable[[float], None] = time.sleep,
    ) -> "Session":
        return cls(
            transport,
            config.layout,
            reporter,
            iterations=config.iterations,
            rate=config.rate,
            failure_policy=config.failure_policy,
            retry_attempts=config.retry_attempts,
            sleep=sleep,
        )

    def fetch_one(self) -> DecodedIdentifier:
        """
        One full round trip: request, decode, decompose

        Raises:
            TransportError: If the round trip fails
            FormatError: If the reply is not a well-formed identifier
        """
        payload = self._request()

        try:
            value = decode_bytes_to_u64(payload)
        except FormatError:
            request_errors_total.labels(kind=FormatError.__name__).inc()
            raise

        decoded = decompose(value, self.layout)
        identifiers_received_total.inc()
        logger.debug(
            "Identifier received",
            raw=decoded.raw,
            machine_id=decoded.machine_id,
            sequence=decoded.sequence,
        )
        return decoded

    def iter_identifiers(self) -> Iterator[DecodedIdentifier]:
        """Yield decoded identifiers one round trip at a time"""
        indices = itertools.count() if self.iterations is None else range(self.iterations)
        for index in indices:
            if index and self.rate:
                self._sleep(1.0 / self.rate)
            yield self.fetch_one()

    def run(self) -> int:
        """
        Fetch and report every identifier of the run

        Returns:
            Number of identifiers reported
        """
        set_session_id(generate_session_id())
        reported = 0
        with LogOperation(
            logger,
            "session_run",
            endpoint=self.transport.endpoint,
            iterations=self.iterations,
            failure_policy=self.failure_policy.value,
        ):
            for decoded in self.iter_identifiers():
                self.reporter(decoded)
                reported += 1
        return reported


def run_session(
    config: ClientConfig,
    reporter: Reporter,
    context: zmq.Context | None = None,
) -> int:
    """
    Open a transport for config, run one session over it, and close it

    Returns:
        Number of identifiers reported
    """
    with TransportClient(config.endpoint, timeout_ms=config.timeout_ms, context=context) as transport:
        return Session.from_config(config, transport, reporter).run()
