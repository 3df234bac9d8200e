"""
Test infrastructure components: logging, metrics, retry.

These tests verify the production hardening infrastructure works correctly.
"""

import logging

import pytest
from prometheus_client import REGISTRY
from structlog.testing import capture_logs

from tests.helpers import KNOWN_ID_BYTES, FakeContext
from znowflake_client.identifier.layout import BitFieldConfig
from znowflake_client.kernel.errors import (
    ConnectionFailed,
    FormatError,
    LockStepViolation,
    TransportTimeout,
)
from znowflake_client.kernel.logging import (
    LogLevel,
    LogOperation,
    configure_logging,
    get_logger,
    get_session_id,
    set_session_id,
)
from znowflake_client.kernel.retry import is_retryable, retry_on_transport_error
from znowflake_client.session import Session
from znowflake_client.transport.client import TransportClient


def sample(name: str, labels: dict[str, str] | None = None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


class TestLoggingFramework:
    """Test structured logging framework."""

    def test_configure_logging_console(self) -> None:
        configure_logging(json_output=False, log_level="INFO")
        logger = get_logger(__name__)
        assert logger is not None

    def test_configure_logging_json(self) -> None:
        configure_logging(json_output=True, log_level="DEBUG")
        logger = get_logger(__name__)
        assert logger is not None

    def test_session_id(self) -> None:
        sid = get_session_id()
        assert sid

        set_session_id("session-123")
        assert get_session_id() == "session-123"

    def test_session_run_sets_fresh_session_id(self, fake_context: FakeContext) -> None:
        set_session_id("stale")
        fake_context.queue(KNOWN_ID_BYTES)
        transport = TransportClient("tcp://127.0.0.1:23138", context=fake_context)

        Session(transport, BitFieldConfig(), lambda decoded: None, iterations=1).run()

        assert get_session_id() != "stale"

    def test_log_operation_context_manager(self) -> None:
        configure_logging(json_output=False, log_level="INFO")
        logger = get_logger(__name__)

        with LogOperation(logger, "test_operation", endpoint="tcp://127.0.0.1:1"):
            pass

    def test_log_operation_with_exception(self) -> None:
        configure_logging(json_output=False, log_level="INFO")
        logger = get_logger(__name__)

        with pytest.raises(ValueError):
            with LogOperation(logger, "failing_operation"):
                raise ValueError("Test error")

    def test_unknown_log_level_raises_value_error(self) -> None:
        with pytest.raises(ValueError):
            configure_logging(log_level="basic_format")

    def test_log_level_names_match_stdlib_levels(self) -> None:
        for level in LogLevel:
            assert isinstance(getattr(logging, level.value), int)

    def test_client_errors_logged_without_traceback(self) -> None:
        with capture_logs() as logs:
            logger = get_logger("tests.client_errors")
            with pytest.raises(TransportTimeout):
                with LogOperation(logger, "session_run"):
                    raise TransportTimeout("tcp://127.0.0.1:1", 10)

        failed = logs[-1]
        assert failed["event"] == "session_run failed"
        assert failed["log_level"] == "error"
        assert failed["exc_info"] is False
        assert "duration_ms" in failed

    def test_unexpected_errors_logged_with_traceback(self) -> None:
        with capture_logs() as logs:
            logger = get_logger("tests.unexpected_errors")
            with pytest.raises(ValueError):
                with LogOperation(logger, "session_run"):
                    raise ValueError("bug")

        assert logs[-1]["exc_info"] is True

    def test_interrupt_logged_as_interrupted(self) -> None:
        with capture_logs() as logs:
            logger = get_logger("tests.interrupted")
            with pytest.raises(KeyboardInterrupt):
                with LogOperation(logger, "session_run"):
                    raise KeyboardInterrupt

        assert logs[-1]["event"] == "session_run interrupted"
        assert logs[-1]["log_level"] == "info"


class TestMetrics:
    """Test Prometheus counters around round trips."""

    def test_successful_round_trip_counted(self, fake_context: FakeContext) -> None:
        before = sample("znowflake_identifiers_received_total")
        before_requests = sample("znowflake_request_duration_seconds_count")
        fake_context.queue(KNOWN_ID_BYTES)
        fake_context.queue(KNOWN_ID_BYTES)
        transport = TransportClient("tcp://127.0.0.1:23138", context=fake_context)

        Session(transport, BitFieldConfig(), lambda decoded: None, iterations=2).run()

        assert sample("znowflake_identifiers_received_total") == before + 2
        assert sample("znowflake_request_duration_seconds_count") == before_requests + 2

    def test_timeout_counted_by_kind(self, fake_context: FakeContext) -> None:
        labels = {"kind": "TransportTimeout"}
        before = sample("znowflake_request_errors_total", labels)
        client = TransportClient("tcp://127.0.0.1:23138", timeout_ms=10, context=fake_context)

        with pytest.raises(TransportTimeout):
            client.request_identifier()

        assert sample("znowflake_request_errors_total", labels) == before + 1

    def test_malformed_payload_counted(self, fake_context: FakeContext) -> None:
        labels = {"kind": "FormatError"}
        before = sample("znowflake_request_errors_total", labels)
        fake_context.queue(b"\x00" * 9)
        transport = TransportClient("tcp://127.0.0.1:23138", context=fake_context)

        with pytest.raises(FormatError):
            Session(transport, BitFieldConfig(), lambda decoded: None, iterations=1).run()

        assert sample("znowflake_request_errors_total", labels) == before + 1


class TestRetry:
    """Test tenacity retry policy for transport errors."""

    def test_retryable_errors(self) -> None:
        assert is_retryable(TransportTimeout("tcp://h:1", 10))
        assert is_retryable(ConnectionFailed("tcp://h:1", "refused"))
        assert not is_retryable(LockStepViolation("tcp://h:1"))
        assert not is_retryable(FormatError("short"))
        assert not is_retryable(ValueError("nope"))

    def test_retries_until_success(self) -> None:
        calls: list[int] = []

        @retry_on_transport_error(max_attempts=3, min_wait_ms=1, max_wait_ms=1)
        def flaky() -> str:
            calls.append(1)
            if len(calls) < 3:
                raise TransportTimeout("tcp://h:1", 10)
            return "ok"

        assert flaky() == "ok"
        assert len(calls) == 3

    def test_reraises_last_error(self) -> None:
        calls: list[int] = []

        @retry_on_transport_error(max_attempts=2, min_wait_ms=1, max_wait_ms=1)
        def always_down() -> None:
            calls.append(1)
            raise ConnectionFailed("tcp://h:1", "refused")

        with pytest.raises(ConnectionFailed):
            always_down()
        assert len(calls) == 2

    def test_lock_step_violation_not_retried(self) -> None:
        calls: list[int] = []

        @retry_on_transport_error(max_attempts=5, min_wait_ms=1, max_wait_ms=1)
        def misuse() -> None:
            calls.append(1)
            raise LockStepViolation("tcp://h:1")

        with pytest.raises(LockStepViolation):
            misuse()
        assert len(calls) == 1
