"""
Prometheus metrics collection for the znowflake client.

Provides observability into round trips against the ID service.
"""

import time
from collections.abc import Callable
from functools import wraps
from typing import ParamSpec, TypeVar

from prometheus_client import Counter, Histogram, start_http_server

# ============================================================================
# Round Trip Metrics
# ============================================================================

identifiers_received_total = Counter(
    "znowflake_identifiers_received_total",
    "Total number of identifiers received and decoded",
)

request_errors_total = Counter(
    "znowflake_request_errors_total",
    "Total number of failed identifier requests",
    ["kind"],  # kind: exception class name, e.g. TransportTimeout, FormatError
)

request_duration_seconds = Histogram(
    "znowflake_request_duration_seconds",
    "Duration of one request/response round trip in seconds",
    buckets=(0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 1.0),
)

# ============================================================================
# Helper Functions
# ============================================================================

P = ParamSpec("P")
R = TypeVar("R")


def track_request_duration(func: Callable[P, R]) -> Callable[P, R]:
    """
    Decorator to track round trip duration and failures.

    Failures are counted by exception class name and re-raised.
    """

    @wraps(func)
    def wrapper(*args: P.args, **kwargs: P.kwargs) -> R:
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        except Exception as exc:
            request_errors_total.labels(kind=type(exc).__name__).inc()
            raise
        finally:
            request_duration_seconds.observe(time.perf_counter() - start)

    return wrapper


def start_metrics_server(port: int = 9090) -> None:
    """
    Start Prometheus metrics HTTP server.

    Args:
        port: Port to listen on (default: 9090)
    """
    start_http_server(port)
