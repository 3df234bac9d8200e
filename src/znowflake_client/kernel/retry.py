"""
Retry logic with exponential backoff for transient transport failures.

Only round-trip failures are worth retrying. A malformed payload will be
malformed again, and a lock-step violation means the caller is misusing the
socket, so neither is retried.
"""

from collections.abc import Callable
from typing import TypeVar

from tenacity import (
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from znowflake_client.kernel.errors import LockStepViolation, TransportError
from znowflake_client.kernel.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")


def is_retryable(exc: BaseException) -> bool:
    """True for transport failures other than lock-step violations"""
    return isinstance(exc, TransportError) and not isinstance(exc, LockStepViolation)


def retry_on_transport_error(
    max_attempts: int = 3,
    min_wait_ms: int = 100,
    max_wait_ms: int = 1000,
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """
    Retry decorator for transient transport failures.

    Args:
        max_attempts: Maximum number of attempts, including the first (default: 3)
        min_wait_ms: Minimum wait time in milliseconds (default: 100)
        max_wait_ms: Maximum wait time in milliseconds (default: 1000)

    Returns:
        Decorator that retries on retryable TransportError and re-raises the
        last one when attempts run out

    Example:
        fetch = retry_on_transport_error(max_attempts=5)(client.request_identifier)
        payload = fetch()
    """
    return retry(
        retry=retry_if_exception(is_retryable),
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(
            multiplier=1,
            min=min_wait_ms / 1000.0,
            max=max_wait_ms / 1000.0,
        ),
        before_sleep=lambda retry_state: logger.warning(
            "Transport error detected, retrying",
            attempt=retry_state.attempt_number,
            exception=str(retry_state.outcome.exception()) if retry_state.outcome else None,
        ),
        reraise=True,
    )
