"""
Client configuration

Everything the reference client hard-coded - endpoint, iteration count, bit
layout, epoch - lives here as a validated model so it can come from the
command line or the environment instead.
"""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field

from znowflake_client.identifier.layout import BitFieldConfig
from znowflake_client.transport.client import DEFAULT_HOST, DEFAULT_PORT, build_endpoint

DEFAULT_ITERATIONS = 100


class FailurePolicy(str, Enum):
    """
    What a session does when a request fails

    Neither policy ever substitutes a default identifier for a failed one.
    """

    FAIL_FAST = "fail-fast"  # Stop the run on the first failure
    RETRY = "retry"  # Retry transport failures with backoff, then stop


class ClientConfig(BaseModel):
    """
    Settings for one client run

    Attributes:
        host: ID service host
        port: ID service port
        iterations: Number of identifiers to fetch (None runs until interrupted)
        rate: Requests per second to pace at (None means as fast as replies come)
        timeout_ms: Per-request reply timeout (None blocks forever)
        failure_policy: How request failures are handled
        retry_attempts: Attempts per request under the RETRY policy
        layout: Bit layout and epoch used to decode identifiers
    """

    model_config = ConfigDict(frozen=True)

    host: str = Field(default=DEFAULT_HOST, min_length=1)
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)
    iterations: int | None = Field(default=DEFAULT_ITERATIONS, ge=1)
    rate: float | None = Field(default=None, gt=0)
    timeout_ms: int | None = Field(default=None, ge=1)
    failure_policy: FailurePolicy = FailurePolicy.FAIL_FAST
    retry_attempts: int = Field(default=3, ge=1)
    layout: BitFieldConfig = Field(default_factory=BitFieldConfig)

    @property
    def endpoint(self) -> str:
        return build_endpoint(self.host, self.port)
