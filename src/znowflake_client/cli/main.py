"""
znowflake CLI

Command-line interface for fetching and decoding identifiers.

Usage:
    znowflake fetch --port 23138 --count 10
    znowflake fetch --forever --rate 4 --format compact
    znowflake fetch --timeout-ms 500 --retries 2
    znowflake decode 33554475015
    znowflake decode 0x7d000a807 --epoch 1337000000

Every network and layout option can also be set through a ZNOWFLAKE_*
environment variable (see --help).

Exit codes: 0 ok, 1 invalid settings, 2 unparseable options (click),
3 malformed service response, 4 transport failure.
"""

from typing import Optional

import typer
from pydantic import ValidationError
from typing_extensions import Annotated

from znowflake_client.config import DEFAULT_ITERATIONS, ClientConfig, FailurePolicy
from znowflake_client.identifier.codec import IdentifierBuffer
from znowflake_client.identifier.layout import (
    DEFAULT_EPOCH_SECONDS,
    DEFAULT_MACHINE_BITS,
    DEFAULT_SEQ_BITS,
    DEFAULT_TIME_BITS,
    BitFieldConfig,
)
from znowflake_client.kernel.errors import FormatError, TransportError
from znowflake_client.kernel.logging import LogLevel, configure_logging, get_logger
from znowflake_client.kernel.metrics import start_metrics_server
from znowflake_client.report import FORMATTERS, ReportFormat, make_printer
from znowflake_client.session import run_session
from znowflake_client.transport.client import DEFAULT_HOST, DEFAULT_PORT

logger = get_logger(__name__)

# 2 is reserved by click for unparseable options
EXIT_INVALID_CONFIG = 1
EXIT_USAGE_ERROR = 2
EXIT_FORMAT_ERROR = 3
EXIT_TRANSPORT_ERROR = 4

app = typer.Typer(
    name="znowflake",
    help="Fetch and decode Snowflake-style identifiers from a znowflake ID service",
    add_completion=False,
)

# Layout options shared by fetch and decode
EpochOption = Annotated[
    int,
    typer.Option("--epoch", envvar="ZNOWFLAKE_EPOCH", help="Epoch (Unix seconds) timestamps count from"),
]
TimeBitsOption = Annotated[
    int,
    typer.Option("--time-bits", envvar="ZNOWFLAKE_TIME_BITS", help="Width of the timestamp field"),
]
MachineBitsOption = Annotated[
    int,
    typer.Option("--machine-bits", envvar="ZNOWFLAKE_MACHINE_BITS", help="Width of the machine field"),
]
SeqBitsOption = Annotated[
    int,
    typer.Option("--seq-bits", envvar="ZNOWFLAKE_SEQ_BITS", help="Width of the sequence field"),
]
FormatOption = Annotated[
    ReportFormat,
    typer.Option("--format", help="Report layout"),
]


def fail(message: str, code: int) -> typer.Exit:
    """Print an error to stderr and build the matching exit"""
    typer.echo(f"Error: {message}", err=True)
    return typer.Exit(code)


def build_layout(epoch: int, time_bits: int, machine_bits: int, seq_bits: int) -> BitFieldConfig:
    try:
        return BitFieldConfig(
            time_bits=time_bits,
            machine_bits=machine_bits,
            seq_bits=seq_bits,
            epoch_seconds=epoch,
        )
    except ValidationError as exc:
        raise fail(f"invalid bit layout: {exc.errors()[0]['msg']}", EXIT_INVALID_CONFIG)


@app.callback()
def main(
    json_logs: Annotated[
        bool,
        typer.Option("--json-logs", help="Output logs in JSON format"),
    ] = False,
    log_level: Annotated[
        LogLevel,
        typer.Option(
            "--log-level", envvar="ZNOWFLAKE_LOG_LEVEL", case_sensitive=False, help="Logging level"
        ),
    ] = LogLevel.INFO,
) -> None:
    """Fetch and decode Snowflake-style identifiers"""
    configure_logging(json_output=json_logs, log_level=log_level.value)


@app.command()
def fetch(
    host: Annotated[
        str,
        typer.Option("--host", envvar="ZNOWFLAKE_HOST", help="ID service host"),
    ] = DEFAULT_HOST,
    port: Annotated[
        int,
        typer.Option("--port", "-p", envvar="ZNOWFLAKE_PORT", help="ID service port"),
    ] = DEFAULT_PORT,
    count: Annotated[
        int,
        typer.Option("--count", "-n", help="Number of identifiers to fetch"),
    ] = DEFAULT_ITERATIONS,
    forever: Annotated[
        bool,
        typer.Option("--forever", help="Keep fetching until interrupted (ignores --count)"),
    ] = False,
    rate: Annotated[
        Optional[float],
        typer.Option("--rate", "-r", help="Requests per second"),
    ] = None,
    timeout_ms: Annotated[
        Optional[int],
        typer.Option("--timeout-ms", envvar="ZNOWFLAKE_TIMEOUT_MS", help="Reply timeout in milliseconds"),
    ] = None,
    retries: Annotated[
        int,
        typer.Option("--retries", help="Retries per request on transport errors (0 fails fast)"),
    ] = 0,
    fmt: FormatOption = ReportFormat.VERBOSE,
    epoch: EpochOption = DEFAULT_EPOCH_SECONDS,
    time_bits: TimeBitsOption = DEFAULT_TIME_BITS,
    machine_bits: MachineBitsOption = DEFAULT_MACHINE_BITS,
    seq_bits: SeqBitsOption = DEFAULT_SEQ_BITS,
    metrics_port: Annotated[
        Optional[int],
        typer.Option("--metrics-port", help="Expose Prometheus metrics on this port"),
    ] = None,
) -> None:
    """Fetch identifiers from the ID service and print each one decoded"""
    layout = build_layout(epoch, time_bits, machine_bits, seq_bits)
    if retries < 0:
        raise fail("--retries cannot be negative", EXIT_INVALID_CONFIG)

    try:
        config = ClientConfig(
            host=host,
            port=port,
            iterations=None if forever else count,
            rate=rate,
            timeout_ms=timeout_ms,
            failure_policy=FailurePolicy.RETRY if retries else FailurePolicy.FAIL_FAST,
            retry_attempts=retries + 1,
            layout=layout,
        )
    except ValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(part) for part in error["loc"])
        raise fail(f"invalid {field}: {error['msg']}", EXIT_INVALID_CONFIG)

    if metrics_port is not None:
        start_metrics_server(metrics_port)
        logger.info("Metrics server started", port=metrics_port)

    try:
        run_session(config, make_printer(fmt, typer.echo))
    except TransportError as exc:
        raise fail(f"transport failure: {exc}", EXIT_TRANSPORT_ERROR)
    except FormatError as exc:
        raise fail(f"malformed response: {exc}", EXIT_FORMAT_ERROR)
    except KeyboardInterrupt:
        typer.echo("\ninterrupt received, stopping client", err=True)


@app.command()
def decode(
    value: Annotated[
        str,
        typer.Argument(help="Identifier as a decimal integer or 0x-prefixed hex"),
    ],
    fmt: FormatOption = ReportFormat.VERBOSE,
    epoch: EpochOption = DEFAULT_EPOCH_SECONDS,
    time_bits: TimeBitsOption = DEFAULT_TIME_BITS,
    machine_bits: MachineBitsOption = DEFAULT_MACHINE_BITS,
    seq_bits: SeqBitsOption = DEFAULT_SEQ_BITS,
) -> None:
    """Decode an identifier offline, without contacting the service"""
    layout = build_layout(epoch, time_bits, machine_bits, seq_bits)

    try:
        raw = int(value, 0)
    except ValueError:
        raise fail(f"not an integer: {value}", EXIT_INVALID_CONFIG)

    try:
        decoded = IdentifierBuffer.from_value(raw).decode(layout)
    except FormatError as exc:
        raise fail(str(exc), EXIT_INVALID_CONFIG)

    typer.echo(FORMATTERS[fmt](decoded))


if __name__ == "__main__":
    app()
