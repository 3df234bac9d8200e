"""
Human-readable identifier reports

Two layouts: the verbose five-line block printed by the reference client, and
a compact two-line form for eyeballing long runs.
"""

from collections.abc import Callable
from enum import Enum

from znowflake_client.identifier.models import DecodedIdentifier

Reporter = Callable[[DecodedIdentifier], None]


class ReportFormat(str, Enum):
    VERBOSE = "verbose"
    COMPACT = "compact"


def format_datetime(decoded: DecodedIdentifier) -> str:
    """ctime-style UTC rendering, e.g. 'Mon May 14 12:53:21 2012'"""
    try:
        return decoded.minted_at.ctime()
    except OverflowError:
        return "<out of range>"


def format_verbose(decoded: DecodedIdentifier) -> str:
    return (
        f"id:          {decoded.raw}\n"
        f"machine:     {decoded.machine_id}\n"
        f"datetime:    {format_datetime(decoded)}\n"
        f"timestamp:   {decoded.seconds}\n"
        f"(msec, seq): ({decoded.millis_remainder}, {decoded.sequence})\n"
    )


def format_compact(decoded: DecodedIdentifier) -> str:
    return (
        f"{format_datetime(decoded)}\n"
        f"{decoded.millis_remainder}, {decoded.machine_id}, {decoded.sequence}"
    )


FORMATTERS: dict[ReportFormat, Callable[[DecodedIdentifier], str]] = {
    ReportFormat.VERBOSE: format_verbose,
    ReportFormat.COMPACT: format_compact,
}


def make_printer(fmt: ReportFormat, echo: Callable[[str], None]) -> Reporter:
    """
    Build a reporter that renders each identifier and hands it to echo

    Args:
        fmt: Report layout
        echo: Line sink, e.g. typer.echo
    """
    formatter = FORMATTERS[fmt]

    def report(decoded: DecodedIdentifier) -> None:
        echo(formatter(decoded))

    return report
