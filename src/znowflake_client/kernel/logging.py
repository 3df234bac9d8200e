"""
Structured logging framework for the znowflake client.

Every line of a run carries the same session ID, so the identifiers one
`znowflake fetch` printed can be matched to its transport warnings.

Fun fact: structlog's processor chain is just a list of functions, each one
handed the previous one's event dict - a tiny pipeline per log line!
"""

import contextvars
import logging
import secrets
import sys
import time
from enum import Enum
from typing import Any

import structlog

from znowflake_client.kernel.errors import ZnowflakeError

session_id_var: contextvars.ContextVar[str] = contextvars.ContextVar(
    "session_id", default=""
)


class LogLevel(str, Enum):
    """Levels accepted by configure_logging"""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def generate_session_id() -> str:
    """Short random ID for one session run"""
    return secrets.token_hex(6)


def get_session_id() -> str:
    sid = session_id_var.get()
    if not sid:
        sid = generate_session_id()
        session_id_var.set(sid)
    return sid


def set_session_id(session_id: str) -> None:
    session_id_var.set(session_id)


def add_session_id(
    logger: logging.Logger, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    event_dict["session_id"] = get_session_id()
    return event_dict


def configure_logging(
    *,
    json_output: bool = False,
    log_level: str = "INFO",
) -> None:
    """
    Send structlog output to stderr, leaving stdout to identifier reports.

    Args:
        json_output: Emit one JSON object per line instead of console output
        log_level: One of the LogLevel names, case-insensitive

    Raises:
        ValueError: If log_level is not a known level
    """
    level = getattr(logging, LogLevel(log_level.upper()).value)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
    )
    logging.getLogger().setLevel(level)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        add_session_id,
    ]

    if json_output:
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = shared_processors + [
            structlog.processors.ExceptionRenderer(),
            structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


class LogOperation:
    """
    Log the start and outcome of a block, with its duration in milliseconds.

    The outcome event is "<operation> completed", "<operation> interrupted"
    (Ctrl-C) or "<operation> failed". Failures raised as ZnowflakeError are
    expected at runtime and are logged without a traceback.
    """

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger,
        operation: str,
        **context: Any,
    ):
        self.logger = logger
        self.operation = operation
        self.context = context
        self.start_time: float = 0.0

    def __enter__(self) -> "LogOperation":
        self.start_time = time.perf_counter()
        self.logger.info(f"{self.operation} started", operation=self.operation, **self.context)
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: Any,
    ) -> None:
        fields = dict(
            self.context,
            operation=self.operation,
            duration_ms=round((time.perf_counter() - self.start_time) * 1000, 2),
        )

        if exc_type is None:
            self.logger.info(f"{self.operation} completed", **fields)
        elif issubclass(exc_type, KeyboardInterrupt):
            self.logger.info(f"{self.operation} interrupted", **fields)
        else:
            self.logger.error(
                f"{self.operation} failed",
                error=str(exc_val),
                exc_info=not isinstance(exc_val, ZnowflakeError),
                **fields,
            )
