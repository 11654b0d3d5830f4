# src/loglayer/diagnostics.py
"""Diagnostic channel for LogLayer itself.

LogLayer reports its own problems (transport failures, lazy resolution
failures, dropped inputs when console_debug is on) through structlog, never
through the transports it dispatches to. Feeding a failing transport its own
failure report would loop.

Every module in the package obtains its logger from get_logger(), which tags
each event with component="loglayer" so diagnostics can be told apart from
the application's own structlog output.

configure_logging() is optional. It attaches one handler to the "loglayer"
stdlib logger (not the root logger) and renders the package's diagnostics
as console lines or JSON through structlog's ProcessorFormatter. Application
loggers and root handlers are left alone.
"""

import logging
import sys
from typing import Any, TextIO

import structlog
from structlog.stdlib import ProcessorFormatter

DIAGNOSTIC_LOGGER_NAME = "loglayer"
COMPONENT = "loglayer"


class DiagnosticHandler(logging.StreamHandler):
    """Stream handler installed by configure_logging() on the "loglayer" logger."""


def get_logger(name: str) -> Any:
    """Get the diagnostic logger for a package module.

    The logger is a lazy proxy: configuration (including capture_logs() in
    tests) is looked up on first use, not at import time.
    """
    return structlog.get_logger(name, component=COMPONENT)


def configure_logging(
    *,
    json_output: bool = False,
    level: str = "INFO",
    stream: TextIO | None = None,
) -> DiagnosticHandler:
    """Render LogLayer diagnostics to stream (stderr by default).

    Calling it again replaces the previously installed handler.

    Args:
        json_output: If True, one JSON object per line. If False, console lines.
        level: Minimum diagnostic level (DEBUG, INFO, WARNING, ERROR).
        stream: Target stream.

    Returns:
        The installed handler.

    Raises:
        ValueError: If level is not a stdlib level name.
    """
    numeric_level = logging.getLevelNamesMapping().get(level.upper())
    if numeric_level is None:
        raise ValueError(f"Unknown diagnostic level: {level!r}")

    shared_processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    renderer: Any
    if json_output:
        renderer = [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        renderer = [structlog.dev.ConsoleRenderer(colors=False)]

    structlog.configure(
        processors=[*shared_processors, ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Off so a later configure_logging() or capture_logs() takes effect
        cache_logger_on_first_use=False,
    )

    handler = DiagnosticHandler(stream or sys.stderr)
    handler.setFormatter(
        ProcessorFormatter(
            processors=[ProcessorFormatter.remove_processors_meta, *renderer],
            foreign_pre_chain=shared_processors,
        )
    )

    diagnostics = logging.getLogger(DIAGNOSTIC_LOGGER_NAME)
    for existing in list(diagnostics.handlers):
        if isinstance(existing, DiagnosticHandler):
            diagnostics.removeHandler(existing)
    diagnostics.addHandler(handler)
    diagnostics.setLevel(numeric_level)
    diagnostics.propagate = False
    return handler
