# src/loglayer/transports/stdlib.py
"""Transport forwarding records to a standard library ``logging.Logger``.

Data is passed through ``extra=`` so formatters and handlers see each key
as a LogRecord attribute. Keys that would clash with built-in LogRecord
attributes are prefixed with ``data_``. An exception attached to the call
is passed as ``exc_info``.
"""

import logging
from typing import Any

from loglayer.levels import LogLevel
from loglayer.records import LogRecord
from loglayer.transports.base import BaseTransport
from loglayer.transports.layouts import MessageLayout

# trace has no stdlib counterpart; it maps one step below DEBUG
TRACE_LEVEL_NUM = 5

STDLIB_LEVELS: dict[LogLevel, int] = {
    LogLevel.TRACE: TRACE_LEVEL_NUM,
    LogLevel.DEBUG: logging.DEBUG,
    LogLevel.INFO: logging.INFO,
    LogLevel.WARN: logging.WARNING,
    LogLevel.ERROR: logging.ERROR,
    LogLevel.FATAL: logging.CRITICAL,
}

_RESERVED_ATTRS = frozenset(logging.LogRecord("", 0, "", 0, "", None, None).__dict__) | {"message", "asctime"}


def _safe_extra(data: dict[str, Any]) -> dict[str, Any]:
    return {(f"data_{key}" if key in _RESERVED_ATTRS else key): value for key, value in data.items()}


class LoggingTransport(BaseTransport):
    """Ship records to a stdlib logger.

    Args:
        logger: A logging.Logger, or a logger name (default "loglayer")
    """

    _name = "logging"

    default_layout = MessageLayout.EXTRA

    def __init__(
        self,
        *,
        logger: logging.Logger | str | None = None,
        id: str | None = None,
        enabled: bool = True,
        console_debug: bool = False,
        layout: MessageLayout | str | None = None,
    ) -> None:
        if logger is None or isinstance(logger, str):
            logger = logging.getLogger(logger or "loglayer")
        super().__init__(logger=logger, id=id, enabled=enabled, console_debug=console_debug, layout=layout)

    def ship_to_logger(self, record: LogRecord) -> list[Any]:
        args, kwargs = self.arrange(record)
        if "extra" in kwargs:
            kwargs["extra"] = _safe_extra(kwargs["extra"])
        if isinstance(record.error, BaseException):
            kwargs["exc_info"] = record.error

        message, *rest = args or [""]
        if rest:
            # Positional layouts: render everything into one message
            message = " ".join(str(arg) for arg in args)
        self._logger.log(STDLIB_LEVELS[record.log_level], "%s", message, **kwargs)
        return args
