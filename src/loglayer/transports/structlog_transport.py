# src/loglayer/transports/structlog_transport.py
"""Transport forwarding records to a structlog logger.

The joined messages become the event and each data key becomes a keyword
argument, so structlog processors see the payload as ordinary event-dict
entries.
"""

from typing import Any

import structlog

from loglayer.levels import LogLevel
from loglayer.records import LogRecord
from loglayer.transports.base import BaseTransport
from loglayer.transports.layouts import MessageLayout

STRUCTLOG_METHODS: dict[LogLevel, str] = {
    LogLevel.TRACE: "debug",
    LogLevel.DEBUG: "debug",
    LogLevel.INFO: "info",
    LogLevel.WARN: "warning",
    LogLevel.ERROR: "error",
    LogLevel.FATAL: "critical",
}


class StructlogTransport(BaseTransport):
    """Ship records to a structlog bound logger.

    Args:
        logger: A structlog logger, or a logger name passed to
            structlog.get_logger (default "loglayer")
    """

    _name = "structlog"

    default_layout = MessageLayout.KEYWORDS

    def __init__(
        self,
        *,
        logger: Any = None,
        id: str | None = None,
        enabled: bool = True,
        console_debug: bool = False,
        layout: MessageLayout | str | None = None,
    ) -> None:
        if logger is None or isinstance(logger, str):
            logger = structlog.get_logger(logger or "loglayer")
        super().__init__(logger=logger, id=id, enabled=enabled, console_debug=console_debug, layout=layout)

    def ship_to_logger(self, record: LogRecord) -> list[Any]:
        args, kwargs = self.arrange(record)
        if "event" in kwargs:
            kwargs["data_event"] = kwargs.pop("event")
        if record.groups:
            kwargs.setdefault("groups", list(record.groups))
        method = getattr(self._logger, STRUCTLOG_METHODS[record.log_level])
        method(*args, **kwargs)
        return args
