# src/loglayer/transports/blank.py
"""Transport built from a single function.

    seen = []
    log = LogLayer(transport=BlankTransport(ship_to_logger=seen.append))

The function receives the LogRecord. It may be ``async def``; the returned
coroutine is scheduled by the dispatcher like any asynchronous transport
work.
"""

from collections.abc import Callable
from typing import Any

from loglayer.records import LogRecord
from loglayer.transports.base import LoggerlessTransport
from loglayer.transports.layouts import MessageLayout


class BlankTransport(LoggerlessTransport):
    def __init__(
        self,
        ship_to_logger: Callable[[LogRecord], Any],
        *,
        id: str | None = None,
        enabled: bool = True,
        console_debug: bool = False,
        layout: MessageLayout | str | None = None,
    ) -> None:
        super().__init__(id=id, enabled=enabled, console_debug=console_debug, layout=layout)
        self._ship = ship_to_logger

    def ship_to_logger(self, record: LogRecord) -> Any:
        return self._ship(record)
