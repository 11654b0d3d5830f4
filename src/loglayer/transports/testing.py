# src/loglayer/transports/testing.py
"""In-memory logging library and transport for testing plugins and transports.

    library = TestLoggingLibrary()
    log = LogLayer(transport=TestTransport(logger=library))
    log.with_metadata({"a": 1}).info("hello")
    assert library.get_last_line() == {"level": LogLevel.INFO, "data": [{"a": 1}, "hello"]}
"""

from typing import Any

from loglayer.levels import LogLevel
from loglayer.records import LogRecord
from loglayer.transports.base import BaseTransport
from loglayer.transports.layouts import MessageLayout


class TestLoggingLibrary:
    """Records every call as a line ``{"level": LogLevel, "data": [args]}``."""

    __test__ = False

    def __init__(self) -> None:
        self.lines: list[dict[str, Any]] = []

    def trace(self, *params: Any) -> None:
        self._add_line(LogLevel.TRACE, params)

    def debug(self, *params: Any) -> None:
        self._add_line(LogLevel.DEBUG, params)

    def info(self, *params: Any) -> None:
        self._add_line(LogLevel.INFO, params)

    def warn(self, *params: Any) -> None:
        self._add_line(LogLevel.WARN, params)

    def error(self, *params: Any) -> None:
        self._add_line(LogLevel.ERROR, params)

    def fatal(self, *params: Any) -> None:
        self._add_line(LogLevel.FATAL, params)

    def _add_line(self, level: LogLevel, params: tuple[Any, ...]) -> None:
        self.lines.append({"level": level, "data": list(params)})

    def get_last_line(self) -> dict[str, Any] | None:
        return self.lines[-1] if self.lines else None

    def pop_line(self) -> dict[str, Any] | None:
        return self.lines.pop() if self.lines else None

    def clear_lines(self) -> None:
        self.lines = []


class TestTransport(BaseTransport):
    """Ships records to a TestLoggingLibrary, data first."""

    __test__ = False

    default_layout = MessageLayout.DATA_FIRST

    def __init__(
        self,
        *,
        logger: TestLoggingLibrary | None = None,
        id: str | None = None,
        enabled: bool = True,
        console_debug: bool = False,
        layout: MessageLayout | str | None = None,
    ) -> None:
        super().__init__(
            logger=logger if logger is not None else TestLoggingLibrary(),
            id=id,
            enabled=enabled,
            console_debug=console_debug,
            layout=layout,
        )

    @property
    def library(self) -> TestLoggingLibrary:
        return self._logger

    def ship_to_logger(self, record: LogRecord) -> list[Any]:
        args, _ = self.arrange(record)
        getattr(self._logger, record.log_level.value)(*args)
        return args
