# src/loglayer/transports/base.py
"""Transport contract and base classes.

A transport is an external sink for finished LogRecords. LogLayer only
needs three things from it: an ``id``, an ``enabled`` flag and ``emit()``.

Lifecycle:
    1. Construction: id generated when not given
    2. Registration: passed to LogLayer (config or add_transport)
    3. Operation: emit() called once per eligible emission
    4. Shutdown: close() called by LogLayer.close(), or when the transport
       is replaced or removed

Error handling:
    - emit() may raise or return a failing awaitable; LogLayer isolates the
      failure to this transport and reports it on the diagnostic channel
    - close() MUST be idempotent
"""

import inspect
from abc import ABC, abstractmethod
from collections.abc import Awaitable
from typing import Any, Protocol, runtime_checkable
from uuid import uuid4

from loglayer.diagnostics import get_logger
from loglayer.errors import TransportConfigurationError
from loglayer.records import LogRecord
from loglayer.transports.layouts import MessageLayout, arrange

logger = get_logger(__name__)


@runtime_checkable
class Transport(Protocol):
    """Minimal contract LogLayer dispatches to.

    close() and get_logger_instance() are optional; LogLayer looks them up
    with getattr.
    """

    id: str
    enabled: bool

    def emit(self, record: LogRecord) -> Awaitable[Any] | None:
        """Deliver one record. May return an awaitable for async work."""
        ...


class BaseTransport(ABC):
    """Base class for transports wrapping a backend logger object.

    Subclasses implement ship_to_logger(). It returns the arguments it
    shipped (used for console_debug echo), or an awaitable when the
    backend is asynchronous.

    Args:
        logger: Backend logger instance (returned by get_logger_instance)
        id: Transport id, random when omitted
        enabled: Disabled transports never receive records
        console_debug: Echo shipped arguments on the diagnostic channel
        layout: Argument layout used by arrange()
    """

    default_layout: MessageLayout = MessageLayout.DATA_FIRST

    def __init__(
        self,
        *,
        logger: Any = None,
        id: str | None = None,
        enabled: bool = True,
        console_debug: bool = False,
        layout: MessageLayout | str | None = None,
    ) -> None:
        self.id = id or uuid4().hex
        self.enabled = enabled
        self.console_debug = console_debug
        self.layout = MessageLayout(layout) if layout is not None else self.default_layout
        self._logger = logger
        self._closed = False

    def emit(self, record: LogRecord) -> Awaitable[Any] | None:
        if not self.enabled or self._closed:
            return None
        shipped = self.ship_to_logger(record)
        if inspect.isawaitable(shipped):
            return shipped
        if self.console_debug:
            logger.debug("Transport shipped", transport=self.id, level=str(record.log_level), args=shipped)
        return None

    def arrange(self, record: LogRecord) -> tuple[list[Any], dict[str, Any]]:
        return arrange(self.layout, record)

    @abstractmethod
    def ship_to_logger(self, record: LogRecord) -> Any:
        """Send the record to the backend."""

    def get_logger_instance(self) -> Any:
        return self._logger

    @property
    def closed(self) -> bool:
        return self._closed

    def close(self) -> None:
        """Release resources. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        self._on_close()

    def _on_close(self) -> None:
        """Hook for subclasses holding resources."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id!r}, enabled={self.enabled!r})"


class LoggerlessTransport(BaseTransport):
    """Base class for transports that are not backed by a logger object."""

    def __init__(
        self,
        *,
        id: str | None = None,
        enabled: bool = True,
        console_debug: bool = False,
        layout: MessageLayout | str | None = None,
    ) -> None:
        super().__init__(id=id, enabled=enabled, console_debug=console_debug, layout=layout)

    def get_logger_instance(self) -> Any:
        raise TransportConfigurationError(self.id, "This transport does not have a logger instance")
