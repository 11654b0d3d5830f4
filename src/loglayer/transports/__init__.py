# src/loglayer/transports/__init__.py
"""Built-in transports.

Available transports:
- ConsoleTransport: JSON or human-readable lines on stdout/stderr
- LoggingTransport: forward to a standard library logging.Logger
- StructlogTransport: forward to a structlog logger
- BlankTransport: wrap a single function
- TestTransport / TestLoggingLibrary: in-memory capture for tests

Plugin registration:
    Transports usable from declarative settings are registered via the
    loglayer_get_transports hook. BuiltinTransportsPlugin registers the
    console, logging and structlog transports.
"""

from loglayer.hookspecs import hookimpl
from loglayer.transports.base import BaseTransport, LoggerlessTransport, Transport
from loglayer.transports.blank import BlankTransport
from loglayer.transports.console import ConsoleTransport
from loglayer.transports.layouts import MessageLayout
from loglayer.transports.stdlib import LoggingTransport
from loglayer.transports.structlog_transport import StructlogTransport
from loglayer.transports.testing import TestLoggingLibrary, TestTransport


class BuiltinTransportsPlugin:
    """Plugin that registers built-in transports."""

    @hookimpl
    def loglayer_get_transports(self) -> list[type]:
        """Return built-in transport classes."""
        return [ConsoleTransport, LoggingTransport, StructlogTransport]


__all__ = [
    "BaseTransport",
    "BlankTransport",
    "BuiltinTransportsPlugin",
    "ConsoleTransport",
    "LoggerlessTransport",
    "LoggingTransport",
    "MessageLayout",
    "StructlogTransport",
    "TestLoggingLibrary",
    "TestTransport",
    "Transport",
]
