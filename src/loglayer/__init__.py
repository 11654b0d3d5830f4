"""
LogLayer: a structured logging façade with pluggable transports.

Attach context, metadata and errors to log calls and deliver the composed
record to one or more transports, independent of the logging backend.

Components:
- levels: LogLevel and the level gate
- lazy: deferred values resolved only for emitted records
- composer: context/metadata/error merge under configurable field names
- plugins: ordered hook pipeline
- groups: group-based transport routing
- dispatch: fan-out to transports with failure isolation
- loglayer / builder: the façade and the per-call builder
- transports: transport contract and built-in transports
- factory: construction from declarative settings via pluggy discovery
- diagnostics: structlog channel for the package's own warnings

Usage:
    from loglayer import LogLayer, ConsoleTransport, lazy

    log = LogLayer(transport=ConsoleTransport())
    log.with_context({"request_id": "abc"})
    log.with_metadata({"rows": lazy(lambda: count_rows())}).info("import done")
"""

from loglayer.builder import LogBuilder
from loglayer.config import ErrorOnlyOptions, LogLayerConfig, LogLayerSettings, RawLogEntry, TransportSettings
from loglayer.diagnostics import configure_logging
from loglayer.errors import (
    ExtensionError,
    LazyEvaluationError,
    LogLayerError,
    PluginRegistrationError,
    TransportConfigurationError,
)
from loglayer.extensions import Extension, ExtensionRegistry
from loglayer.groups import GroupDefinition
from loglayer.lazy import LAZY_EVAL_ERROR, LazyValue, is_lazy, lazy
from loglayer.levels import LogLevel
from loglayer.loglayer import LogLayer
from loglayer.mock import MockLogBuilder, MockLogLayer
from loglayer.plugins import Plugin, PluginHook, plugin
from loglayer.records import LogRecord
from loglayer.transports import (
    BaseTransport,
    BlankTransport,
    ConsoleTransport,
    LoggerlessTransport,
    LoggingTransport,
    MessageLayout,
    StructlogTransport,
    TestLoggingLibrary,
    TestTransport,
    Transport,
)

__version__ = "0.1.0"

__all__ = [
    "LAZY_EVAL_ERROR",
    "BaseTransport",
    "BlankTransport",
    "ConsoleTransport",
    "ErrorOnlyOptions",
    "Extension",
    "ExtensionError",
    "ExtensionRegistry",
    "GroupDefinition",
    "LazyEvaluationError",
    "LazyValue",
    "LogBuilder",
    "LogLayer",
    "LogLayerConfig",
    "LogLayerError",
    "LogLayerSettings",
    "LogLevel",
    "LogRecord",
    "LoggerlessTransport",
    "LoggingTransport",
    "MessageLayout",
    "MockLogBuilder",
    "MockLogLayer",
    "Plugin",
    "PluginHook",
    "PluginRegistrationError",
    "RawLogEntry",
    "StructlogTransport",
    "TestLoggingLibrary",
    "TestTransport",
    "Transport",
    "TransportConfigurationError",
    "TransportSettings",
    "configure_logging",
    "is_lazy",
    "lazy",
    "plugin",
]
