# src/loglayer/errors.py
"""LogLayer-specific exceptions.

Logging methods (info/warn/error/..., metadata_only, error_only, raw) never
raise these for ordinary use. They surface from setup paths: plugin
registration, transport discovery and construction, extension assembly.

LazyEvaluationError is internal to the pipeline: it is raised by the lazy
resolvers and caught by LogLayer, which drops the emission.
"""


class LogLayerError(Exception):
    """Base class for all LogLayer errors."""


class PluginRegistrationError(LogLayerError):
    """Raised when a plugin cannot be registered (e.g. duplicate id).

    Attributes:
        plugin_id: Id of the plugin that failed to register
        message: Human-readable error description
    """

    def __init__(self, plugin_id: str, message: str) -> None:
        self.plugin_id = plugin_id
        self.message = message
        super().__init__(f"Plugin '{plugin_id}' rejected: {message}")


class TransportConfigurationError(LogLayerError):
    """Raised when a transport cannot be discovered or constructed.

    This is raised during setup, NOT during emission. Emission failures are
    isolated per transport and reported on the diagnostic channel instead.

    Attributes:
        transport_name: Registered name (or id) of the transport that failed
        message: Human-readable error description
    """

    def __init__(self, transport_name: str, message: str) -> None:
        self.transport_name = transport_name
        self.message = message
        super().__init__(f"Transport '{transport_name}' failed: {message}")


class ExtensionError(LogLayerError):
    """Raised when an extension bundle is invalid or unknown.

    Attributes:
        extension_name: Name of the offending extension
        message: Human-readable error description
    """

    def __init__(self, extension_name: str, message: str) -> None:
        self.extension_name = extension_name
        self.message = message
        super().__init__(f"Extension '{extension_name}' failed: {message}")


class LazyEvaluationError(LogLayerError):
    """A lazy producer raised (or its awaitable rejected) during resolution.

    Attributes:
        key: Root-level key holding the lazy value
        source: Where the value lived - "context" or "metadata"
    """

    def __init__(self, key: str, source: str) -> None:
        self.key = key
        self.source = source
        super().__init__(f"Lazy evaluation failed for {source} key '{key}'")
