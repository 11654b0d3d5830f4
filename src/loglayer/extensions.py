# src/loglayer/extensions.py
"""Extension bundles: explicit capability composition for LogLayer.

An Extension adds named methods (plus optional plugins and a construction
callback) to the loggers it is passed to. Nothing is patched onto LogLayer
itself; the methods are reached through logger.extension(name):

    metrics = Extension(
        name="metrics",
        methods={"timing": lambda log, name, ms: log.with_metadata({"timer": name, "ms": ms}).info("timing")},
    )
    log = LogLayer(LogLayerConfig(transport=console), extensions=[metrics])
    log.extension("metrics").timing("db.query", 12.5)

Extension methods receive the logger they were reached from as their first
argument. Registries are assembled once and passed at construction; there
is no process-wide registration.
"""

from collections.abc import Callable, Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from functools import partial
from typing import TYPE_CHECKING, Any

from loglayer.errors import ExtensionError

if TYPE_CHECKING:
    from loglayer.config import LogLayerConfig
    from loglayer.loglayer import LogLayer


@dataclass(frozen=True, slots=True)
class Extension:
    """Named bundle of logger capabilities.

    Attributes:
        name: Unique name used with logger.extension()
        plugins: Plugins appended after the configured ones
        methods: Callables invoked as fn(logger, *args, **kwargs)
        on_construct: Called as on_construct(logger, config) when a root
            LogLayer is built (not for children)
    """

    name: str
    plugins: tuple[Any, ...] = ()
    methods: Mapping[str, Callable[..., Any]] = field(default_factory=dict)
    on_construct: Callable[["LogLayer", "LogLayerConfig"], None] | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ExtensionError("<unnamed>", "extension name must not be empty")
        for method_name, fn in self.methods.items():
            if method_name.startswith("_"):
                raise ExtensionError(self.name, f"method name '{method_name}' must not start with '_'")
            if not callable(fn):
                raise ExtensionError(self.name, f"method '{method_name}' is not callable")


class ExtensionRegistry:
    """Ordered, name-unique collection of extensions."""

    def __init__(self, extensions: Iterable[Extension] = ()) -> None:
        self._extensions: dict[str, Extension] = {}
        for extension in extensions:
            self.register(extension)

    def register(self, extension: Extension) -> None:
        if extension.name in self._extensions:
            raise ExtensionError(extension.name, "an extension with this name is already registered")
        self._extensions[extension.name] = extension

    def get(self, name: str) -> Extension:
        try:
            return self._extensions[name]
        except KeyError:
            raise ExtensionError(name, f"Unknown extension. Available: {sorted(self._extensions)}") from None

    @property
    def names(self) -> list[str]:
        return list(self._extensions)

    def plugins(self) -> list[Any]:
        """All bundled plugins, in registration order."""
        return [plugin for extension in self._extensions.values() for plugin in extension.plugins]

    def __iter__(self) -> Iterator[Extension]:
        return iter(self._extensions.values())

    def __len__(self) -> int:
        return len(self._extensions)

    def __contains__(self, name: object) -> bool:
        return name in self._extensions


class BoundExtension:
    """An extension's methods bound to one logger."""

    def __init__(self, extension: Extension, logger: "LogLayer") -> None:
        self._extension = extension
        self._logger = logger

    @property
    def name(self) -> str:
        return self._extension.name

    def __getattr__(self, attr: str) -> Callable[..., Any]:
        # Only reached for names not found normally
        methods = self._extension.methods
        if attr not in methods:
            raise AttributeError(f"Extension '{self._extension.name}' has no method '{attr}'")
        return partial(methods[attr], self._logger)

    def __dir__(self) -> list[str]:
        return [*super().__dir__(), *self._extension.methods]

    def __repr__(self) -> str:
        return f"BoundExtension(name={self._extension.name!r})"
