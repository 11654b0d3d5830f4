# src/loglayer/plugins.py
"""Plugin registry and ordered hook pipeline.

A plugin is any object with an optional ``id`` and zero or more of the hook
methods named by PluginHook. Registration order is invocation order for
every hook. Plugins lacking a hook are skipped for it.

Hook contracts:

on_context_called(context, logger) -> mapping | falsy
    Runs on every with_context() call. Chained: each plugin receives the
    previous plugin's output. A falsy return drops the whole update.

on_metadata_called(metadata, logger) -> mapping | falsy
    Same chained contract for with_metadata() / metadata_only().

on_before_data_out(BeforeDataOutParams, logger) -> mapping | None
    Once per emission after composition. A returned mapping is merged into
    the running data (created if there was none); the next plugin sees the
    merged result.

on_before_message_out(BeforeMessageOutParams, logger) -> list | None
    Once per emission. A returned list replaces the messages.

transform_log_level(TransformLogLevelParams, logger) -> LogLevel | falsy
    Once per emission after the two hooks above. None / False mean "no
    opinion". The LAST plugin returning a concrete level wins.

should_send_to_logger(ShouldSendParams, logger) -> bool
    Once per eligible transport. The first falsy return suppresses delivery
    to that transport; remaining plugins are not consulted.

Hook exceptions are not caught here; they propagate to the logging call.

Example:
    >>> redact = plugin(
    ...     id="redact",
    ...     on_metadata_called=lambda md, _log: {k: v for k, v in md.items() if k != "password"},
    ... )
    >>> log = LogLayer(LogLayerConfig(transport=transport, plugins=[redact]))
"""

from collections.abc import Callable, Iterable, Mapping
from enum import StrEnum
from typing import TYPE_CHECKING, Any
from uuid import uuid4

from loglayer.errors import PluginRegistrationError
from loglayer.levels import LogLevel
from loglayer.records import (
    BeforeDataOutParams,
    BeforeMessageOutParams,
    ShouldSendParams,
    TransformLogLevelParams,
)

if TYPE_CHECKING:
    from loglayer.loglayer import LogLayer


class PluginHook(StrEnum):
    """Names of the hook methods a plugin may implement."""

    ON_CONTEXT_CALLED = "on_context_called"
    ON_METADATA_CALLED = "on_metadata_called"
    ON_BEFORE_DATA_OUT = "on_before_data_out"
    ON_BEFORE_MESSAGE_OUT = "on_before_message_out"
    TRANSFORM_LOG_LEVEL = "transform_log_level"
    SHOULD_SEND_TO_LOGGER = "should_send_to_logger"


class Plugin:
    """Optional base class for plugins.

    Subclasses define any subset of the PluginHook methods. Subclassing is
    not required - any object with the right method names works.
    """

    id: str | None = None
    disabled: bool = False

    def __init__(self, id: str | None = None, *, disabled: bool = False) -> None:
        if id is not None:
            self.id = id
        self.disabled = disabled


class FunctionPlugin(Plugin):
    """Plugin assembled from plain callables. Built by plugin()."""

    def __init__(self, id: str | None = None, *, disabled: bool = False, **hooks: Callable[..., Any]) -> None:
        super().__init__(id, disabled=disabled)
        valid = {hook.value for hook in PluginHook}
        for name, fn in hooks.items():
            if name not in valid:
                raise PluginRegistrationError(id or "<anonymous>", f"Unknown hook '{name}'. Valid hooks: {sorted(valid)}")
            if not callable(fn):
                raise PluginRegistrationError(id or "<anonymous>", f"Hook '{name}' must be callable")
            setattr(self, name, fn)

    def __repr__(self) -> str:
        return f"FunctionPlugin(id={self.id!r})"


def plugin(id: str | None = None, *, disabled: bool = False, **hooks: Callable[..., Any]) -> FunctionPlugin:
    """Build a plugin from hook callables keyed by hook name."""
    return FunctionPlugin(id, disabled=disabled, **hooks)


class PluginManager:
    """Holds plugins in registration order and runs their hooks.

    A per-hook index of bound callables is rebuilt whenever the registry
    changes, so an emission with no plugins for a hook costs one dict
    lookup and an empty-list check.

    Sharing:
        Child loggers share their parent's PluginManager. Adding, removing,
        enabling or disabling a plugin on any of them affects all of them,
        starting with the next emission.
    """

    def __init__(self, plugins: Iterable[Any] = ()) -> None:
        self._plugins: dict[str, Any] = {}
        self._disabled: set[str] = set()
        self._index: dict[PluginHook, list[Callable[..., Any]]] = {hook: [] for hook in PluginHook}
        self.add_plugins(plugins)

    # =========================================================================
    # Registry
    # =========================================================================

    def add_plugins(self, plugins: Iterable[Any]) -> None:
        """Append plugins after those already registered.

        Raises:
            PluginRegistrationError: If a plugin id is already registered
                or repeated within plugins. Nothing is registered then.
        """
        staged: dict[str, Any] = {}
        for candidate in plugins:
            plugin_id = getattr(candidate, "id", None) or uuid4().hex
            if plugin_id in self._plugins or plugin_id in staged:
                raise PluginRegistrationError(plugin_id, "a plugin with this id already exists")
            staged[plugin_id] = candidate

        for plugin_id, candidate in staged.items():
            self._plugins[plugin_id] = candidate
            if getattr(candidate, "disabled", False):
                self._disabled.add(plugin_id)
        self._reindex()

    def enable_plugin(self, plugin_id: str) -> None:
        self._disabled.discard(plugin_id)
        self._reindex()

    def disable_plugin(self, plugin_id: str) -> None:
        if plugin_id in self._plugins:
            self._disabled.add(plugin_id)
            self._reindex()

    def remove_plugin(self, plugin_id: str) -> None:
        self._plugins.pop(plugin_id, None)
        self._disabled.discard(plugin_id)
        self._reindex()

    def is_plugin_enabled(self, plugin_id: str) -> bool:
        return plugin_id in self._plugins and plugin_id not in self._disabled

    @property
    def plugin_ids(self) -> list[str]:
        return list(self._plugins)

    def has_plugins(self, hook: PluginHook) -> bool:
        return bool(self._index[hook])

    def count_plugins(self, hook: PluginHook | None = None) -> int:
        if hook is not None:
            return len(self._index[hook])
        return len(self._plugins)

    def _reindex(self) -> None:
        index: dict[PluginHook, list[Callable[..., Any]]] = {hook: [] for hook in PluginHook}
        for plugin_id, registered in self._plugins.items():
            if plugin_id in self._disabled:
                continue
            for hook in PluginHook:
                fn = getattr(registered, hook.value, None)
                if callable(fn):
                    index[hook].append(fn)
        self._index = index

    # =========================================================================
    # Hook runners
    # =========================================================================

    def run_on_context_called(self, context: Mapping[str, Any], logger: "LogLayer") -> Mapping[str, Any] | None:
        return self._run_chained(PluginHook.ON_CONTEXT_CALLED, context, logger)

    def run_on_metadata_called(self, metadata: Mapping[str, Any], logger: "LogLayer") -> Mapping[str, Any] | None:
        return self._run_chained(PluginHook.ON_METADATA_CALLED, metadata, logger)

    def _run_chained(self, hook: PluginHook, value: Mapping[str, Any], logger: "LogLayer") -> Mapping[str, Any] | None:
        current: Mapping[str, Any] = dict(value)
        for fn in self._index[hook]:
            result = fn(current, logger)
            if not result:
                return None
            current = result
        return current

    def run_on_before_data_out(self, params: BeforeDataOutParams, logger: "LogLayer") -> dict[str, Any] | None:
        data = dict(params.data) if params.data is not None else None
        for fn in self._index[PluginHook.ON_BEFORE_DATA_OUT]:
            result = fn(
                BeforeDataOutParams(
                    data=data,
                    log_level=params.log_level,
                    metadata=params.metadata,
                    error=params.error,
                    context=params.context,
                ),
                logger,
            )
            if result:
                data = {**(data or {}), **result}
        return data

    def run_on_before_message_out(self, params: BeforeMessageOutParams, logger: "LogLayer") -> list[Any]:
        messages = list(params.messages)
        for fn in self._index[PluginHook.ON_BEFORE_MESSAGE_OUT]:
            result = fn(BeforeMessageOutParams(messages=messages, log_level=params.log_level), logger)
            # An empty list is a valid replacement
            if result is not None:
                messages = list(result)
        return messages

    def run_transform_log_level(self, params: TransformLogLevelParams, logger: "LogLayer") -> LogLevel:
        level = params.log_level
        for fn in self._index[PluginHook.TRANSFORM_LOG_LEVEL]:
            result = fn(params, logger)
            if result:
                level = LogLevel(result)
        return level

    def run_should_send_to_logger(self, params: ShouldSendParams, logger: "LogLayer") -> bool:
        return all(fn(params, logger) for fn in self._index[PluginHook.SHOULD_SEND_TO_LOGGER])
