# src/loglayer/loglayer.py
"""LogLayer: the logging façade.

Pipeline for one emission:

    level gate -> lazy resolution -> composition -> on_before_data_out
    -> on_before_message_out -> transform_log_level -> group routing
    -> should_send_to_logger (per transport) -> transport dispatch

A gated-out call returns before any lazy producer, plugin hook or transport
runs.

Sync/async duality:
    A logging call whose context and metadata hold only synchronous values
    returns None and has delivered to every synchronous transport by the
    time it returns. If any lazy producer is asynchronous the call returns
    an awaitable instead:

    - with an event loop running, an asyncio.Task that delivers even if
      nobody awaits it (LogLayer.flush() waits for it)
    - with no loop running, a coroutine the caller must await (or pass to
      asyncio.run) for delivery to happen

    A failing lazy producer drops the whole emission. The call (and the
    awaitable) never raise for it; with console_debug on, a diagnostic is
    logged.

Ownership:
    Context, level state, assigned groups and the transport registry are
    per instance; child() copies them. The plugin manager and group router
    are shared with children unless replaced (with_fresh_plugins).

Example:
    >>> log = LogLayer(LogLayerConfig(transport=ConsoleTransport()))
    >>> log.with_context({"request_id": "abc"})
    >>> log.with_metadata({"user": 7}).info("signed in")
    >>> log.error_only(ValueError("bad input"))
"""

import asyncio
import copy
from collections.abc import Awaitable, Iterable, Mapping
from types import TracebackType
from typing import Any

from pydantic import ValidationError

from loglayer.builder import LogBuilder
from loglayer.composer import RecordComposer
from loglayer.config import ErrorOnlyOptions, LogLayerConfig, RawLogEntry
from loglayer.context import ContextManager
from loglayer.diagnostics import get_logger
from loglayer.dispatch import TransportDispatcher
from loglayer.errors import LazyEvaluationError, TransportConfigurationError
from loglayer.extensions import BoundExtension, Extension, ExtensionRegistry
from loglayer.groups import GroupDefinition, GroupRouter, merge_groups
from loglayer.lazy import discard_pending, resolve_all, resolve_lazy_values, resolve_pending, resolve_sync_only
from loglayer.levels import LogLevel, LogLevelManager
from loglayer.plugins import PluginHook, PluginManager
from loglayer.records import (
    BeforeDataOutParams,
    BeforeMessageOutParams,
    LogRecord,
    ShouldSendParams,
    TransformLogLevelParams,
)
from loglayer.transports.base import Transport

logger = get_logger(__name__)

LogReturn = Awaitable[None] | None


class LogLayer:
    """Structured logging façade dispatching to pluggable transports."""

    def __init__(
        self,
        config: LogLayerConfig | None = None,
        *,
        extensions: ExtensionRegistry | Iterable[Extension] | None = None,
        **options: Any,
    ) -> None:
        if config is None:
            config = LogLayerConfig(**options)
        elif options:
            raise TypeError("Pass either a LogLayerConfig or keyword options, not both")

        self._config = config
        self._extensions = extensions if isinstance(extensions, ExtensionRegistry) else ExtensionRegistry(extensions or ())

        self._level_manager = LogLevelManager(config.level, enabled=config.enabled)
        self._context_manager = ContextManager()
        self._plugin_manager = PluginManager([*config.plugins, *self._extensions.plugins()])
        self._router = GroupRouter(config.groups, active_groups=config.active_groups, ungrouped=config.ungrouped)
        self._router.apply_filter(config.group_filter)
        self._dispatcher = TransportDispatcher(config.transport)
        self._composer = RecordComposer.from_config(config)
        self._assigned_groups: tuple[str, ...] | None = None

        for extension in self._extensions:
            if extension.on_construct is not None:
                extension.on_construct(self, config)

    @property
    def config(self) -> LogLayerConfig:
        return self._config

    def _update_config(self, **changes: Any) -> None:
        self._config = self._config.model_copy(update=changes)
        self._composer = RecordComposer.from_config(self._config)

    # =========================================================================
    # Context
    # =========================================================================

    def with_context(self, context: Mapping[str, Any] | None) -> "LogLayer":
        """Merge context into the stored context (later keys win).

        on_context_called hooks run first; a falsy hook result drops the
        update and the stored context is left unchanged.
        """
        if not context:
            if self._config.console_debug:
                logger.debug("with_context called with no context; dropping")
            return self

        data: Mapping[str, Any] | None = context
        if self._plugin_manager.has_plugins(PluginHook.ON_CONTEXT_CALLED):
            data = self._plugin_manager.run_on_context_called(context, self)
            if not data:
                if self._config.console_debug:
                    logger.debug("Context was dropped due to plugin returning falsy value")
                return self

        self._context_manager.append_context(data)
        return self

    def clear_context(self, keys: str | Iterable[str] | None = None) -> "LogLayer":
        self._context_manager.clear_context(keys)
        return self

    def get_context(self, *, resolve: bool = False) -> dict[str, Any]:
        """Return a copy of the stored context.

        Args:
            resolve: Evaluate synchronous lazy values. Async lazy values stay
                wrapped; failures become LAZY_EVAL_ERROR.
        """
        context = self._context_manager.get_context()
        if not resolve:
            return dict(context)
        return resolve_sync_only(context, self._report_lazy_failure)

    async def get_context_async(self) -> dict[str, Any]:
        """Return the stored context with every lazy value (sync and async) resolved."""
        return await resolve_all(self._context_manager.get_context(), self._report_lazy_failure)

    def mute_context(self) -> "LogLayer":
        self._update_config(mute_context=True)
        return self

    def unmute_context(self) -> "LogLayer":
        self._update_config(mute_context=False)
        return self

    def mute_metadata(self) -> "LogLayer":
        self._update_config(mute_metadata=True)
        return self

    def unmute_metadata(self) -> "LogLayer":
        self._update_config(mute_metadata=False)
        return self

    # =========================================================================
    # Builders and special entry points
    # =========================================================================

    def with_metadata(self, metadata: Mapping[str, Any] | None) -> LogBuilder:
        return LogBuilder(self).with_metadata(metadata)

    def with_error(self, error: Any) -> LogBuilder:
        return LogBuilder(self).with_error(error)

    def metadata_only(self, metadata: Mapping[str, Any] | None, log_level: LogLevel | str = LogLevel.INFO) -> LogReturn:
        """Emit metadata with no message. Empty metadata or an unknown level emits nothing."""
        level = self._coerce_level(log_level)
        if level is None or not self.is_level_enabled(level):
            return None
        if self._config.mute_metadata:
            return None
        if not metadata:
            if self._config.console_debug:
                logger.debug("metadata_only called with no metadata; dropping")
            return None

        data = self._run_metadata_hooks(metadata)
        if data is None:
            return None
        return self._format_log(level, [], metadata=data)

    def error_only(self, error: Any, options: ErrorOnlyOptions | Mapping[str, Any] | None = None) -> LogReturn:
        """Emit an error with no message.

        The error's message is copied into the log messages when
        options.copy_msg is True, or when it is None and
        copy_msg_on_only_error is configured. Invalid options emit nothing.
        """
        if options is None:
            options = ErrorOnlyOptions()
        elif not isinstance(options, ErrorOnlyOptions):
            try:
                options = ErrorOnlyOptions.model_validate(options)
            except ValidationError as e:
                self._report_invalid_entry("error_only", e)
                return None
        level = options.log_level
        if not self.is_level_enabled(level):
            return None

        copy_msg = options.copy_msg if options.copy_msg is not None else self._config.copy_msg_on_only_error
        messages: list[Any] = []
        if copy_msg:
            error_message = _error_message(error)
            if error_message:
                messages = [error_message]
        return self._format_log(level, messages, error=error)

    def raw(self, entry: RawLogEntry | Mapping[str, Any]) -> LogReturn:
        """Emit a fully specified entry through the whole pipeline.

        A context given on the entry (even an empty one) replaces the stored
        context for this emission only. An entry that fails validation (for
        example an unknown log_level) emits nothing.
        """
        if not isinstance(entry, RawLogEntry):
            try:
                entry = RawLogEntry.model_validate(entry)
            except ValidationError as e:
                self._report_invalid_entry("raw", e)
                return None
        if not self.is_level_enabled(entry.log_level):
            return None

        metadata = entry.metadata
        if metadata is not None and self._config.mute_metadata:
            metadata = None
        return self._format_log(
            entry.log_level,
            self._apply_prefix(entry.messages),
            metadata=metadata,
            error=entry.error,
            context=entry.context,
            groups=tuple(entry.groups) if entry.groups else None,
        )

    # =========================================================================
    # Level methods
    # =========================================================================

    def trace(self, *messages: Any) -> LogReturn:
        if not self._level_manager.is_level_enabled(LogLevel.TRACE):
            return None
        return self._format_log(LogLevel.TRACE, self._apply_prefix(messages))

    def debug(self, *messages: Any) -> LogReturn:
        if not self._level_manager.is_level_enabled(LogLevel.DEBUG):
            return None
        return self._format_log(LogLevel.DEBUG, self._apply_prefix(messages))

    def info(self, *messages: Any) -> LogReturn:
        if not self._level_manager.is_level_enabled(LogLevel.INFO):
            return None
        return self._format_log(LogLevel.INFO, self._apply_prefix(messages))

    def warn(self, *messages: Any) -> LogReturn:
        if not self._level_manager.is_level_enabled(LogLevel.WARN):
            return None
        return self._format_log(LogLevel.WARN, self._apply_prefix(messages))

    def error(self, *messages: Any) -> LogReturn:
        if not self._level_manager.is_level_enabled(LogLevel.ERROR):
            return None
        return self._format_log(LogLevel.ERROR, self._apply_prefix(messages))

    def fatal(self, *messages: Any) -> LogReturn:
        if not self._level_manager.is_level_enabled(LogLevel.FATAL):
            return None
        return self._format_log(LogLevel.FATAL, self._apply_prefix(messages))

    # =========================================================================
    # Level gate
    # =========================================================================

    def is_level_enabled(self, level: LogLevel | str) -> bool:
        return self._level_manager.is_level_enabled(level)

    def set_level(self, level: LogLevel | str) -> "LogLayer":
        self._level_manager.set_level(level)
        return self

    def enable_individual_level(self, level: LogLevel | str) -> "LogLayer":
        self._level_manager.enable_individual_level(level)
        return self

    def disable_individual_level(self, level: LogLevel | str) -> "LogLayer":
        self._level_manager.disable_individual_level(level)
        return self

    def enable_logging(self) -> "LogLayer":
        self._level_manager.enable_logging()
        return self

    def disable_logging(self) -> "LogLayer":
        self._level_manager.disable_logging()
        return self

    # =========================================================================
    # Plugins
    # =========================================================================

    def add_plugins(self, plugins: Iterable[Any]) -> "LogLayer":
        self._plugin_manager.add_plugins(plugins)
        return self

    def enable_plugin(self, plugin_id: str) -> "LogLayer":
        self._plugin_manager.enable_plugin(plugin_id)
        return self

    def disable_plugin(self, plugin_id: str) -> "LogLayer":
        self._plugin_manager.disable_plugin(plugin_id)
        return self

    def remove_plugin(self, plugin_id: str) -> "LogLayer":
        self._plugin_manager.remove_plugin(plugin_id)
        return self

    def with_fresh_plugins(self, plugins: Iterable[Any]) -> "LogLayer":
        """Give this instance its own plugin manager holding only plugins."""
        self._plugin_manager = PluginManager(plugins)
        return self

    # =========================================================================
    # Transports
    # =========================================================================

    def with_fresh_transports(self, transports: Transport | Iterable[Transport]) -> "LogLayer":
        """Replace all transports of this instance. Dropped transports are closed."""
        self._dispatcher.replace_all(_as_transport_list(transports))
        return self

    def add_transport(self, transports: Transport | Iterable[Transport]) -> "LogLayer":
        """Add transports. A transport with an existing id replaces (and closes) the old one."""
        self._dispatcher.add(_as_transport_list(transports))
        return self

    def remove_transport(self, transport_id: str) -> bool:
        return self._dispatcher.remove(transport_id)

    def get_logger_instance(self, transport_id: str) -> Any:
        """Return the backend logger of a transport, None if the id is unknown."""
        transport = self._dispatcher.get(transport_id)
        if transport is None:
            return None
        get_instance = getattr(transport, "get_logger_instance", None)
        if not callable(get_instance):
            raise TransportConfigurationError(transport_id, "transport does not expose a logger instance")
        return get_instance()

    @property
    def transports(self) -> list[Transport]:
        return self._dispatcher.transports

    @property
    def health_metrics(self) -> dict[str, Any]:
        return self._dispatcher.health_metrics

    # =========================================================================
    # Groups
    # =========================================================================

    def with_group(self, group: str | Iterable[str]) -> "LogLayer":
        """Return a child logger whose emissions are all tagged with group(s)."""
        names = (group,) if isinstance(group, str) else tuple(group)
        child = self.child()
        child._assigned_groups = merge_groups(self._assigned_groups, names)
        return child

    def add_group(self, name: str, definition: GroupDefinition | Mapping[str, Any]) -> "LogLayer":
        self._router.add_group(name, definition)
        return self

    def remove_group(self, name: str) -> "LogLayer":
        self._router.remove_group(name)
        return self

    def enable_group(self, name: str) -> "LogLayer":
        self._router.enable_group(name)
        return self

    def disable_group(self, name: str) -> "LogLayer":
        self._router.disable_group(name)
        return self

    def set_group_level(self, name: str, level: LogLevel | str | None) -> "LogLayer":
        self._router.set_group_level(name, level)
        return self

    def set_active_groups(self, groups: Iterable[str] | None) -> "LogLayer":
        self._router.set_active_groups(groups)
        return self

    def get_groups(self) -> dict[str, GroupDefinition]:
        return self._router.get_groups()

    @property
    def assigned_groups(self) -> tuple[str, ...] | None:
        return self._assigned_groups

    # =========================================================================
    # Children and extensions
    # =========================================================================

    def child(self) -> "LogLayer":
        """Create a child logger.

        The child starts with a copy of this logger's context, level state,
        assigned groups and transport registry. It shares the plugin manager
        and group router.
        """
        child = copy.copy(self)
        child._level_manager = self._level_manager.clone()
        child._context_manager = self._context_manager.clone()
        child._dispatcher = self._dispatcher.clone()
        return child

    def with_prefix(self, prefix: str) -> "LogLayer":
        """Return a child logger using prefix for its messages."""
        child = self.child()
        child._update_config(prefix=prefix)
        return child

    def extension(self, name: str) -> BoundExtension:
        """Return the named extension's methods bound to this logger.

        Raises:
            ExtensionError: If no extension with that name was configured
        """
        return BoundExtension(self._extensions.get(name), self)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def flush(self) -> None:
        """Wait for pending asynchronous emissions and transport work."""
        await self._dispatcher.flush()

    def close(self) -> None:
        """Close every transport of this instance."""
        self._dispatcher.close()

    def __enter__(self) -> "LogLayer":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    async def __aenter__(self) -> "LogLayer":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.flush()
        self.close()

    # =========================================================================
    # Pipeline
    # =========================================================================

    def _apply_prefix(self, messages: Iterable[Any]) -> list[Any]:
        messages = list(messages)
        prefix = self._config.prefix
        if prefix and messages and isinstance(messages[0], str):
            messages[0] = f"{prefix} {messages[0]}"
        return messages

    def _run_metadata_hooks(self, metadata: Mapping[str, Any]) -> Mapping[str, Any] | None:
        if not self._plugin_manager.has_plugins(PluginHook.ON_METADATA_CALLED):
            return metadata
        data = self._plugin_manager.run_on_metadata_called(metadata, self)
        if not data:
            if self._config.console_debug:
                logger.debug("Metadata was dropped due to plugin returning falsy value")
            return None
        return data

    def _coerce_level(self, log_level: LogLevel | str) -> LogLevel | None:
        try:
            return LogLevel(log_level)
        except ValueError:
            if self._config.console_debug:
                logger.debug("Unknown log level; dropping", log_level=str(log_level))
            return None

    def _report_invalid_entry(self, entry_point: str, error: ValidationError) -> None:
        if self._config.console_debug:
            logger.debug(
                "Invalid log entry; dropping",
                entry_point=entry_point,
                errors=error.error_count(),
                error=str(error),
            )

    def _report_lazy_failure(self, error: LazyEvaluationError) -> None:
        if self._config.console_debug:
            logger.warning(
                "Lazy evaluation failed",
                key=error.key,
                source=error.source,
                error=str(error.__cause__),
            )

    def _format_log(
        self,
        level: LogLevel,
        messages: list[Any],
        *,
        metadata: Mapping[str, Any] | None = None,
        error: Any = None,
        context: Mapping[str, Any] | None = None,
        groups: tuple[str, ...] | None = None,
    ) -> LogReturn:
        """Resolve lazy values, then process synchronously or hand back an awaitable."""
        raw_context = context if context is not None else self._context_manager.get_context()

        try:
            resolved_context, context_pending = resolve_lazy_values(raw_context, "context")
        except LazyEvaluationError as e:
            self._report_lazy_failure(e)
            return None
        try:
            resolved_metadata, metadata_pending = (
                resolve_lazy_values(metadata, "metadata") if metadata else (metadata, {})
            )
        except LazyEvaluationError as e:
            discard_pending(context_pending)
            self._report_lazy_failure(e)
            return None

        if not context_pending and not metadata_pending:
            self._process_log(level, messages, resolved_context, resolved_metadata, error, groups)
            return None

        pending = self._resolve_and_process(
            level,
            messages,
            (resolved_context, context_pending),
            (resolved_metadata or {}, metadata_pending),
            error,
            groups,
        )
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            return pending
        task = loop.create_task(pending)
        self._dispatcher.track(task)
        return task

    async def _resolve_and_process(
        self,
        level: LogLevel,
        messages: list[Any],
        context_parts: tuple[Mapping[str, Any], dict[str, Awaitable[Any]]],
        metadata_parts: tuple[Mapping[str, Any], dict[str, Awaitable[Any]]],
        error: Any,
        groups: tuple[str, ...] | None,
    ) -> None:
        try:
            context = await resolve_pending(*context_parts, "context")
        except LazyEvaluationError as e:
            discard_pending(metadata_parts[1])
            self._report_lazy_failure(e)
            return
        try:
            metadata = await resolve_pending(*metadata_parts, "metadata")
        except LazyEvaluationError as e:
            self._report_lazy_failure(e)
            return
        self._process_log(level, messages, context, metadata or None, error, groups)

    def _process_log(
        self,
        level: LogLevel,
        messages: list[Any],
        context: Mapping[str, Any],
        metadata: Mapping[str, Any] | None,
        error: Any,
        groups: tuple[str, ...] | None,
    ) -> None:
        plugins = self._plugin_manager
        data = self._composer.compose(context, metadata, error)

        if plugins.has_plugins(PluginHook.ON_BEFORE_DATA_OUT):
            data = plugins.run_on_before_data_out(
                BeforeDataOutParams(data=data, log_level=level, metadata=metadata, error=error, context=context),
                self,
            )
        has_data = bool(data)

        if plugins.has_plugins(PluginHook.ON_BEFORE_MESSAGE_OUT):
            messages = plugins.run_on_before_message_out(
                BeforeMessageOutParams(messages=list(messages), log_level=level),
                self,
            )

        if plugins.has_plugins(PluginHook.TRANSFORM_LOG_LEVEL):
            level = plugins.run_transform_log_level(
                TransformLogLevelParams(
                    log_level=level,
                    data=data if has_data else None,
                    messages=tuple(messages),
                    metadata=metadata,
                    error=error,
                    context=context,
                ),
                self,
            )

        effective_groups = merge_groups(self._assigned_groups, groups)
        record = LogRecord(
            log_level=level,
            messages=tuple(messages),
            data=data if has_data else None,
            has_data=has_data,
            error=error,
            metadata=metadata,
            context=context,
            groups=effective_groups,
        )

        router = self._router
        check_send = plugins.has_plugins(PluginHook.SHOULD_SEND_TO_LOGGER)

        def accept(transport: Transport) -> bool:
            if not router.is_eligible(transport.id, level, effective_groups):
                return False
            if not check_send:
                return True
            return plugins.run_should_send_to_logger(
                ShouldSendParams(
                    messages=record.messages,
                    data=record.data,
                    log_level=level,
                    transport_id=transport.id,
                    groups=effective_groups,
                    metadata=metadata,
                    error=error,
                    context=context,
                ),
                self,
            )

        self._dispatcher.dispatch(record, accept)


def _as_transport_list(transports: Transport | Iterable[Transport]) -> list[Transport]:
    if isinstance(transports, Transport):
        return [transports]
    return list(transports)


def _error_message(error: Any) -> str | None:
    message = getattr(error, "message", None)
    if isinstance(message, str) and message:
        return message
    if isinstance(error, BaseException):
        return str(error) or None
    return None
