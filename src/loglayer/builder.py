# src/loglayer/builder.py
"""Per-call builder for metadata, an error and group tags.

    log.with_metadata({"user_id": 42}).with_error(exc).with_group("auth").error("login failed")

Metadata handed to with_metadata() is held raw until a level method passes
the level gate. Only then do on_metadata_called hooks run (once per
with_metadata() call, in call order) and the results merge right-biased.
A gated-out call therefore invokes no plugin hook at all.

A builder is single-use in spirit but not enforced: calling two level
methods emits twice with the same metadata.
"""

from collections.abc import Iterable, Mapping
from typing import TYPE_CHECKING, Any

from loglayer.diagnostics import get_logger
from loglayer.levels import LogLevel

if TYPE_CHECKING:
    from collections.abc import Awaitable

    from loglayer.loglayer import LogLayer

logger = get_logger(__name__)


class LogBuilder:
    """Collects per-call data for one emission from a LogLayer."""

    def __init__(self, log_layer: "LogLayer") -> None:
        self._log_layer = log_layer
        self._metadata_chunks: list[Mapping[str, Any]] = []
        self._error: Any = None
        self._groups: list[str] = []

    def with_metadata(self, metadata: Mapping[str, Any] | None) -> "LogBuilder":
        """Attach metadata. Empty or None metadata is dropped."""
        if not metadata:
            if self._log_layer.config.console_debug:
                logger.debug("with_metadata called with no metadata; dropping")
            return self
        self._metadata_chunks.append(metadata)
        return self

    def with_error(self, error: Any) -> "LogBuilder":
        self._error = error
        return self

    def with_group(self, group: str | Iterable[str]) -> "LogBuilder":
        """Tag this one emission with group(s), in addition to the logger's groups."""
        names = [group] if isinstance(group, str) else list(group)
        self._groups.extend(name for name in names if name not in self._groups)
        return self

    def enable_logging(self) -> "LogBuilder":
        self._log_layer.enable_logging()
        return self

    def disable_logging(self) -> "LogBuilder":
        self._log_layer.disable_logging()
        return self

    # =========================================================================
    # Level methods
    # =========================================================================

    def trace(self, *messages: Any) -> "Awaitable[None] | None":
        return self._emit(LogLevel.TRACE, messages)

    def debug(self, *messages: Any) -> "Awaitable[None] | None":
        return self._emit(LogLevel.DEBUG, messages)

    def info(self, *messages: Any) -> "Awaitable[None] | None":
        return self._emit(LogLevel.INFO, messages)

    def warn(self, *messages: Any) -> "Awaitable[None] | None":
        return self._emit(LogLevel.WARN, messages)

    def error(self, *messages: Any) -> "Awaitable[None] | None":
        return self._emit(LogLevel.ERROR, messages)

    def fatal(self, *messages: Any) -> "Awaitable[None] | None":
        return self._emit(LogLevel.FATAL, messages)

    def _emit(self, level: LogLevel, messages: tuple[Any, ...]) -> "Awaitable[None] | None":
        log_layer = self._log_layer
        if not log_layer.is_level_enabled(level):
            return None
        return log_layer._format_log(
            level,
            log_layer._apply_prefix(messages),
            metadata=self._build_metadata(),
            error=self._error,
            groups=tuple(self._groups) or None,
        )

    def _build_metadata(self) -> dict[str, Any] | None:
        log_layer = self._log_layer
        if log_layer.config.mute_metadata or not self._metadata_chunks:
            return None

        merged: dict[str, Any] = {}
        for chunk in self._metadata_chunks:
            data = log_layer._run_metadata_hooks(chunk)
            if data is not None:
                merged.update(data)
        return merged or None
