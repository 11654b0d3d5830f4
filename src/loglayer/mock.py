# src/loglayer/mock.py
"""No-op doubles of LogLayer and LogBuilder for tests of application code.

MockLogLayer accepts every LogLayer call and does nothing: level methods
return None, chainable methods return the mock itself, builder methods
return a MockLogBuilder. Pass one wherever a LogLayer is expected to keep
log output out of unit tests.
"""

from collections.abc import Iterable, Mapping
from typing import Any

from loglayer.groups import GroupDefinition
from loglayer.levels import LogLevel


class MockLogBuilder:
    """LogBuilder double that records nothing."""

    def with_metadata(self, metadata: Mapping[str, Any] | None) -> "MockLogBuilder":
        return self

    def with_error(self, error: Any) -> "MockLogBuilder":
        return self

    def with_group(self, group: str | Iterable[str]) -> "MockLogBuilder":
        return self

    def enable_logging(self) -> "MockLogBuilder":
        return self

    def disable_logging(self) -> "MockLogBuilder":
        return self

    def trace(self, *messages: Any) -> None:
        return None

    def debug(self, *messages: Any) -> None:
        return None

    def info(self, *messages: Any) -> None:
        return None

    def warn(self, *messages: Any) -> None:
        return None

    def error(self, *messages: Any) -> None:
        return None

    def fatal(self, *messages: Any) -> None:
        return None


class _MockExtension:
    """Accepts any extension method call."""

    def __init__(self, name: str) -> None:
        self.name = name

    def __getattr__(self, attr: str) -> Any:
        if attr.startswith("_"):
            raise AttributeError(attr)
        return lambda *args, **kwargs: None


class MockLogLayer:
    """LogLayer double: same surface, no effects.

    Args:
        builder: Builder returned by with_metadata()/with_error(), so tests
            can substitute their own spy
    """

    def __init__(self, builder: MockLogBuilder | None = None) -> None:
        self._builder = builder or MockLogBuilder()

    # Level methods
    def trace(self, *messages: Any) -> None:
        return None

    def debug(self, *messages: Any) -> None:
        return None

    def info(self, *messages: Any) -> None:
        return None

    def warn(self, *messages: Any) -> None:
        return None

    def error(self, *messages: Any) -> None:
        return None

    def fatal(self, *messages: Any) -> None:
        return None

    def metadata_only(self, metadata: Mapping[str, Any] | None, log_level: LogLevel | str = LogLevel.INFO) -> None:
        return None

    def error_only(self, error: Any, options: Any = None) -> None:
        return None

    def raw(self, entry: Any) -> None:
        return None

    # Builders
    def with_metadata(self, metadata: Mapping[str, Any] | None) -> MockLogBuilder:
        return self._builder

    def with_error(self, error: Any) -> MockLogBuilder:
        return self._builder

    def get_mock_log_builder(self) -> MockLogBuilder:
        return self._builder

    def set_mock_log_builder(self, builder: MockLogBuilder) -> None:
        self._builder = builder

    def reset_mock_log_builder(self) -> None:
        self._builder = MockLogBuilder()

    # Context
    def with_context(self, context: Mapping[str, Any] | None) -> "MockLogLayer":
        return self

    def clear_context(self, keys: str | Iterable[str] | None = None) -> "MockLogLayer":
        return self

    def get_context(self, *, resolve: bool = False) -> dict[str, Any]:
        return {}

    async def get_context_async(self) -> dict[str, Any]:
        return {}

    def mute_context(self) -> "MockLogLayer":
        return self

    def unmute_context(self) -> "MockLogLayer":
        return self

    def mute_metadata(self) -> "MockLogLayer":
        return self

    def unmute_metadata(self) -> "MockLogLayer":
        return self

    # Level gate
    def is_level_enabled(self, level: LogLevel | str) -> bool:
        return True

    def set_level(self, level: LogLevel | str) -> "MockLogLayer":
        return self

    def enable_individual_level(self, level: LogLevel | str) -> "MockLogLayer":
        return self

    def disable_individual_level(self, level: LogLevel | str) -> "MockLogLayer":
        return self

    def enable_logging(self) -> "MockLogLayer":
        return self

    def disable_logging(self) -> "MockLogLayer":
        return self

    # Plugins
    def add_plugins(self, plugins: Iterable[Any]) -> "MockLogLayer":
        return self

    def enable_plugin(self, plugin_id: str) -> "MockLogLayer":
        return self

    def disable_plugin(self, plugin_id: str) -> "MockLogLayer":
        return self

    def remove_plugin(self, plugin_id: str) -> "MockLogLayer":
        return self

    def with_fresh_plugins(self, plugins: Iterable[Any]) -> "MockLogLayer":
        return self

    # Transports
    def with_fresh_transports(self, transports: Any) -> "MockLogLayer":
        return self

    def add_transport(self, transports: Any) -> "MockLogLayer":
        return self

    def remove_transport(self, transport_id: str) -> bool:
        return False

    def get_logger_instance(self, transport_id: str) -> Any:
        return None

    # Groups
    def with_group(self, group: str | Iterable[str]) -> "MockLogLayer":
        return self

    def add_group(self, name: str, definition: GroupDefinition | Mapping[str, Any]) -> "MockLogLayer":
        return self

    def remove_group(self, name: str) -> "MockLogLayer":
        return self

    def enable_group(self, name: str) -> "MockLogLayer":
        return self

    def disable_group(self, name: str) -> "MockLogLayer":
        return self

    def set_group_level(self, name: str, level: LogLevel | str | None) -> "MockLogLayer":
        return self

    def set_active_groups(self, groups: Iterable[str] | None) -> "MockLogLayer":
        return self

    def get_groups(self) -> dict[str, GroupDefinition]:
        return {}

    # Children, extensions, lifecycle
    def child(self) -> "MockLogLayer":
        return self

    def with_prefix(self, prefix: str) -> "MockLogLayer":
        return self

    def extension(self, name: str) -> _MockExtension:
        return _MockExtension(name)

    async def flush(self) -> None:
        return None

    def close(self) -> None:
        return None

    def __enter__(self) -> "MockLogLayer":
        return self

    def __exit__(self, *exc_info: object) -> None:
        return None
