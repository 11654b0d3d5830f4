# src/loglayer/levels.py
"""Log levels and the level gate.

The gate decides whether an emission proceeds at all. It combines three
pieces of state:

- a global enabled flag (enable_logging / disable_logging)
- a minimum-level threshold (set_level)
- per-level overrides (enable_individual_level / disable_individual_level)

A level passes iff logging is globally enabled AND (the explicit override
for that level if one exists, else level >= threshold).

Every public logging method checks the gate first and returns immediately
when it fails - no lazy producer, plugin hook or transport runs for a
gated-out emission.
"""

from enum import StrEnum


class LogLevel(StrEnum):
    """Severity of an emission, lowest to highest."""

    TRACE = "trace"
    DEBUG = "debug"
    INFO = "info"
    WARN = "warn"
    ERROR = "error"
    FATAL = "fatal"


LOG_LEVEL_PRIORITY: dict[LogLevel, int] = {
    LogLevel.TRACE: 10,
    LogLevel.DEBUG: 20,
    LogLevel.INFO: 30,
    LogLevel.WARN: 40,
    LogLevel.ERROR: 50,
    LogLevel.FATAL: 60,
}


def level_priority(level: LogLevel | str) -> int:
    """Return the numeric priority of a level (higher is more severe).

    Raises:
        ValueError: If level is not a known level name
    """
    return LOG_LEVEL_PRIORITY[LogLevel(level)]


def is_at_least(level: LogLevel | str, minimum: LogLevel | str) -> bool:
    """True if level is at least as severe as minimum."""
    return level_priority(level) >= level_priority(minimum)


class LogLevelManager:
    """Level gate for one logger instance.

    Children receive a clone; changes on the parent after the child was
    created do not propagate, and vice versa.
    """

    def __init__(self, level: LogLevel | str = LogLevel.TRACE, *, enabled: bool = True) -> None:
        self._enabled = enabled
        self._threshold = LogLevel(level)
        self._overrides: dict[LogLevel, bool] = {}

    @property
    def threshold(self) -> LogLevel:
        return self._threshold

    @property
    def logging_enabled(self) -> bool:
        return self._enabled

    def set_level(self, level: LogLevel | str) -> None:
        """Set the minimum level and drop all per-level overrides.

        set_level(LogLevel.WARN) enables warn, error and fatal and
        disables info, debug and trace.
        """
        self._threshold = LogLevel(level)
        self._overrides.clear()

    def enable_individual_level(self, level: LogLevel | str) -> None:
        self._overrides[LogLevel(level)] = True

    def disable_individual_level(self, level: LogLevel | str) -> None:
        self._overrides[LogLevel(level)] = False

    def enable_logging(self) -> None:
        self._enabled = True

    def disable_logging(self) -> None:
        self._enabled = False

    def is_level_enabled(self, level: LogLevel | str) -> bool:
        if not self._enabled:
            return False
        try:
            level = LogLevel(level)
        except ValueError:
            return False
        override = self._overrides.get(level)
        if override is not None:
            return override
        return LOG_LEVEL_PRIORITY[level] >= LOG_LEVEL_PRIORITY[self._threshold]

    def clone(self) -> "LogLevelManager":
        """Point-in-time copy for a child logger."""
        clone = LogLevelManager(self._threshold, enabled=self._enabled)
        clone._overrides = dict(self._overrides)
        return clone
