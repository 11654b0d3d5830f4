# src/loglayer/context.py
"""Per-logger context store.

Context is owned exclusively by one logger. A child logger receives a
shallow point-in-time copy via clone(); mutation on either side never
affects the other.
"""

from collections.abc import Iterable, Mapping
from typing import Any


class ContextManager:
    """Simple key/value store for context data."""

    def __init__(self, context: Mapping[str, Any] | None = None) -> None:
        self._context: dict[str, Any] = dict(context) if context else {}

    def append_context(self, context: Mapping[str, Any]) -> None:
        """Right-biased shallow merge: later values win on key collision."""
        self._context = {**self._context, **context}

    def set_context(self, context: Mapping[str, Any] | None) -> None:
        """Replace the context. None clears it."""
        self._context = dict(context) if context else {}

    def clear_context(self, keys: str | Iterable[str] | None = None) -> None:
        """Clear all context, or only the given key(s)."""
        if keys is None:
            self._context = {}
            return
        if isinstance(keys, str):
            keys = (keys,)
        remaining = dict(self._context)
        for key in keys:
            remaining.pop(key, None)
        self._context = remaining

    def get_context(self) -> dict[str, Any]:
        """Return the stored mapping (raw, lazy wrappers included).

        The mapping is replaced on every write rather than mutated, so a
        reference handed out here is a stable snapshot.
        """
        return self._context

    def has_context_data(self) -> bool:
        return bool(self._context)

    def clone(self) -> "ContextManager":
        return ContextManager(self._context)
