# src/loglayer/lazy.py
"""Deferred ("lazy") values for context and metadata.

A LazyValue wraps a zero-argument producer whose evaluation is postponed
until an emission has passed the level gate:

    log.with_context({"heap": lazy(lambda: tracemalloc.get_traced_memory()[0])})
    log.with_metadata({"payload": lazy(lambda: json.dumps(big))}).debug("done")

Producers may be synchronous or asynchronous (``async def`` or any callable
returning an awaitable). Only root-level values of a mapping are inspected.

Resolution happens in two phases:

1. resolve_lazy_values() calls every producer. Plain results are stored;
   awaitable results are collected as "pending".
2. resolve_pending() awaits the pending results (only needed when phase 1
   produced any).

If any producer raises (or its awaitable rejects) the resolvers raise
LazyEvaluationError and close any coroutines they were holding, so the
caller can drop the emission without leaking un-awaited coroutines.
"""

from __future__ import annotations

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Mapping
from typing import Any

from loglayer.errors import LazyEvaluationError

# Placeholder used by context accessors when a producer fails. Exported so
# callers can detect it.
LAZY_EVAL_ERROR = "[LazyEvalError]"


class LazyValue:
    """Wrapper marking a value whose producer runs at emission time.

    Identity is by type, so a LazyValue is never mistaken for an ordinary
    value and never serialized as-is.
    """

    __slots__ = ("_producer",)

    def __init__(self, producer: Callable[[], Any]) -> None:
        if not callable(producer):
            raise TypeError(f"lazy() expects a zero-argument callable, got {type(producer).__name__}")
        self._producer = producer

    @property
    def is_async(self) -> bool:
        """True if the producer is declared ``async def``."""
        return inspect.iscoroutinefunction(self._producer)

    def evaluate(self) -> Any:
        """Call the producer. May return an awaitable for async producers."""
        return self._producer()

    def __repr__(self) -> str:
        return f"LazyValue({self._producer!r})"


def lazy(producer: Callable[[], Any]) -> LazyValue:
    """Wrap a producer so it is only evaluated when a log is actually emitted."""
    return LazyValue(producer)


def is_lazy(value: Any) -> bool:
    return isinstance(value, LazyValue)


def has_lazy_values(mapping: Mapping[str, Any] | None) -> bool:
    if not mapping:
        return False
    return any(isinstance(value, LazyValue) for value in mapping.values())


def discard_pending(pending: Mapping[str, Awaitable[Any]]) -> None:
    """Close coroutines that will never be awaited."""
    for awaitable in pending.values():
        if inspect.iscoroutine(awaitable):
            awaitable.close()


def resolve_lazy_values(
    mapping: Mapping[str, Any],
    source: str,
) -> tuple[Mapping[str, Any], dict[str, Awaitable[Any]]]:
    """Evaluate every root-level lazy value in mapping.

    Returns the original mapping untouched when it holds no lazy values.

    Args:
        mapping: Context or metadata mapping
        source: "context" or "metadata" (for error reporting)

    Returns:
        (resolved, pending): resolved is a new dict with sync results filled
        in; keys whose producer returned an awaitable still hold the wrapper
        in resolved and appear in pending.

    Raises:
        LazyEvaluationError: If a producer raises. Pending coroutines created
            so far are closed before raising.
    """
    if not has_lazy_values(mapping):
        return mapping, {}

    resolved: dict[str, Any] = {}
    pending: dict[str, Awaitable[Any]] = {}
    for key, value in mapping.items():
        if not isinstance(value, LazyValue):
            resolved[key] = value
            continue
        try:
            result = value.evaluate()
        except Exception as e:
            discard_pending(pending)
            raise LazyEvaluationError(key, source) from e
        if inspect.isawaitable(result):
            pending[key] = result
            resolved[key] = value
        else:
            resolved[key] = result
    return resolved, pending


async def resolve_pending(
    resolved: Mapping[str, Any],
    pending: Mapping[str, Awaitable[Any]],
    source: str,
) -> dict[str, Any]:
    """Await pending producer results and merge them into resolved.

    All awaitables are awaited concurrently; every one settles before the
    first failure is reported.

    Raises:
        LazyEvaluationError: For the first key (in mapping order) whose
            awaitable rejected.
    """
    final = dict(resolved)
    if not pending:
        return final

    keys = list(pending)
    results = await asyncio.gather(*(pending[key] for key in keys), return_exceptions=True)
    for key, result in zip(keys, results, strict=True):
        if isinstance(result, BaseException):
            if not isinstance(result, Exception):
                raise result
            raise LazyEvaluationError(key, source) from result
        final[key] = result
    return final


def resolve_sync_only(mapping: Mapping[str, Any], on_error: Callable[[LazyEvaluationError], None]) -> dict[str, Any]:
    """Resolve synchronous producers for inspection, leaving async ones wrapped.

    Used by context accessors. Failed producers become LAZY_EVAL_ERROR and
    are reported through on_error; nothing is raised.
    """
    result: dict[str, Any] = {}
    for key, value in mapping.items():
        if not isinstance(value, LazyValue) or value.is_async:
            result[key] = value
            continue
        try:
            produced = value.evaluate()
        except Exception as e:
            error = LazyEvaluationError(key, "context")
            error.__cause__ = e
            on_error(error)
            result[key] = LAZY_EVAL_ERROR
            continue
        if inspect.isawaitable(produced):
            # Sync-declared producer handed back an awaitable; keep the wrapper
            discard_pending({key: produced})
            result[key] = value
        else:
            result[key] = produced
    return result


async def resolve_all(mapping: Mapping[str, Any], on_error: Callable[[LazyEvaluationError], None]) -> dict[str, Any]:
    """Resolve every producer (sync and async) for inspection.

    Failed producers become LAZY_EVAL_ERROR and are reported through
    on_error; nothing is raised.
    """
    result: dict[str, Any] = {}
    pending: dict[str, Awaitable[Any]] = {}
    for key, value in mapping.items():
        if not isinstance(value, LazyValue):
            result[key] = value
            continue
        try:
            produced = value.evaluate()
        except Exception as e:
            error = LazyEvaluationError(key, "context")
            error.__cause__ = e
            on_error(error)
            result[key] = LAZY_EVAL_ERROR
            continue
        if inspect.isawaitable(produced):
            pending[key] = produced
        result[key] = produced

    if pending:
        keys = list(pending)
        settled = await asyncio.gather(*(pending[key] for key in keys), return_exceptions=True)
        for key, outcome in zip(keys, settled, strict=True):
            if isinstance(outcome, Exception):
                error = LazyEvaluationError(key, "context")
                error.__cause__ = outcome
                on_error(error)
                result[key] = LAZY_EVAL_ERROR
            elif isinstance(outcome, BaseException):
                raise outcome
            else:
                result[key] = outcome
    return result
