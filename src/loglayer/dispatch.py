# src/loglayer/dispatch.py
"""TransportDispatcher delivers finished records to transports.

Responsibilities:
1. Holds the id -> transport registry for one logger instance
2. Fast path when exactly one transport is registered
3. Fan-out with per-transport failure isolation otherwise
4. Schedules asynchronous transport work without blocking the caller
5. Tracks health metrics and pending deliveries for flush()

Failure isolation:
    A transport whose emit() raises, or whose returned awaitable fails, is
    counted and reported with a warning on the diagnostic channel. Sibling
    transports still receive the record and the logging call never sees the
    exception.

    The ``accept`` predicate passed to dispatch() (group routing plus the
    should_send_to_logger hook) runs OUTSIDE the isolation. Plugin hook
    exceptions propagate to the logging call.

Asynchronous transport work:
    When emit() returns an awaitable and an event loop is running, it is
    wrapped in a task and tracked until done; flush() awaits every tracked
    task. With no running loop every awaitable of one emission is gathered
    under a single asyncio.run() before dispatch() returns, so a slow
    transport does not delay its siblings.
"""

import asyncio
import inspect
from collections.abc import Awaitable, Callable, Iterable
from functools import partial
from typing import Any

from loglayer.diagnostics import get_logger
from loglayer.errors import TransportConfigurationError
from loglayer.records import LogRecord
from loglayer.transports.base import Transport

logger = get_logger(__name__)


async def _drive_all(awaitables: list[Awaitable[Any]]) -> list[Any]:
    return await asyncio.gather(*awaitables, return_exceptions=True)


class TransportDispatcher:
    """Registry and fan-out for one logger's transports.

    Children get a clone(): the same transport objects in a new registry,
    so adding or removing transports on either side does not affect the
    other.

    Example:
        >>> dispatcher = TransportDispatcher([console, file_transport])
        >>> dispatcher.dispatch(record, accept=lambda transport: True)
        >>> await dispatcher.flush()
        >>> dispatcher.close()
    """

    def __init__(self, transports: Iterable[Transport] = ()) -> None:
        self._transports: dict[str, Transport] = {}
        for transport in transports:
            if transport.id in self._transports:
                raise TransportConfigurationError(transport.id, "duplicate transport id")
            self._transports[transport.id] = transport
        self._single: Transport | None = None
        self._refresh()

        # Health metrics
        self._records_dispatched = 0
        self._transport_failures: dict[str, int] = {}
        self._pending: set[asyncio.Future[Any]] = set()

    def _refresh(self) -> None:
        self._single = next(iter(self._transports.values())) if len(self._transports) == 1 else None

    # =========================================================================
    # Registry
    # =========================================================================

    @property
    def transports(self) -> list[Transport]:
        return list(self._transports.values())

    @property
    def transport_ids(self) -> list[str]:
        return list(self._transports)

    def get(self, transport_id: str) -> Transport | None:
        return self._transports.get(transport_id)

    def add(self, transports: Iterable[Transport]) -> None:
        """Register transports. An existing transport with the same id is closed and replaced."""
        for transport in transports:
            existing = self._transports.pop(transport.id, None)
            if existing is not None and existing is not transport:
                self._close_transport(existing)
            self._transports[transport.id] = transport
        self._refresh()

    def remove(self, transport_id: str) -> bool:
        """Close and unregister a transport. Returns False if the id is unknown."""
        transport = self._transports.pop(transport_id, None)
        if transport is None:
            return False
        self._close_transport(transport)
        self._refresh()
        return True

    def replace_all(self, transports: Iterable[Transport]) -> None:
        """Swap the whole registry. Transports not carried over are closed."""
        incoming = list(transports)
        keep = {id(transport) for transport in incoming}
        for transport in self._transports.values():
            if id(transport) not in keep:
                self._close_transport(transport)
        self._transports = {}
        for transport in incoming:
            self._transports[transport.id] = transport
        self._refresh()

    def clone(self) -> "TransportDispatcher":
        return TransportDispatcher(self._transports.values())

    # =========================================================================
    # Delivery
    # =========================================================================

    def dispatch(self, record: LogRecord, accept: Callable[[Transport], bool]) -> int:
        """Deliver record to every enabled transport accepted by accept.

        Returns:
            Number of transports the record was handed to.
        """
        single = self._single
        if single is not None:
            if not single.enabled or not accept(single):
                return 0
            awaitable = self._deliver(single, record)
            if awaitable is not None:
                self._schedule([(single.id, awaitable)])
            self._records_dispatched += 1
            return 1

        targets = [transport for transport in self._transports.values() if transport.enabled and accept(transport)]
        in_flight: list[tuple[str, Awaitable[Any]]] = []
        for transport in targets:
            awaitable = self._deliver(transport, record)
            if awaitable is not None:
                in_flight.append((transport.id, awaitable))
        if in_flight:
            self._schedule(in_flight)
        if targets:
            self._records_dispatched += 1
        return len(targets)

    def _deliver(self, transport: Transport, record: LogRecord) -> Awaitable[Any] | None:
        try:
            result = transport.emit(record)
        except Exception as e:
            self._record_failure(transport.id, e)
            return None
        if result is not None and inspect.isawaitable(result):
            return result
        return None

    def _schedule(self, in_flight: list[tuple[str, Awaitable[Any]]]) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            loop = None

        if loop is None:
            # One event loop for the whole emission so transports run concurrently
            results = asyncio.run(_drive_all([awaitable for _, awaitable in in_flight]))
            for (transport_id, _), result in zip(in_flight, results, strict=True):
                if isinstance(result, BaseException):
                    self._record_failure(transport_id, result)
            return

        for transport_id, awaitable in in_flight:
            task = asyncio.ensure_future(awaitable)
            self._pending.add(task)
            task.add_done_callback(partial(self._on_delivery_done, transport_id))

    def _on_delivery_done(self, transport_id: str, task: "asyncio.Future[Any]") -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            self._record_failure(transport_id, error)

    def _record_failure(self, transport_id: str, error: BaseException) -> None:
        self._transport_failures[transport_id] = self._transport_failures.get(transport_id, 0) + 1
        logger.warning(
            "Transport emit failed",
            transport=transport_id,
            error=str(error),
            error_type=type(error).__name__,
        )

    def track(self, future: "asyncio.Future[Any]") -> None:
        """Track an outstanding emission (e.g. pending lazy resolution) for flush().

        A failure nobody awaits is retrieved and logged here.
        """
        self._pending.add(future)
        future.add_done_callback(self._on_tracked_done)

    def _on_tracked_done(self, future: "asyncio.Future[Any]") -> None:
        self._pending.discard(future)
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.warning(
                "Pending emission failed",
                error=str(error),
                error_type=type(error).__name__,
            )

    # =========================================================================
    # Health and lifecycle
    # =========================================================================

    @property
    def health_metrics(self) -> dict[str, Any]:
        """Snapshot of dispatch health.

        - records_dispatched: records handed to at least one transport
        - transport_failures: per-transport failure counts
        - pending_deliveries: asynchronous deliveries not yet finished
        """
        return {
            "records_dispatched": self._records_dispatched,
            "transport_failures": self._transport_failures.copy(),
            "pending_deliveries": len(self._pending),
        }

    async def flush(self) -> None:
        """Wait for pending deliveries, then flush transports that support it.

        Failures are logged, never raised.
        """
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

        for transport in self._transports.values():
            flush = getattr(transport, "flush", None)
            if not callable(flush):
                continue
            try:
                result = flush()
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.warning("Transport flush failed", transport=transport.id, error=str(e))

    def close(self) -> None:
        """Close every registered transport. Close failures are logged."""
        logger.debug("Transport dispatcher closing", **self.health_metrics)
        for transport in self._transports.values():
            self._close_transport(transport)

    def _close_transport(self, transport: Transport) -> None:
        close = getattr(transport, "close", None)
        if not callable(close):
            return
        try:
            close()
        except Exception as e:
            logger.warning("Transport close failed", transport=transport.id, error=str(e))
