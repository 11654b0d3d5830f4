# tests/test_dispatch.py
"""Tests for TransportDispatcher.

Covers:
- single-transport fast path and multi-transport fan-out
- per-transport failure isolation and failure counting
- registry replace/remove semantics (old transports are closed)
- asynchronous emit() results, with and without a running loop
- flush() and close()
"""

import asyncio
from unittest.mock import patch

import pytest
from structlog.testing import capture_logs

from loglayer.dispatch import TransportDispatcher
from loglayer.errors import TransportConfigurationError
from loglayer.levels import LogLevel
from loglayer.records import LogRecord
from tests.conftest import RecordingTransport

RECORD = LogRecord(log_level=LogLevel.INFO, messages=("hello",), data=None, has_data=False)


def accept_all(transport: object) -> bool:
    return True


class AsyncTransport(RecordingTransport):
    """Transport whose emit() returns a coroutine."""

    def __init__(self, id: str = "async", *, fail: bool = False) -> None:
        super().__init__(id)
        self.fail = fail

    def emit(self, record: LogRecord):  # type: ignore[override]
        async def _ship() -> None:
            await asyncio.sleep(0)
            if self.fail:
                raise ConnectionError("remote down")
            self.records.append(record)

        return _ship()


class TestRegistry:
    def test_duplicate_ids_rejected(self, make_transport) -> None:
        with pytest.raises(TransportConfigurationError):
            TransportDispatcher([make_transport("a"), make_transport("a")])

    def test_add_replaces_and_closes_previous(self, make_transport) -> None:
        old = make_transport("a")
        new = make_transport("a")
        dispatcher = TransportDispatcher([old])

        dispatcher.add([new])

        assert dispatcher.get("a") is new
        assert old.close_count == 1
        assert new.close_count == 0

    def test_re_adding_same_object_does_not_close_it(self, make_transport) -> None:
        transport = make_transport("a")
        dispatcher = TransportDispatcher([transport])
        dispatcher.add([transport])
        assert transport.close_count == 0

    def test_remove(self, make_transport) -> None:
        transport = make_transport("a")
        dispatcher = TransportDispatcher([transport, make_transport("b")])

        assert dispatcher.remove("a") is True
        assert dispatcher.remove("a") is False
        assert transport.close_count == 1
        assert dispatcher.transport_ids == ["b"]

    def test_replace_all_closes_dropped_transports(self, make_transport) -> None:
        keep = make_transport("keep")
        drop = make_transport("drop")
        dispatcher = TransportDispatcher([keep, drop])

        dispatcher.replace_all([keep, make_transport("fresh")])

        assert dispatcher.transport_ids == ["keep", "fresh"]
        assert drop.close_count == 1
        assert keep.close_count == 0

    def test_clone_shares_transports_but_not_registry(self, make_transport) -> None:
        transport = make_transport("a")
        parent = TransportDispatcher([transport])
        child = parent.clone()

        child.add([make_transport("b")])

        assert child.get("a") is transport
        assert parent.transport_ids == ["a"]


class TestDispatch:
    def test_single_transport_fast_path(self, make_transport) -> None:
        transport = make_transport("a")
        dispatcher = TransportDispatcher([transport])

        assert dispatcher.dispatch(RECORD, accept_all) == 1
        assert transport.records == [RECORD]

    def test_fan_out_delivers_identical_record(self, make_transport) -> None:
        first, second = make_transport("a"), make_transport("b")
        dispatcher = TransportDispatcher([first, second])

        assert dispatcher.dispatch(RECORD, accept_all) == 2
        assert first.last is second.last is RECORD

    def test_disabled_and_rejected_transports_skipped(self, make_transport) -> None:
        enabled, disabled, rejected = make_transport("a"), make_transport("b", enabled=False), make_transport("c")
        dispatcher = TransportDispatcher([enabled, disabled, rejected])

        delivered = dispatcher.dispatch(RECORD, lambda t: t.id != "c")

        assert delivered == 1
        assert disabled.records == []
        assert rejected.records == []

    def test_single_disabled_transport_not_consulted(self, make_transport) -> None:
        consulted = []
        dispatcher = TransportDispatcher([make_transport("a", enabled=False)])
        assert dispatcher.dispatch(RECORD, lambda t: consulted.append(t) or True) == 0
        assert consulted == []

    def test_failure_is_isolated_and_counted(self, make_transport, make_failing_transport) -> None:
        healthy = make_transport("healthy")
        dispatcher = TransportDispatcher([make_failing_transport("broken"), healthy])

        with patch("loglayer.dispatch.logger") as mock_logger:
            dispatcher.dispatch(RECORD, accept_all)

        assert healthy.records == [RECORD]
        assert dispatcher.health_metrics["transport_failures"] == {"broken": 1}
        mock_logger.warning.assert_called_once_with(
            "Transport emit failed",
            transport="broken",
            error="broken is down",
            error_type="RuntimeError",
        )

    def test_single_failing_transport_does_not_raise(self, make_failing_transport) -> None:
        dispatcher = TransportDispatcher([make_failing_transport("broken")])
        dispatcher.dispatch(RECORD, accept_all)
        assert dispatcher.health_metrics["transport_failures"] == {"broken": 1}

    def test_accept_exceptions_propagate(self, make_transport) -> None:
        dispatcher = TransportDispatcher([make_transport("a"), make_transport("b")])

        def explode(transport: object) -> bool:
            raise ValueError("hook bug")

        with pytest.raises(ValueError):
            dispatcher.dispatch(RECORD, explode)

    def test_records_dispatched_counts_delivered_records(self, make_transport) -> None:
        dispatcher = TransportDispatcher([make_transport("a"), make_transport("b")])
        dispatcher.dispatch(RECORD, accept_all)
        dispatcher.dispatch(RECORD, lambda t: False)
        assert dispatcher.health_metrics["records_dispatched"] == 1


class TestAsyncDelivery:
    def test_awaitable_driven_without_running_loop(self) -> None:
        transport = AsyncTransport()
        dispatcher = TransportDispatcher([transport])

        dispatcher.dispatch(RECORD, accept_all)

        assert transport.records == [RECORD]
        assert dispatcher.health_metrics["pending_deliveries"] == 0

    def test_awaitable_failure_without_loop_is_counted(self) -> None:
        dispatcher = TransportDispatcher([AsyncTransport(fail=True)])
        dispatcher.dispatch(RECORD, accept_all)
        assert dispatcher.health_metrics["transport_failures"] == {"async": 1}

    def test_awaitables_of_one_record_share_a_single_run_without_loop(self) -> None:
        broken, healthy = AsyncTransport("broken", fail=True), AsyncTransport("healthy")
        dispatcher = TransportDispatcher([broken, healthy, RecordingTransport("sync")])

        with patch("loglayer.dispatch.asyncio.run", wraps=asyncio.run) as run:
            assert dispatcher.dispatch(RECORD, accept_all) == 3

        run.assert_called_once()
        assert healthy.records == [RECORD]
        assert dispatcher.health_metrics["transport_failures"] == {"broken": 1}

    @pytest.mark.asyncio
    async def test_awaitable_scheduled_and_flushed_in_loop(self) -> None:
        transport = AsyncTransport()
        dispatcher = TransportDispatcher([transport, RecordingTransport("sync")])

        dispatcher.dispatch(RECORD, accept_all)
        assert transport.records == []
        assert dispatcher.health_metrics["pending_deliveries"] == 1

        await dispatcher.flush()

        assert transport.records == [RECORD]
        assert dispatcher.health_metrics["pending_deliveries"] == 0

    @pytest.mark.asyncio
    async def test_async_failure_in_loop_is_counted(self) -> None:
        dispatcher = TransportDispatcher([AsyncTransport(fail=True)])
        dispatcher.dispatch(RECORD, accept_all)
        await dispatcher.flush()
        assert dispatcher.health_metrics["transport_failures"] == {"async": 1}


class TestLifecycle:
    @pytest.mark.asyncio
    async def test_flush_calls_transport_flush(self, make_transport) -> None:
        transport = make_transport("a")
        dispatcher = TransportDispatcher([transport])
        await dispatcher.flush()
        assert transport.flush_count == 1

    @pytest.mark.asyncio
    async def test_flush_failure_is_logged(self, make_transport) -> None:
        transport = make_transport("a")

        def broken_flush() -> None:
            raise OSError("disk full")

        transport.flush = broken_flush  # type: ignore[method-assign]
        dispatcher = TransportDispatcher([transport])

        with capture_logs() as logs:
            await dispatcher.flush()

        assert any(entry["event"] == "Transport flush failed" for entry in logs)

    def test_close_closes_all_and_logs_failures(self, make_transport) -> None:
        good = make_transport("good")
        bad = make_transport("bad")

        def broken_close() -> None:
            raise OSError("already gone")

        bad.close = broken_close  # type: ignore[method-assign]
        dispatcher = TransportDispatcher([bad, good])

        with capture_logs() as logs:
            dispatcher.close()

        assert good.close_count == 1
        assert any(entry["event"] == "Transport close failed" for entry in logs)

    def test_transport_without_close_is_fine(self) -> None:
        class Minimal:
            id = "minimal"
            enabled = True

            def emit(self, record: LogRecord) -> None:
                pass

        TransportDispatcher([Minimal()]).close()  # type: ignore[list-item]


class TestTrackedEmissions:
    @pytest.mark.asyncio
    async def test_failed_tracked_emission_is_logged(self) -> None:
        async def resolve_then_fail() -> None:
            await asyncio.sleep(0)
            raise ValueError("hook bug")

        dispatcher = TransportDispatcher()
        with patch("loglayer.dispatch.logger") as mock_logger:
            dispatcher.track(asyncio.ensure_future(resolve_then_fail()))
            assert dispatcher.health_metrics["pending_deliveries"] == 1
            await dispatcher.flush()

        assert dispatcher.health_metrics["pending_deliveries"] == 0
        mock_logger.warning.assert_called_once_with(
            "Pending emission failed",
            error="hook bug",
            error_type="ValueError",
        )

    @pytest.mark.asyncio
    async def test_successful_tracked_emission_is_silent(self) -> None:
        dispatcher = TransportDispatcher()
        with patch("loglayer.dispatch.logger") as mock_logger:
            dispatcher.track(asyncio.ensure_future(asyncio.sleep(0)))
            await dispatcher.flush()
        mock_logger.warning.assert_not_called()
