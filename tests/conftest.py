# tests/conftest.py
"""Shared test fixtures and helpers.

Test doubles:
- RecordingTransport: in-memory transport capturing LogRecords, with
  assertion helpers and close/flush counters
- FailingTransport: transport whose emit() always raises

Hypothesis Configuration:
- "ci" profile: Fast tests for CI (100 examples) - default
- "nightly" profile: Thorough tests (1000 examples)
- "debug" profile: Minimal tests with verbose output (10 examples)

Set profile via environment variable:
    HYPOTHESIS_PROFILE=nightly pytest tests/
"""

import os
from collections.abc import Callable
from typing import Any

import pytest
from hypothesis import Phase, Verbosity, settings

from loglayer import LogLayer, LogLayerConfig, LogRecord, TestLoggingLibrary, TestTransport


class RecordingTransport:
    """In-memory transport that captures every record it receives.

    Example:
        transport = RecordingTransport("t1")
        log = LogLayer(transport=transport)
        log.info("hello")
        transport.assert_received(messages=("hello",))
    """

    def __init__(self, id: str = "recording", *, enabled: bool = True) -> None:
        self.id = id
        self.enabled = enabled
        self.records: list[LogRecord] = []
        self.close_count = 0
        self.flush_count = 0

    def emit(self, record: LogRecord) -> None:
        self.records.append(record)

    def flush(self) -> None:
        self.flush_count += 1

    def close(self) -> None:
        self.close_count += 1

    @property
    def last(self) -> LogRecord:
        assert self.records, f"transport {self.id!r} received no records"
        return self.records[-1]

    def assert_received(self, **expected: Any) -> LogRecord:
        """Assert that some record matches every given attribute."""
        for record in self.records:
            if all(getattr(record, key) == value for key, value in expected.items()):
                return record
        raise AssertionError(f"No record matching {expected} in {self.records!r}")


class FailingTransport(RecordingTransport):
    def emit(self, record: LogRecord) -> None:
        raise RuntimeError(f"{self.id} is down")


@pytest.fixture
def make_transport() -> Callable[..., RecordingTransport]:
    def _make(id: str = "recording", *, enabled: bool = True) -> RecordingTransport:
        return RecordingTransport(id, enabled=enabled)

    return _make


@pytest.fixture
def make_failing_transport() -> Callable[..., FailingTransport]:
    def _make(id: str = "failing") -> FailingTransport:
        return FailingTransport(id)

    return _make


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport("t1")


@pytest.fixture
def log(transport: RecordingTransport) -> LogLayer:
    return LogLayer(LogLayerConfig(transport=transport))


@pytest.fixture
def library() -> TestLoggingLibrary:
    return TestLoggingLibrary()


@pytest.fixture
def library_log(library: TestLoggingLibrary) -> LogLayer:
    """LogLayer wired to a TestTransport (data-first argument lists)."""
    return LogLayer(LogLayerConfig(transport=TestTransport(id="test", logger=library)))


# =============================================================================
# Hypothesis Configuration
# =============================================================================

settings.register_profile(
    "ci",
    max_examples=100,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "nightly",
    max_examples=1000,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.register_profile(
    "debug",
    max_examples=10,
    verbosity=Verbosity.verbose,
    phases=[Phase.explicit, Phase.reuse, Phase.generate, Phase.shrink],
    deadline=None,
)

settings.load_profile(os.getenv("HYPOTHESIS_PROFILE", "ci"))
