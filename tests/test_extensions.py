# tests/test_extensions.py
"""Tests for extension bundles and their registry."""

from typing import Any

import pytest

from loglayer import Extension, ExtensionError, ExtensionRegistry, LogLayer, LogLayerConfig, LogLevel, plugin
from tests.conftest import RecordingTransport


def _timing(log: LogLayer, name: str, ms: float) -> None:
    log.with_metadata({"timer": name, "ms": ms}).info("timing")


class TestExtension:
    def test_empty_name_rejected(self) -> None:
        with pytest.raises(ExtensionError):
            Extension(name="")

    def test_private_method_names_rejected(self) -> None:
        with pytest.raises(ExtensionError, match="must not start with"):
            Extension(name="x", methods={"_hidden": _timing})

    def test_non_callable_method_rejected(self) -> None:
        with pytest.raises(ExtensionError, match="not callable"):
            Extension(name="x", methods={"oops": 42})  # type: ignore[dict-item]


class TestExtensionRegistry:
    def test_duplicate_names_rejected(self) -> None:
        registry = ExtensionRegistry([Extension(name="metrics")])
        with pytest.raises(ExtensionError):
            registry.register(Extension(name="metrics"))

    def test_lookup(self) -> None:
        metrics = Extension(name="metrics")
        registry = ExtensionRegistry([metrics, Extension(name="audit")])

        assert registry.get("metrics") is metrics
        assert registry.names == ["metrics", "audit"]
        assert "audit" in registry
        assert len(registry) == 2
        with pytest.raises(ExtensionError, match="Unknown extension"):
            registry.get("tracing")

    def test_plugins_in_registration_order(self) -> None:
        first, second, third = plugin("1"), plugin("2"), plugin("3")
        registry = ExtensionRegistry(
            [Extension(name="a", plugins=(first, second)), Extension(name="b", plugins=(third,))]
        )
        assert registry.plugins() == [first, second, third]


class TestBoundExtension:
    def test_methods_receive_the_logger(self, transport: RecordingTransport) -> None:
        log = LogLayer(
            LogLayerConfig(transport=transport),
            extensions=[Extension(name="metrics", methods={"timing": _timing})],
        )

        log.extension("metrics").timing("db.query", 12.5)

        assert transport.last.data == {"timer": "db.query", "ms": 12.5}

    def test_children_bind_to_themselves(self, transport: RecordingTransport) -> None:
        log = LogLayer(
            LogLayerConfig(transport=transport),
            extensions=[Extension(name="metrics", methods={"timing": _timing})],
        )
        child = log.with_prefix("[child]")

        child.extension("metrics").timing("t", 1)

        assert transport.last.messages == ("[child] timing",)

    def test_unknown_method(self) -> None:
        log = LogLayer(extensions=[Extension(name="metrics", methods={"timing": _timing})])
        bound = log.extension("metrics")
        assert bound.name == "metrics"
        assert "timing" in dir(bound)
        with pytest.raises(AttributeError):
            bound.missing

    def test_unknown_extension(self, log: LogLayer) -> None:
        with pytest.raises(ExtensionError):
            log.extension("metrics")

    def test_extension_plugins_run_after_configured_plugins(self, transport: RecordingTransport) -> None:
        order: list[str] = []

        def mark(name: str) -> Any:
            return lambda params, _: order.append(name)

        log = LogLayer(
            LogLayerConfig(transport=transport, plugins=[plugin("configured", on_before_data_out=mark("configured"))]),
            extensions=[Extension(name="ext", plugins=(plugin("bundled", on_before_data_out=mark("bundled")),))],
        )
        log.info("x")
        assert order == ["configured", "bundled"]

    def test_on_construct_runs_once_for_root(self, transport: RecordingTransport) -> None:
        constructed: list[tuple[LogLayer, LogLayerConfig]] = []

        def quiet_by_default(log: LogLayer, config: LogLayerConfig) -> None:
            constructed.append((log, config))
            log.set_level(LogLevel.WARN)

        config = LogLayerConfig(transport=transport)
        log = LogLayer(config, extensions=ExtensionRegistry([Extension(name="quiet", on_construct=quiet_by_default)]))
        log.child().info("dropped")

        assert constructed == [(log, config)]
        assert transport.records == []
