# tests/test_context.py
"""Tests for the per-logger ContextManager."""

from loglayer.context import ContextManager


class TestContextManager:
    def test_append_is_right_biased(self) -> None:
        manager = ContextManager()
        manager.append_context({"a": 1, "b": 1})
        manager.append_context({"b": 2, "c": 3})
        assert manager.get_context() == {"a": 1, "b": 2, "c": 3}

    def test_set_context_replaces(self) -> None:
        manager = ContextManager({"a": 1})
        manager.set_context({"b": 2})
        assert manager.get_context() == {"b": 2}
        manager.set_context(None)
        assert not manager.has_context_data()

    def test_clear_all_or_selected_keys(self) -> None:
        manager = ContextManager({"a": 1, "b": 2, "c": 3})
        manager.clear_context("a")
        assert manager.get_context() == {"b": 2, "c": 3}
        manager.clear_context(["b", "missing"])
        assert manager.get_context() == {"c": 3}
        manager.clear_context()
        assert manager.get_context() == {}

    def test_snapshot_is_not_mutated_by_later_writes(self) -> None:
        manager = ContextManager({"a": 1})
        snapshot = manager.get_context()
        manager.append_context({"b": 2})
        assert snapshot == {"a": 1}

    def test_clone_is_independent(self) -> None:
        parent = ContextManager({"shared": True})
        child = parent.clone()

        child.append_context({"child": 1})
        parent.append_context({"parent": 1})

        assert child.get_context() == {"shared": True, "child": 1}
        assert parent.get_context() == {"shared": True, "parent": 1}
