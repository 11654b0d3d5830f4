# tests/test_groups.py
"""Tests for group routing and the group filter string parser."""

import pytest
from pydantic import ValidationError

from loglayer.groups import GroupDefinition, GroupRouter, merge_groups, parse_group_filter
from loglayer.levels import LogLevel


@pytest.fixture
def router() -> GroupRouter:
    return GroupRouter(
        {
            "db": GroupDefinition(transports=frozenset({"t1"}), level=LogLevel.WARN),
            "auth": {"transports": ["t2"]},
        }
    )


class TestParseGroupFilter:
    def test_names_and_levels(self) -> None:
        names, levels = parse_group_filter("db:warn, auth")
        assert names == ["db", "auth"]
        assert levels == {"db": LogLevel.WARN}

    def test_empty_entries_skipped(self) -> None:
        assert parse_group_filter(" , db,, ") == (["db"], {})

    def test_empty_or_none(self) -> None:
        assert parse_group_filter("") == ([], {})
        assert parse_group_filter(None) == ([], {})

    def test_level_is_case_insensitive(self) -> None:
        assert parse_group_filter("db:ERROR") == (["db"], {"db": LogLevel.ERROR})

    def test_unknown_level_still_activates_group(self) -> None:
        assert parse_group_filter("db:loud") == (["db"], {})


class TestMergeGroups:
    def test_union_in_first_occurrence_order(self) -> None:
        assert merge_groups(["a", "b"], ["b", "c"]) == ("a", "b", "c")

    def test_none_when_both_empty(self) -> None:
        assert merge_groups(None, None) is None
        assert merge_groups((), []) is None


class TestGroupDefinition:
    def test_is_frozen(self) -> None:
        definition = GroupDefinition(transports=frozenset({"t1"}))
        with pytest.raises(ValidationError):
            definition.enabled = False  # type: ignore[misc]

    def test_rejects_unknown_level(self) -> None:
        with pytest.raises(ValidationError):
            GroupDefinition(transports=frozenset(), level="loud")  # type: ignore[arg-type]


class TestGroupRouter:
    def test_no_definitions_routes_everything(self) -> None:
        router = GroupRouter()
        assert router.is_eligible("anything", LogLevel.TRACE, ("db",))
        assert router.is_eligible("anything", LogLevel.TRACE, None)

    def test_empty_mapping_keeps_routing_on(self) -> None:
        router = GroupRouter({}, ungrouped="none")
        assert router.routing_enabled
        assert not router.is_eligible("t1", LogLevel.INFO, None)

    def test_adding_a_group_turns_routing_on(self) -> None:
        router = GroupRouter(ungrouped="none")
        assert not router.routing_enabled
        router.add_group("db", {"transports": ["t1"]})
        assert router.routing_enabled
        assert not router.is_eligible("t1", LogLevel.INFO, None)

    def test_tagged_emission_goes_only_to_group_transports(self, router: GroupRouter) -> None:
        assert router.is_eligible("t1", LogLevel.ERROR, ("db",))
        assert not router.is_eligible("t2", LogLevel.ERROR, ("db",))

    def test_group_level_threshold(self, router: GroupRouter) -> None:
        assert not router.is_eligible("t1", LogLevel.INFO, ("db",))
        assert router.is_eligible("t1", LogLevel.WARN, ("db",))

    def test_any_matching_tag_is_enough(self, router: GroupRouter) -> None:
        assert router.is_eligible("t2", LogLevel.INFO, ("db", "auth"))
        assert not router.is_eligible("t1", LogLevel.INFO, ("db", "auth"))

    def test_untagged_follows_ungrouped_all(self, router: GroupRouter) -> None:
        assert router.is_eligible("t1", LogLevel.INFO, None)
        assert router.is_eligible("t3", LogLevel.INFO, ())

    def test_undefined_tags_only_count_as_ungrouped(self, router: GroupRouter) -> None:
        assert router.is_eligible("t3", LogLevel.INFO, ("nope",))

    def test_undefined_tag_beside_defined_tag_adds_nothing(self, router: GroupRouter) -> None:
        assert not router.is_eligible("t3", LogLevel.ERROR, ("db", "nope"))

    def test_ungrouped_none(self) -> None:
        router = GroupRouter({"db": {"transports": ["t1"]}}, ungrouped="none")
        assert not router.is_eligible("t1", LogLevel.INFO, None)

    def test_ungrouped_explicit_list(self) -> None:
        router = GroupRouter({"db": {"transports": ["t1"]}}, ungrouped=["t2"])
        assert router.is_eligible("t2", LogLevel.INFO, None)
        assert not router.is_eligible("t1", LogLevel.INFO, None)
        assert router.ungrouped == frozenset({"t2"})

    def test_disabled_group_routes_nothing(self, router: GroupRouter) -> None:
        router.disable_group("db")
        assert not router.is_eligible("t1", LogLevel.FATAL, ("db",))
        router.enable_group("db")
        assert router.is_eligible("t1", LogLevel.FATAL, ("db",))

    def test_active_groups_allow_list(self, router: GroupRouter) -> None:
        router.set_active_groups(["auth"])
        assert not router.is_eligible("t1", LogLevel.FATAL, ("db",))
        assert router.is_eligible("t2", LogLevel.INFO, ("auth",))
        router.set_active_groups(None)
        assert router.is_eligible("t1", LogLevel.FATAL, ("db",))

    def test_set_group_level(self, router: GroupRouter) -> None:
        router.set_group_level("db", None)
        assert router.is_eligible("t1", LogLevel.TRACE, ("db",))
        router.set_group_level("db", "error")
        assert not router.is_eligible("t1", LogLevel.WARN, ("db",))
        router.set_group_level("missing", "error")
        assert "missing" not in router.get_groups()

    def test_add_and_remove_group(self, router: GroupRouter) -> None:
        router.add_group("cache", {"transports": ["t3"]})
        assert router.is_eligible("t3", LogLevel.INFO, ("cache",))
        router.remove_group("cache")
        assert router.is_eligible("t3", LogLevel.INFO, ("cache",))  # now undefined, so ungrouped

    def test_apply_filter_sets_active_and_levels(self, router: GroupRouter) -> None:
        router.apply_filter("auth:error")
        assert router.active_groups == frozenset({"auth"})
        assert router.get_groups()["auth"].level == LogLevel.ERROR
        assert not router.is_eligible("t2", LogLevel.WARN, ("auth",))
        assert not router.is_eligible("t1", LogLevel.FATAL, ("db",))

    def test_apply_empty_filter_changes_nothing(self, router: GroupRouter) -> None:
        router.apply_filter("")
        assert router.active_groups is None

    def test_get_groups_is_a_snapshot(self, router: GroupRouter) -> None:
        snapshot = router.get_groups()
        snapshot.clear()
        assert router.has_groups
