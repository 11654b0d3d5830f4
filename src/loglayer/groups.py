# src/loglayer/groups.py
"""Group-based transport routing.

A group binds a set of transport ids (and an optional minimum level) to
emissions tagged with the group's name:

    router = GroupRouter({"db": GroupDefinition(transports={"t1"}, level="warn")})
    router.is_eligible("t1", LogLevel.ERROR, ("db",))   # True
    router.is_eligible("t2", LogLevel.ERROR, ("db",))   # False

Eligibility rules for one transport and one emission:

1. Routing off (no groups mapping given and none added since): every
   transport is eligible. An explicitly empty mapping keeps routing on.
2. No tags, or only tags naming undefined groups: the emission is
   "ungrouped" and the ungrouped behavior decides ("all", "none", or an
   explicit list of transport ids).
3. Otherwise the transport is eligible iff at least one tag names a group
   that is defined, enabled, inside the active-group allow-list (if one is
   set), whose minimum level (if any) the emission level satisfies, and whose
   transports include the transport id.

Undefined tags never contribute transports. Once any defined tag is present
the emission is "grouped" and does not fall back to ungrouped routing.

Sharing:
    A GroupRouter is shared by reference between a logger and its children.
    Runtime changes (add/remove/enable/disable/set level/active groups) are
    visible to every logger sharing it from the next emission on.
"""

from collections.abc import Iterable, Mapping, Sequence
from typing import Any, Literal

from pydantic import BaseModel

from loglayer.diagnostics import get_logger
from loglayer.levels import LOG_LEVEL_PRIORITY, LogLevel

logger = get_logger(__name__)

UngroupedBehavior = Literal["all", "none"] | Sequence[str]


class GroupDefinition(BaseModel):
    """Routing rule for one group.

    Attributes:
        transports: Ids of transports that receive emissions tagged with the group
        level: Minimum level for the group, None for no minimum
        enabled: Disabled groups never route anything
    """

    model_config = {"frozen": True}

    transports: frozenset[str]
    level: LogLevel | None = None
    enabled: bool = True


def parse_group_filter(value: str | None) -> tuple[list[str], dict[str, LogLevel]]:
    """Parse a ``name[:level][,name[:level]...]`` filter string.

    Returns:
        (active_names, level_overrides). Empty entries are skipped. An entry
        with an unknown level still activates the group but does not
        override its level.

    Example:
        >>> parse_group_filter("db:warn, auth")
        (['db', 'auth'], {'db': <LogLevel.WARN: 'warn'>})
    """
    names: list[str] = []
    levels: dict[str, LogLevel] = {}
    if not value:
        return names, levels

    for raw_entry in value.split(","):
        entry = raw_entry.strip()
        if not entry:
            continue
        name, sep, level_text = entry.partition(":")
        name = name.strip()
        if not name:
            continue
        names.append(name)
        if not sep:
            continue
        try:
            levels[name] = LogLevel(level_text.strip().lower())
        except ValueError:
            logger.warning("Ignoring unknown level in group filter", group=name, level=level_text)
    return names, levels


def merge_groups(assigned: Sequence[str] | None, per_call: Sequence[str] | None) -> tuple[str, ...] | None:
    """Union of logger-level and per-call group tags, first occurrence order."""
    if not assigned and not per_call:
        return None
    return tuple(dict.fromkeys([*(assigned or ()), *(per_call or ())]))


def _coerce_definition(definition: GroupDefinition | Mapping[str, Any]) -> GroupDefinition:
    if isinstance(definition, GroupDefinition):
        return definition
    return GroupDefinition.model_validate(definition)


class GroupRouter:
    """Mutable routing rule set deciding which transports receive an emission."""

    def __init__(
        self,
        groups: Mapping[str, GroupDefinition | Mapping[str, Any]] | None = None,
        *,
        active_groups: Iterable[str] | None = None,
        ungrouped: UngroupedBehavior = "all",
    ) -> None:
        self._groups: dict[str, GroupDefinition] = {
            name: _coerce_definition(definition) for name, definition in (groups or {}).items()
        }
        self._configured = groups is not None
        self._active: frozenset[str] | None = frozenset(active_groups) if active_groups is not None else None
        self._ungrouped: Literal["all", "none"] | frozenset[str] = (
            ungrouped if isinstance(ungrouped, str) else frozenset(ungrouped)
        )

    # =========================================================================
    # Runtime mutation
    # =========================================================================

    def add_group(self, name: str, definition: GroupDefinition | Mapping[str, Any]) -> None:
        """Add or replace a group definition."""
        self._groups[name] = _coerce_definition(definition)

    def remove_group(self, name: str) -> None:
        self._groups.pop(name, None)

    def enable_group(self, name: str) -> None:
        """Set enabled=True. Unknown names are ignored."""
        if name in self._groups:
            self._groups[name] = self._groups[name].model_copy(update={"enabled": True})

    def disable_group(self, name: str) -> None:
        """Set enabled=False. Unknown names are ignored."""
        if name in self._groups:
            self._groups[name] = self._groups[name].model_copy(update={"enabled": False})

    def set_group_level(self, name: str, level: LogLevel | str | None) -> None:
        """Set (or with None, clear) a group's minimum level. Unknown names are ignored."""
        if name in self._groups:
            new_level = LogLevel(level) if level is not None else None
            self._groups[name] = self._groups[name].model_copy(update={"level": new_level})

    def set_active_groups(self, groups: Iterable[str] | None) -> None:
        """Restrict routing to the named groups. None removes the restriction."""
        self._active = frozenset(groups) if groups is not None else None

    def apply_filter(self, value: str | None) -> None:
        """Apply a ``name[:level],...`` filter string.

        Replaces the active-group allow-list with the named groups and
        overrides the level of each named group that is defined. An empty or
        None value changes nothing.
        """
        names, levels = parse_group_filter(value)
        if not names:
            return
        for name, level in levels.items():
            self.set_group_level(name, level)
        self._active = frozenset(names)

    # =========================================================================
    # Snapshots
    # =========================================================================

    @property
    def has_groups(self) -> bool:
        return bool(self._groups)

    @property
    def routing_enabled(self) -> bool:
        """False only when no groups mapping was configured and none has been added."""
        return self._configured or bool(self._groups)

    @property
    def active_groups(self) -> frozenset[str] | None:
        return self._active

    @property
    def ungrouped(self) -> Literal["all", "none"] | frozenset[str]:
        return self._ungrouped

    def get_groups(self) -> dict[str, GroupDefinition]:
        """Snapshot of all definitions. Mutating it does not affect routing."""
        return dict(self._groups)

    # =========================================================================
    # Routing
    # =========================================================================

    def _ungrouped_allows(self, transport_id: str) -> bool:
        if self._ungrouped == "all":
            return True
        if self._ungrouped == "none":
            return False
        return transport_id in self._ungrouped

    def is_eligible(self, transport_id: str, level: LogLevel, tags: Sequence[str] | None) -> bool:
        """Decide whether transport_id receives an emission at level tagged with tags."""
        if not self.routing_enabled:
            return True
        if not tags:
            return self._ungrouped_allows(transport_id)

        level_priority = LOG_LEVEL_PRIORITY[level]
        any_defined = False
        for tag in tags:
            definition = self._groups.get(tag)
            if definition is None:
                continue
            any_defined = True
            if not definition.enabled:
                continue
            if self._active is not None and tag not in self._active:
                continue
            if definition.level is not None and level_priority < LOG_LEVEL_PRIORITY[definition.level]:
                continue
            if transport_id in definition.transports:
                return True

        if not any_defined:
            return self._ungrouped_allows(transport_id)
        return False
