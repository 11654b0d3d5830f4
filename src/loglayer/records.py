# src/loglayer/records.py
"""Emission record and plugin hook parameter types.

A LogRecord is ephemeral: created per emission after composition and all
emission-level hooks, handed to every eligible transport, then dropped.
Every eligible transport for one emission receives the identical record.

The *Params dataclasses are the inputs to plugin hooks. They carry the
resolved (never lazy) context and metadata plus the raw error so plugins
can introspect what the caller supplied.
"""

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from loglayer.levels import LogLevel


@dataclass(frozen=True, slots=True)
class LogRecord:
    """Normalized emission delivered to transports.

    Attributes:
        log_level: Final level (after transform_log_level)
        messages: Message arguments (after on_before_message_out)
        data: Composed context/metadata/error payload, None if there is none
        has_data: True if data should be rendered
        error: Raw error attached to the call, if any
        metadata: Resolved per-call metadata, if any
        context: Resolved context used for this emission
        groups: Group tags in effect, None if untagged
    """

    log_level: LogLevel
    messages: tuple[Any, ...]
    data: dict[str, Any] | None
    has_data: bool
    error: Any = None
    metadata: Mapping[str, Any] | None = None
    context: Mapping[str, Any] | None = None
    groups: tuple[str, ...] | None = None


@dataclass(frozen=True, slots=True)
class BeforeDataOutParams:
    data: dict[str, Any] | None
    log_level: LogLevel
    metadata: Mapping[str, Any] | None
    error: Any
    context: Mapping[str, Any] | None


@dataclass(frozen=True, slots=True)
class BeforeMessageOutParams:
    messages: list[Any]
    log_level: LogLevel


@dataclass(frozen=True, slots=True)
class TransformLogLevelParams:
    log_level: LogLevel
    data: dict[str, Any] | None
    messages: tuple[Any, ...]
    metadata: Mapping[str, Any] | None
    error: Any
    context: Mapping[str, Any] | None


@dataclass(frozen=True, slots=True)
class ShouldSendParams:
    messages: tuple[Any, ...]
    data: dict[str, Any] | None
    log_level: LogLevel
    transport_id: str
    groups: tuple[str, ...] | None
    metadata: Mapping[str, Any] | None
    error: Any
    context: Mapping[str, Any] | None
