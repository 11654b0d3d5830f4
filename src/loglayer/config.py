# src/loglayer/config.py
"""Configuration models for LogLayer.

LogLayerConfig holds the construction options of a LogLayer instance. It is
frozen; runtime toggles (mute_context, with_prefix on a child, ...) produce
a new copy via model_copy(update=...).

LogLayerSettings / TransportSettings describe a logger declaratively (by
registered transport name plus options) for loglayer.factory. They can be
loaded from YAML with environment overrides via load_settings().
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

from loglayer.groups import GroupDefinition
from loglayer.levels import LogLevel
from loglayer.transports.base import Transport

# Environment variable read by the factory when no group_filter is configured
GROUP_FILTER_ENV_VAR = "LOGLAYER_GROUPS"


class LogLayerConfig(BaseModel):
    """Construction options for a LogLayer instance.

    Field-name conflicts (context_field_name == metadata_field_name) are not
    errors: both are merged into one nested object, metadata winning.
    """

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    enabled: bool = Field(default=True, description="Initial global logging flag")
    level: LogLevel = Field(default=LogLevel.TRACE, description="Initial minimum level")
    prefix: str | None = Field(default=None, description="Prepended to a leading string message")
    error_field_name: str = Field(default="err", description="Field holding the serialized error")
    error_serializer: Callable[[Any], Any] | None = Field(
        default=None,
        description="Converts an error before it is placed in the data payload (identity if unset)",
    )
    copy_msg_on_only_error: bool = Field(
        default=False,
        description="error_only() copies the error message into the log messages",
    )
    context_field_name: str | None = Field(default=None, description="Nest context under this field")
    metadata_field_name: str | None = Field(default=None, description="Nest metadata under this field")
    error_field_in_metadata: bool = Field(default=False, description="Place the error inside the metadata field")
    mute_context: bool = False
    mute_metadata: bool = False
    console_debug: bool = Field(default=False, description="Emit diagnostics for dropped inputs")
    groups: dict[str, GroupDefinition] | None = Field(
        default=None,
        description="Group definitions. Any mapping, even an empty one, turns group routing on",
    )
    active_groups: list[str] | None = Field(default=None, description="Group allow-list, None allows all")
    ungrouped: Literal["all", "none"] | list[str] = Field(
        default="all",
        description="Routing for emissions without a defined group tag",
    )
    group_filter: str | None = Field(
        default=None,
        description="'name[:level],...' string restricting active groups and overriding levels",
    )
    plugins: list[Any] = Field(default_factory=list)
    transport: list[Any] = Field(default_factory=list, description="One transport or a list of transports")

    @field_validator("error_field_name")
    @classmethod
    def validate_error_field_name(cls, v: str) -> str:
        if not v:
            raise ValueError("error_field_name must not be empty")
        return v

    @field_validator("transport", mode="before")
    @classmethod
    def normalize_transport(cls, v: Any) -> list[Any]:
        if v is None:
            return []
        if isinstance(v, list | tuple):
            return list(v)
        return [v]

    @field_validator("transport")
    @classmethod
    def validate_transport(cls, v: list[Any]) -> list[Any]:
        for transport in v:
            if not isinstance(transport, Transport):
                raise ValueError(f"{type(transport).__name__} does not provide id, enabled and emit()")
        return v


class ErrorOnlyOptions(BaseModel):
    """Options for LogLayer.error_only().

    copy_msg=None defers to LogLayerConfig.copy_msg_on_only_error.
    """

    model_config = {"frozen": True}

    log_level: LogLevel = LogLevel.ERROR
    copy_msg: bool | None = None


class RawLogEntry(BaseModel):
    """A fully specified entry for LogLayer.raw().

    context, when given (even empty), replaces the stored context for this
    one emission.
    """

    model_config = {"frozen": True, "arbitrary_types_allowed": True}

    log_level: LogLevel
    messages: list[Any] = Field(default_factory=list)
    metadata: dict[str, Any] | None = None
    error: Any = None
    context: dict[str, Any] | None = None
    groups: list[str] | None = None


class TransportSettings(BaseModel):
    """One transport, by registered name plus constructor options."""

    model_config = {"frozen": True}

    name: str = Field(description="Registered transport name (console, logging, structlog, ...)")
    options: dict[str, Any] = Field(default_factory=dict, description="Transport constructor keyword arguments")


class LogLayerSettings(BaseModel):
    """Declarative logger description consumed by loglayer.factory.create_log_layer()."""

    model_config = {"frozen": True}

    enabled: bool = True
    level: LogLevel = LogLevel.TRACE
    prefix: str | None = None
    error_field_name: str = "err"
    copy_msg_on_only_error: bool = False
    context_field_name: str | None = None
    metadata_field_name: str | None = None
    error_field_in_metadata: bool = False
    mute_context: bool = False
    mute_metadata: bool = False
    console_debug: bool = False
    groups: dict[str, GroupDefinition] | None = None
    active_groups: list[str] | None = None
    ungrouped: Literal["all", "none"] | list[str] = "all"
    group_filter: str | None = None
    transports: list[TransportSettings] = Field(default_factory=list)
    extensions: list[str] = Field(default_factory=list, description="Names of discovered extensions to enable")


def load_settings(config_path: Path) -> LogLayerSettings:
    """Load settings from a YAML file with environment variable overrides.

    Uses Dynaconf with precedence:
    1. Environment variables (LOGLAYER_CONFIG_*) - highest priority
    2. Config file
    3. Defaults from the pydantic schema - lowest priority

    Raises:
        ValidationError: If configuration fails pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="LOGLAYER_CONFIG",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    # Dynaconf returns uppercase keys; convert to lowercase for pydantic.
    # The prefix keeps LOGLAYER_GROUPS (the group filter) out of the settings.
    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k.lower(): v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}
    return LogLayerSettings(**raw_config)
