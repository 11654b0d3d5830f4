# src/loglayer/composer.py
"""Record composition: merge context, metadata and error into one payload.

Merge order is context, then metadata, then the error field. Each of
context and metadata is either spread at the root or nested under its
configured field name.

Field-name rules:
- context_field_name == metadata_field_name: both land in ONE nested
  object, metadata keys winning on collision (no double nesting)
- error_field_in_metadata with a metadata_field_name: the serialized error
  goes inside the metadata namespace, creating it if absent
- otherwise the serialized error goes to a top-level error_field_name

Muting suppresses inclusion only; the stored context stays queryable.
"""

from collections.abc import Callable, Mapping
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from loglayer.config import LogLayerConfig


def _identity(error: Any) -> Any:
    return error


class RecordComposer:
    """Builds the data payload for one emission.

    Instances are immutable snapshots of the field configuration; LogLayer
    rebuilds its composer whenever the relevant config changes.
    """

    def __init__(
        self,
        *,
        context_field_name: str | None = None,
        metadata_field_name: str | None = None,
        error_field_name: str = "err",
        error_field_in_metadata: bool = False,
        error_serializer: Callable[[Any], Any] | None = None,
        mute_context: bool = False,
        mute_metadata: bool = False,
    ) -> None:
        self._context_field_name = context_field_name
        self._metadata_field_name = metadata_field_name
        self._error_field_name = error_field_name
        self._error_field_in_metadata = error_field_in_metadata
        self._serialize_error = error_serializer or _identity
        self._mute_context = mute_context
        self._mute_metadata = mute_metadata

    @classmethod
    def from_config(cls, config: "LogLayerConfig") -> "RecordComposer":
        return cls(
            context_field_name=config.context_field_name,
            metadata_field_name=config.metadata_field_name,
            error_field_name=config.error_field_name,
            error_field_in_metadata=config.error_field_in_metadata,
            error_serializer=config.error_serializer,
            mute_context=config.mute_context,
            mute_metadata=config.mute_metadata,
        )

    def compose(
        self,
        context: Mapping[str, Any] | None,
        metadata: Mapping[str, Any] | None,
        error: Any = None,
    ) -> dict[str, Any] | None:
        """Return the merged payload, or None when there is nothing to emit."""
        context_data = {} if self._mute_context or not context else dict(context)
        metadata_data = {} if self._mute_metadata or not metadata else dict(metadata)
        context_field = self._context_field_name
        metadata_field = self._metadata_field_name

        data: dict[str, Any] = {}
        if context_field and context_field == metadata_field:
            if context_data or metadata_data:
                data[context_field] = {**context_data, **metadata_data}
        else:
            if context_data:
                if context_field:
                    data[context_field] = context_data
                else:
                    data.update(context_data)
            if metadata_data:
                if metadata_field:
                    data[metadata_field] = metadata_data
                else:
                    data.update(metadata_data)

        if error is not None:
            serialized = self._serialize_error(error)
            if self._error_field_in_metadata and metadata_field:
                namespace = data.get(metadata_field)
                if isinstance(namespace, dict):
                    data[metadata_field] = {**namespace, self._error_field_name: serialized}
                else:
                    data[metadata_field] = {self._error_field_name: serialized}
            else:
                data[self._error_field_name] = serialized

        return data or None
