# tests/test_composer.py
"""Tests for RecordComposer merge order and field-name rules."""

from loglayer.composer import RecordComposer


class TestRecordComposer:
    def test_nothing_to_emit_returns_none(self) -> None:
        assert RecordComposer().compose({}, None) is None

    def test_spreads_at_root_by_default(self) -> None:
        data = RecordComposer().compose({"a": 1, "k": "ctx"}, {"k": "md"})
        assert data == {"a": 1, "k": "md"}

    def test_nests_under_field_names(self) -> None:
        composer = RecordComposer(context_field_name="context", metadata_field_name="metadata")
        assert composer.compose({"a": 1}, {"b": 2}) == {"context": {"a": 1}, "metadata": {"b": 2}}

    def test_shared_field_name_merges_without_double_nesting(self) -> None:
        composer = RecordComposer(context_field_name="shared", metadata_field_name="shared")
        assert composer.compose({"a": 1, "x": "ctx"}, {"b": 2, "x": "md"}) == {
            "shared": {"a": 1, "b": 2, "x": "md"}
        }

    def test_error_goes_to_top_level_field(self) -> None:
        error = ValueError("bad")
        data = RecordComposer(error_field_name="error").compose({}, None, error)
        assert data == {"error": error}

    def test_error_serializer_is_applied(self) -> None:
        composer = RecordComposer(error_serializer=lambda e: {"message": str(e)})
        assert composer.compose({}, None, ValueError("bad")) == {"err": {"message": "bad"}}

    def test_error_in_metadata_creates_namespace(self) -> None:
        composer = RecordComposer(metadata_field_name="metadata", error_field_in_metadata=True)
        assert composer.compose({}, None, "oops") == {"metadata": {"err": "oops"}}

    def test_error_in_metadata_joins_existing_namespace(self) -> None:
        composer = RecordComposer(metadata_field_name="metadata", error_field_in_metadata=True)
        assert composer.compose({"c": 1}, {"m": 2}, "oops") == {"c": 1, "metadata": {"m": 2, "err": "oops"}}

    def test_error_in_metadata_without_field_name_stays_top_level(self) -> None:
        composer = RecordComposer(error_field_in_metadata=True)
        assert composer.compose({}, {"m": 2}, "oops") == {"m": 2, "err": "oops"}

    def test_muting(self) -> None:
        composer = RecordComposer(mute_context=True, mute_metadata=True)
        assert composer.compose({"a": 1}, {"b": 2}) is None
        assert composer.compose({"a": 1}, {"b": 2}, "e") == {"err": "e"}
