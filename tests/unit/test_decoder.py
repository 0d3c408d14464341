"""Unit tests for dialect-tolerant column decoding."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import UUID

import pytest

from snippetbox.domain.value import ChangeStatus, CommentStatus
from snippetbox.persistence.decoder import (
    INT32_MAX,
    INT32_MIN,
    RowDecoder,
    decode_bool,
    decode_datetime,
    decode_enum,
    decode_int,
    decode_json,
    decode_uuid,
)
from snippetbox.persistence.error import (
    FormatError,
    MappingError,
    UnknownEnumValue,
    ValueOverflowError,
)

GUID = "3fa85f64-5717-4562-b3fc-2c963f66afa6"


class TestDecodeIdentifier:
    """Identifiers arrive as native UUIDs on PostgreSQL and as text on SQLite."""

    def test_string_and_native_decode_equal(self):
        """Hyphenated text and a native UUID decode to the same identifier."""
        # Act
        from_text = decode_uuid(GUID)
        from_native = decode_uuid(UUID(GUID))

        # Assert
        assert from_text == from_native
        assert isinstance(from_text, UUID)

    def test_hex_storage_form(self):
        """SQLite stores Uuid columns as 32-character hex."""
        assert decode_uuid(UUID(GUID).hex) == UUID(GUID)

    def test_raw_bytes(self):
        assert decode_uuid(UUID(GUID).bytes) == UUID(GUID)

    @pytest.mark.parametrize("value", ["not-a-guid", "", 42, b"short"])
    def test_invalid_value_raises_format_error(self, value):
        with pytest.raises(FormatError):
            decode_uuid(value)


class TestDecodeTimestamp:
    def test_native_and_iso_string_are_same_instant(self):
        """A native datetime and its ISO text decode to one instant."""
        # Arrange
        native = datetime(2024, 3, 1, 12, 30, 15, 250000, tzinfo=timezone.utc)

        # Act
        from_native = decode_datetime(native)
        from_text = decode_datetime("2024-03-01 12:30:15.250000")

        # Assert
        assert from_native == from_text
        assert from_text.tzinfo is not None

    def test_naive_values_are_utc(self):
        decoded = decode_datetime(datetime(2024, 1, 1, 8, 0))
        assert decoded.utcoffset() == timedelta(0)
        assert decoded.hour == 8

    def test_offsets_are_normalized_to_utc(self):
        decoded = decode_datetime("2024-01-01T10:00:00+02:00")
        assert decoded == datetime(2024, 1, 1, 8, 0, tzinfo=timezone.utc)
        assert decoded.utcoffset() == timedelta(0)

    @pytest.mark.parametrize("value", ["yesterday", "2024-13-45", 1700000000])
    def test_unparsable_raises_format_error(self, value):
        with pytest.raises(FormatError):
            decode_datetime(value)


class TestDecodeBoolean:
    def test_integer_widths_and_native(self):
        """0, 1 and a native true decode to false, true, true."""
        # Act / Assert
        assert decode_bool(0) is False
        assert decode_bool(1) is True
        assert decode_bool(True) is True

    def test_any_nonzero_is_true(self):
        assert decode_bool(2**40) is True
        assert decode_bool(-1) is True

    @pytest.mark.parametrize("value", ["t", "true", "1", "yes"])
    def test_true_strings(self, value):
        assert decode_bool(value) is True

    @pytest.mark.parametrize("value", ["f", "false", "0", "no"])
    def test_false_strings(self, value):
        assert decode_bool(value) is False

    @pytest.mark.parametrize("value", ["maybe", 1.5, None])
    def test_invalid_raises_format_error(self, value):
        with pytest.raises(FormatError):
            decode_bool(value)


class TestDecodeInteger:
    def test_range_limits_are_accepted(self):
        assert decode_int(INT32_MAX) == INT32_MAX
        assert decode_int(INT32_MIN) == INT32_MIN

    @pytest.mark.parametrize("value", [INT32_MAX + 1, INT32_MIN - 1, 2**40])
    def test_out_of_range_raises_overflow(self, value):
        """64-bit values outside the 32-bit range are rejected, not truncated."""
        with pytest.raises(ValueOverflowError) as exc_info:
            decode_int(value)

        assert isinstance(exc_info.value, OverflowError)
        assert exc_info.value.value == value

    def test_aggregate_representations(self):
        """SUM() comes back as Decimal or float depending on the store."""
        assert decode_int(Decimal("12")) == 12
        assert decode_int(7.0) == 7
        assert decode_int("42") == 42

    @pytest.mark.parametrize("value", [Decimal("1.5"), 2.5, "forty", None])
    def test_non_integral_raises_format_error(self, value):
        with pytest.raises(FormatError):
            decode_int(value)


class TestDecodeEnum:
    def test_int_enum_from_code(self):
        assert decode_enum(2, CommentStatus) is CommentStatus.HIDDEN

    def test_string_enum_from_value(self):
        assert decode_enum("failed", ChangeStatus) is ChangeStatus.FAILED

    def test_out_of_range_code_raises(self):
        with pytest.raises(UnknownEnumValue) as exc_info:
            decode_enum(99, CommentStatus)

        assert exc_info.value.enum_name == "CommentStatus"

    def test_unknown_string_raises(self):
        with pytest.raises(UnknownEnumValue):
            decode_enum("exploded", ChangeStatus)


class TestDecodeJson:
    def test_parsed_and_text_forms(self):
        assert decode_json({"a": 1}) == {"a": 1}
        assert decode_json('{"a": 1}') == {"a": 1}

    def test_invalid_text_raises(self):
        with pytest.raises(FormatError):
            decode_json("{nope")


class TestRowDecoder:
    def test_missing_required_column_raises_mapping_error(self):
        """A required column that is absent names the entity and column."""
        # Arrange
        d = RowDecoder({"id": GUID}, "Snippet")

        # Act
        with pytest.raises(MappingError) as exc_info:
            d.text("title")

        # Assert
        assert exc_info.value.entity == "Snippet"
        assert exc_info.value.column == "title"
        assert "title" in str(exc_info.value)

    def test_null_required_column_raises_mapping_error(self):
        with pytest.raises(MappingError):
            RowDecoder({"created_at": None}, "Comment").timestamp("created_at")

    def test_optional_accessors_return_none(self):
        d = RowDecoder({"deleted_at": None}, "Comment")

        assert d.optional_timestamp("deleted_at") is None
        assert d.optional_identifier("parent_id") is None
        assert d.optional_text("user_name") is None
        assert d.integer_or_zero("reply_count") == 0

    def test_prefix_reads_labelled_columns(self):
        # Arrange
        row = {"id": "x", "tag_id": GUID, "tag_name": "python"}

        # Act
        d = RowDecoder(row, "Tag", prefix="tag_")

        # Assert
        assert d.identifier("id") == UUID(GUID)
        assert d.text("name") == "python"
        assert d.has("name")
        assert not d.has("color")
