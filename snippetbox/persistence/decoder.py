"""Dialect-tolerant decoding of fetched column values.

The two supported stores encode the same logical types differently:

- PostgreSQL (asyncpg) returns native ``UUID``, ``bool`` and aware
  ``datetime`` values.
- SQLite (aiosqlite) stores identifiers as hex text, booleans as 0/1
  integers and timestamps as ISO text. Typed columns are converted back by
  SQLAlchemy, but expressions it cannot type (aggregates, CTE and UNION
  columns, raw labels) come back in their stored form.

Every mapper reads columns through this module so that both encodings
decode to the same Python value.
"""

import json
import numbers
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional, TypeVar
from uuid import UUID

from snippetbox.persistence.error import (
    FormatError,
    MappingError,
    UnknownEnumValue,
    ValueOverflowError,
)

# A fetched row: column name -> str | int | float | bool | bytes | None,
# or a native value when the driver produced one.
Row = Mapping[str, Any]

E = TypeVar("E", bound=Enum)

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

_TRUE_STRINGS = {"1", "true", "t", "yes"}
_FALSE_STRINGS = {"0", "false", "f", "no"}


def decode_uuid(value: Any) -> UUID:
    """Decode a native UUID, its hyphenated/hex string or its 16 raw bytes."""
    if isinstance(value, UUID):
        return value
    if isinstance(value, str):
        try:
            return UUID(value.strip())
        except ValueError as e:
            raise FormatError("identifier", value) from e
    if isinstance(value, (bytes, bytearray)) and len(value) == 16:
        return UUID(bytes=bytes(value))
    raise FormatError("identifier", value)


def decode_datetime(value: Any) -> datetime:
    """Decode a native datetime or an ISO-8601 string to an aware UTC instant.

    Naive values are taken to be UTC; SQLite drops the offset on storage.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.strip())
        except ValueError as e:
            raise FormatError("timestamp", value) from e
    else:
        raise FormatError("timestamp", value)

    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def decode_bool(value: Any) -> bool:
    """Decode a native bool or a 0/1 integer of any width; nonzero is true."""
    if isinstance(value, bool):
        return value
    if isinstance(value, numbers.Integral):
        return int(value) != 0
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE_STRINGS:
            return True
        if lowered in _FALSE_STRINGS:
            return False
    raise FormatError("boolean", value)


def decode_int(value: Any) -> int:
    """Decode a 32- or 64-bit integer, narrowing to the 32-bit range."""
    if isinstance(value, bool):
        result = int(value)
    elif isinstance(value, numbers.Integral):
        result = int(value)
    elif isinstance(value, Decimal):
        # SUM() comes back as NUMERIC on PostgreSQL
        if value != value.to_integral_value():
            raise FormatError("integer", value)
        result = int(value)
    elif isinstance(value, float):
        if not value.is_integer():
            raise FormatError("integer", value)
        result = int(value)
    elif isinstance(value, str):
        try:
            result = int(value.strip())
        except ValueError as e:
            raise FormatError("integer", value) from e
    else:
        raise FormatError("integer", value)

    if result < INT32_MIN or result > INT32_MAX:
        raise ValueOverflowError(result)
    return result


def decode_enum(value: Any, enum_cls: type[E]) -> E:
    """Decode a stored enum code.

    Integer enums are decoded from their integer code, string enums from
    their value.
    """
    if isinstance(value, enum_cls):
        return value
    raw = decode_int(value) if issubclass(enum_cls, int) else value
    try:
        return enum_cls(raw)
    except ValueError as e:
        raise UnknownEnumValue(enum_cls.__name__, value) from e


def decode_json(value: Any) -> Any:
    """Decode a JSON column returned either parsed or as text."""
    if isinstance(value, (dict, list)):
        return value
    if isinstance(value, (str, bytes)):
        try:
            return json.loads(value)
        except ValueError as e:
            raise FormatError("json", value) from e
    raise FormatError("json", value)


class RowDecoder:
    """Typed column access over one fetched row.

    Required accessors raise ``MappingError`` when the column is absent or
    NULL; ``optional_*`` accessors return ``None`` in both cases. A
    ``prefix`` selects labelled columns of a joined entity, e.g.
    ``RowDecoder(row, "Tag", prefix="tag_")`` reads ``tag_id`` for ``id``.
    """

    def __init__(self, row: Row, entity: str, prefix: str = "") -> None:
        self.row = row
        self.entity = entity
        self.prefix = prefix

    def _key(self, column: str) -> str:
        return f"{self.prefix}{column}"

    def _required(self, column: str) -> Any:
        key = self._key(column)
        if key not in self.row or self.row[key] is None:
            raise MappingError(self.entity, key)
        return self.row[key]

    def _optional(self, column: str) -> Any:
        return self.row.get(self._key(column))

    def has(self, column: str) -> bool:
        """Whether the column is present and non-NULL."""
        return self._optional(column) is not None

    def identifier(self, column: str) -> UUID:
        return decode_uuid(self._required(column))

    def optional_identifier(self, column: str) -> Optional[UUID]:
        value = self._optional(column)
        return None if value is None else decode_uuid(value)

    def timestamp(self, column: str) -> datetime:
        return decode_datetime(self._required(column))

    def optional_timestamp(self, column: str) -> Optional[datetime]:
        value = self._optional(column)
        return None if value is None else decode_datetime(value)

    def boolean(self, column: str) -> bool:
        return decode_bool(self._required(column))

    def integer(self, column: str) -> int:
        return decode_int(self._required(column))

    def integer_or_zero(self, column: str) -> int:
        value = self._optional(column)
        return 0 if value is None else decode_int(value)

    def text(self, column: str) -> str:
        value = self._required(column)
        return value if isinstance(value, str) else str(value)

    def optional_text(self, column: str) -> Optional[str]:
        value = self._optional(column)
        if value is None or isinstance(value, str):
            return value
        return str(value)

    def enum(self, column: str, enum_cls: type[E]) -> E:
        return decode_enum(self._required(column), enum_cls)

    def optional_json(self, column: str) -> Any:
        value = self._optional(column)
        return None if value is None else decode_json(value)
