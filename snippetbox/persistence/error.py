"""Persistence layer errors.

Decoding and mapping errors indicate stored data that cannot be read under
the expected logical type (store corruption or schema drift) and always
propagate to the caller.
"""

from sqlalchemy.exc import IntegrityError

# Uniqueness / foreign-key violations are raised by the store and
# propagated untranslated.
ConstraintViolation = IntegrityError


class PersistenceError(Exception):
    """Base persistence error."""

    pass


class FormatError(PersistenceError, ValueError):
    """A stored value cannot be parsed as the expected type."""

    def __init__(self, expected: str, value: object):
        self.expected = expected
        self.value = value
        super().__init__(f"Cannot decode {value!r} as {expected}")


class ValueOverflowError(PersistenceError, OverflowError):
    """A stored integer does not fit the 32-bit range."""

    def __init__(self, value: int):
        self.value = value
        super().__init__(f"Integer {value} is outside the 32-bit range")


class UnknownEnumValue(PersistenceError, ValueError):
    """A stored code does not name a member of the expected enum."""

    def __init__(self, enum_name: str, value: object):
        self.enum_name = enum_name
        self.value = value
        super().__init__(f"Unknown {enum_name} value: {value!r}")


class MappingError(PersistenceError, KeyError):
    """A row lacks a column required to build an entity."""

    def __init__(self, entity: str, column: str):
        self.entity = entity
        self.column = column
        super().__init__(f"Row for {entity} is missing required column '{column}'")

    def __str__(self) -> str:
        return self.args[0]


class PaginationError(PersistenceError, ValueError):
    """A page window with a non-positive page or page size."""

    pass


class TransactionFailure(PersistenceError):
    """A statement inside an atomic unit failed and the unit was rolled back.

    The underlying failure is available as ``__cause__``.
    """

    def __init__(self, operation: str, reason: str):
        self.operation = operation
        super().__init__(f"{operation} rolled back: {reason}")
