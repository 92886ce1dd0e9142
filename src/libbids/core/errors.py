"""
Exceptions raised by the core package.

Every failure of a core operation is reported to the immediate caller
through one of these types so that pipeline scripts can branch on them.
"""

from typing import Optional, Sequence


class LibBidsError(Exception):
    """Base class for all libbids errors."""


class ColumnNotFound(LibBidsError, KeyError):
    """Raised when an operation references a column that is not in the table."""

    def __init__(self, column, header: Sequence[str] = ()):
        self.column = column
        self.header = tuple(header)
        super().__init__(column)

    def __str__(self) -> str:
        return f"Column not found: {self.column!r} (available: {', '.join(self.header)})"


class MalformedTable(LibBidsError, ValueError):
    """Raised when a row's field count does not match the header."""

    def __init__(self, message: str, line_number: Optional[int] = None,
                 expected: Optional[int] = None, actual: Optional[int] = None):
        self.line_number = line_number
        self.expected = expected
        self.actual = actual
        super().__init__(message)


class SchemaError(LibBidsError, ValueError):
    """Raised when an entity schema or a vocabulary cannot be compiled."""


class FilterPatternError(LibBidsError, ValueError):
    """Raised when a row filter pattern is not a valid regular expression."""
