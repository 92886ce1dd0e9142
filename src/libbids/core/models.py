"""
Core domain models for the tabular dataset representation.

This module contains pure data models. A dataset is represented as a
DatasetTable: a shared header plus fixed-width row tuples. Tables are
immutable; query operations produce new tables.
"""

from dataclasses import dataclass, field
from enum import Enum
import json
import re
from types import MappingProxyType
from typing import Iterable, Iterator, Mapping, Sequence, Union

from .errors import ColumnNotFound, MalformedTable


NA = "NA"
"""Sentinel for a column that has no value in a row."""

ColumnRef = Union[str, int]
"""A header name, an entity key alias, or a 0-based column index."""

_DIGITS = re.compile(r'^[0-9]+$')


@dataclass(frozen=True)
class DatasetTable:
    """
    In-memory table of decomposed dataset files.

    Rows are tuples aligned with the header; every row has exactly one value
    (or NA) per column.
    """

    header: tuple[str, ...]
    """Ordered, unique column names."""

    rows: tuple[tuple[str, ...], ...] = ()
    """Row values, in file-discovery order unless explicitly sorted."""

    aliases: Mapping[str, str] = field(default_factory=dict, compare=False)
    """Alternate column names (entity key -> column name)."""

    _index: Mapping[str, int] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        header = tuple(self.header)
        rows = tuple(tuple(row) for row in self.rows)

        index = {}
        for position, name in enumerate(header):
            if name in index:
                raise MalformedTable(f"Duplicate column name in header: {name!r}")
            index[name] = position

        for line_number, row in enumerate(rows, start=1):
            if len(row) != len(header):
                raise MalformedTable(
                    f"Row {line_number} has {len(row)} fields, expected {len(header)}",
                    line_number=line_number,
                    expected=len(header),
                    actual=len(row)
                )

        # Only keep aliases that point at a column of this table
        aliases = {k: v for k, v in dict(self.aliases).items() if v in index}

        object.__setattr__(self, 'header', header)
        object.__setattr__(self, 'rows', rows)
        object.__setattr__(self, 'aliases', MappingProxyType(aliases))
        object.__setattr__(self, '_index', MappingProxyType(index))

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def width(self) -> int:
        """Number of columns."""
        return len(self.header)

    @property
    def is_empty(self) -> bool:
        """True if the table has no data rows."""
        return not self.rows

    def has_column(self, ref: ColumnRef) -> bool:
        """Check whether a column reference resolves in this table."""
        try:
            self.column_index(ref)
        except ColumnNotFound:
            return False
        return True

    def column_index(self, ref: ColumnRef) -> int:
        """
        Resolve a column reference to its position in the header.

        Header names take precedence over aliases, which take precedence
        over numeric strings. Integer indices are 0-based.

        Args:
            ref: Column name, entity key alias, or 0-based index.

        Returns:
            The 0-based column position.

        Raises:
            ColumnNotFound: If the reference matches no column.
        """
        if isinstance(ref, bool):
            raise ColumnNotFound(ref, self.header)

        if isinstance(ref, int):
            if 0 <= ref < len(self.header):
                return ref
            raise ColumnNotFound(ref, self.header)

        if ref in self._index:
            return self._index[ref]

        target = self.aliases.get(ref)
        if target is not None:
            return self._index[target]

        if isinstance(ref, str) and _DIGITS.match(ref):
            position = int(ref)
            if position < len(self.header):
                return position

        raise ColumnNotFound(ref, self.header)

    def column(self, ref: ColumnRef) -> list[str]:
        """
        Get all values of a column, top to bottom.

        Raises:
            ColumnNotFound: If the reference matches no column.
        """
        position = self.column_index(ref)
        return [row[position] for row in self.rows]

    def record(self, row_number: int) -> dict[str, str]:
        """
        Get a row as a header-keyed dictionary.

        Args:
            row_number: 0-based row position.

        Returns:
            Dictionary mapping column names to values, in header order.
        """
        return dict(zip(self.header, self.rows[row_number]))

    def records(self) -> Iterator[dict[str, str]]:
        """Iterate over all rows as header-keyed dictionaries."""
        for row in self.rows:
            yield dict(zip(self.header, row))

    def with_rows(self, rows: Iterable[Sequence[str]]) -> 'DatasetTable':
        """Create a table with the same header and aliases but other rows."""
        return DatasetTable(header=self.header, rows=tuple(rows), aliases=self.aliases)

    def select_columns(self, positions: Sequence[int]) -> 'DatasetTable':
        """
        Create a table containing only the given columns, in the given order.

        Args:
            positions: 0-based column positions.

        Returns:
            A new DatasetTable.
        """
        header = tuple(self.header[p] for p in positions)
        rows = tuple(tuple(row[p] for p in positions) for row in self.rows)
        return DatasetTable(header=header, rows=rows, aliases=self.aliases)


class SortDirection(Enum):
    """Sort direction of a sort key."""

    ASCENDING = "asc"
    DESCENDING = "desc"


@dataclass(frozen=True)
class SortKey:
    """One column of a multi-key sort."""

    column: ColumnRef
    """Column to sort by."""

    direction: SortDirection = SortDirection.ASCENDING
    """Sort direction for this column."""

    @classmethod
    def parse(cls, text: str) -> 'SortKey':
        """
        Parse a sort key written as 'column' or 'column:asc' / 'column:desc'.

        Args:
            text: The textual sort key.

        Returns:
            A SortKey.

        Raises:
            ValueError: If the direction is not 'asc' or 'desc'.
        """
        column, sep, direction = text.rpartition(':')
        if not sep:
            return cls(column=text)
        return cls(column=column, direction=SortDirection(direction.lower()))


class SidecarValueType(Enum):
    """Type tag of a flattened JSON sidecar value."""

    STRING = "string"
    NUMBER = "number"
    BOOLEAN = "boolean"
    ARRAY = "array"
    OBJECT = "object"
    NULL = "null"


@dataclass(frozen=True)
class SidecarValue:
    """A top-level value of a JSON sidecar, with an explicit type tag."""

    type: SidecarValueType
    """Type tag."""

    value: Union[str, int, float, bool, tuple[str, ...], None]
    """
    Typed value.

    - STRING: str
    - NUMBER: int or float
    - BOOLEAN: bool
    - ARRAY: tuple of item strings
    - OBJECT: compact re-serialized JSON text
    - NULL: None
    """

    def text(self) -> str:
        """Get the value as text, without the type tag."""
        if self.type is SidecarValueType.ARRAY:
            return ','.join(self.value)
        if self.type in (SidecarValueType.NUMBER, SidecarValueType.BOOLEAN, SidecarValueType.NULL):
            return json.dumps(self.value)
        return self.value

    def encoded(self) -> str:
        """Get the value in 'type:value' text form (e.g., 'number:2.0')."""
        return f"{self.type.value}:{self.text()}"

