"""
Query operations for dataset tables.

This module contains row filter conditions and the pure table operations
built on them: projection and filtering, removal of all-NA columns, and
column extraction. Every operation returns a new value and leaves its input
untouched.
"""

from dataclasses import dataclass, field
import re
from typing import Callable, Iterable, Optional, Sequence, Union

from .errors import FilterPatternError
from .models import NA, ColumnRef, DatasetTable


RowPredicate = Callable[[tuple[str, ...]], bool]


@dataclass
class RowFilter:
    """
    Keep rows whose column value matches a pattern.

    A value matches if it equals the pattern exactly, or if the pattern, read
    as a regular expression, is found anywhere in the value.
    """

    column: ColumnRef = ''
    """Column name, entity key alias, or 0-based index."""

    pattern: str = ''
    """Exact value or regular expression."""

    _regex: re.Pattern = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        try:
            self._regex = re.compile(self.pattern)
        except re.error as e:
            raise FilterPatternError(f"Invalid filter pattern {self.pattern!r}: {e}") from e

    def matches(self, value: str) -> bool:
        """Check a single value against the pattern."""
        return value == self.pattern or self._regex.search(value) is not None

    def bind(self, table: DatasetTable) -> RowPredicate:
        """
        Resolve the column against a table.

        Args:
            table: Table whose rows will be tested.

        Returns:
            A predicate taking a row tuple.

        Raises:
            ColumnNotFound: If the column is not in the table.
        """
        position = table.column_index(self.column)
        return lambda row: self.matches(row[position])

    def to_dict(self) -> dict:
        return {
            'type': 'row',
            'column': self.column,
            'pattern': self.pattern
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'RowFilter':
        return cls(
            column=data.get('column', ''),
            pattern=data.get('pattern', '')
        )


@dataclass
class LogicalOperation:
    """
    Logical combination of row filters.

    Supports AND, OR, and NOT operations for composing complex filters.
    """

    operator: str = 'AND'
    """Logical operator: 'AND', 'OR', 'NOT'."""

    conditions: list['RowFilter | LogicalOperation'] = field(default_factory=list)
    """List of child filters or nested logical operations."""

    def bind(self, table: DatasetTable) -> RowPredicate:
        """Resolve all child columns against a table and combine them."""
        predicates = [cond.bind(table) for cond in self.conditions]

        if not predicates:
            return lambda row: True

        if self.operator == 'AND':
            return lambda row: all(p(row) for p in predicates)
        elif self.operator == 'OR':
            return lambda row: any(p(row) for p in predicates)
        elif self.operator == 'NOT':
            # NOT operates on the first condition only
            first = predicates[0]
            return lambda row: not first(row)
        else:
            raise ValueError(f"Unknown logical operator: {self.operator}")

    def to_dict(self) -> dict:
        return {
            'type': 'logical_operation',
            'operator': self.operator,
            'conditions': [cond.to_dict() for cond in self.conditions]
        }

    @classmethod
    def from_dict(cls, data: dict) -> 'LogicalOperation':
        """
        Deserialize logical operation from dictionary.

        Args:
            data: Dictionary representation.

        Returns:
            LogicalOperation instance.
        """
        conditions = []
        for cond_data in data.get('conditions', []):
            cond_type = cond_data.get('type')
            if cond_type == 'row':
                conditions.append(RowFilter.from_dict(cond_data))
            elif cond_type == 'logical_operation':
                conditions.append(LogicalOperation.from_dict(cond_data))
            else:
                raise ValueError(f"Unknown filter type: {cond_type}")

        return cls(
            operator=data.get('operator', 'AND'),
            conditions=conditions
        )


FilterLike = Union[RowFilter, LogicalOperation, tuple]


def _as_filter(item: FilterLike) -> 'RowFilter | LogicalOperation':
    if isinstance(item, (RowFilter, LogicalOperation)):
        return item
    column, pattern = item
    return RowFilter(column=column, pattern=pattern)


def query(
    table: DatasetTable,
    columns: Optional[Sequence[ColumnRef]] = None,
    row_filters: Iterable[FilterLike] = (),
    drop_na_columns: Optional[Sequence[ColumnRef]] = None
) -> DatasetTable:
    """
    Filter rows and project columns of a table.

    Row filters combine with logical AND. Rows with NA in any of the
    drop_na_columns are removed after filtering and before projection.

    Args:
        table: The source table.
        columns: Columns to keep, in output order. None keeps all columns.
        row_filters: RowFilter / LogicalOperation objects or (column, pattern) tuples.
        drop_na_columns: Columns that must not be NA in a kept row.

    Returns:
        A new DatasetTable.

    Raises:
        ColumnNotFound: If any referenced column is not in the table.
        FilterPatternError: If a filter pattern is not a valid regular expression.
        ValueError: If two entries of columns name the same column.
    """
    predicates = [_as_filter(item).bind(table) for item in row_filters]
    na_positions = [table.column_index(ref) for ref in (drop_na_columns or ())]
    positions = None
    if columns is not None:
        positions = [table.column_index(ref) for ref in columns]
        seen = set()
        for ref, position in zip(columns, positions):
            if position in seen:
                raise ValueError(
                    f"Column {table.header[position]!r} selected more than once (as {ref!r})"
                )
            seen.add(position)

    rows = [
        row for row in table.rows
        if all(p(row) for p in predicates)
        and not any(row[i] == NA for i in na_positions)
    ]

    result = table.with_rows(rows)
    if positions is not None:
        result = result.select_columns(positions)
    return result


def drop_empty_columns(table: DatasetTable) -> DatasetTable:
    """
    Remove every column whose value is NA in all rows.

    A table without data rows is returned unchanged.

    Args:
        table: The source table.

    Returns:
        A new DatasetTable (or the same table if nothing is dropped).
    """
    if table.is_empty:
        return table

    keep = [
        position for position in range(table.width)
        if any(row[position] != NA for row in table.rows)
    ]
    if len(keep) == table.width:
        return table
    return table.select_columns(keep)


def extract_column(
    table: DatasetTable,
    column: ColumnRef,
    unique: bool = True,
    exclude_na: bool = True
) -> list[str]:
    """
    Read one column top to bottom.

    Args:
        table: The source table.
        column: Column name, entity key alias, or 0-based index.
        unique: Keep only the first occurrence of each value.
        exclude_na: Remove NA values (applied before unique).

    Returns:
        List of values. Empty if the table has no data rows.

    Raises:
        ColumnNotFound: If the column is not in a non-empty table.
    """
    if table.is_empty:
        return []

    values = table.column(column)
    if exclude_na:
        values = [v for v in values if v != NA]
    if unique:
        values = list(dict.fromkeys(values))
    return values
