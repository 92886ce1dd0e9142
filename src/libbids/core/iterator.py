"""
Sorted, resumable iteration over a dataset table.

The RowIterator owns its cursor and the row order computed when it is
opened. Rows are ordered with a version sort: runs of digits compare as
integers and other text compares literally, so 'run-2' sorts before
'run-10'. Sorting is stable; rows with equal keys keep their table order.
"""

from enum import Enum
import re
from typing import Iterable, Optional, Union

from ..infrastructure.logging_config import get_logger
from .models import DatasetTable, SortDirection, SortKey

logger = get_logger(__name__)


_DIGIT_RUNS = re.compile(r'([0-9]+)')

SortKeyLike = Union[SortKey, str, tuple]


def version_sort_key(value: str) -> tuple:
    """
    Get a comparison key implementing version sort.

    The value is split into alternating text and digit runs; text runs
    compare as strings and digit runs as integers.

    Args:
        value: The string to order.

    Returns:
        A tuple usable as a sort key.
    """
    parts = _DIGIT_RUNS.split(value)
    # re.split with a capturing group puts digit runs at odd positions
    return tuple(int(part) if i % 2 else part for i, part in enumerate(parts))


def _as_sort_key(item: SortKeyLike) -> SortKey:
    if isinstance(item, SortKey):
        return item
    if isinstance(item, str):
        return SortKey.parse(item)
    column, direction = item
    if not isinstance(direction, SortDirection):
        direction = SortDirection(str(direction).lower())
    return SortKey(column=column, direction=direction)


class IteratorState(Enum):
    """Lifecycle of a RowIterator."""

    UNINITIALIZED = "uninitialized"
    SORTED = "sorted"
    EMITTING = "emitting"
    EXHAUSTED = "exhausted"


class RowIterator:
    """
    Stateful cursor over the rows of a table.

    Typical use:

        iterator = open_iterator(table, ['subject', 'run'])
        record, ok = iterator.next_record()
        while ok:
            ...
            record, ok = iterator.next_record()

    The iterator is also a Python iterator yielding the same records.
    """

    def __init__(
        self,
        table: DatasetTable,
        sort_keys: Optional[Iterable[SortKeyLike]] = None,
        reverse: bool = False
    ):
        """
        Create an iterator. Call open() before reading records.

        Args:
            table: The table to iterate.
            sort_keys: Columns to sort by, as SortKey objects, 'column' or
                'column:desc' strings, or (column, direction) tuples.
                None sorts by all columns left to right, ascending.
            reverse: Invert the direction of every sort key.
        """
        self._table = table
        self._sort_keys = (
            [_as_sort_key(item) for item in sort_keys]
            if sort_keys is not None else None
        )
        self._reverse = reverse
        self._order: list[int] = []
        self._cursor = 0
        self._state = IteratorState.UNINITIALIZED

    @property
    def state(self) -> IteratorState:
        """Current lifecycle state."""
        return self._state

    @property
    def position(self) -> int:
        """Number of records emitted so far."""
        return self._cursor

    @property
    def table(self) -> DatasetTable:
        """The table being iterated."""
        return self._table

    def open(self) -> 'RowIterator':
        """
        Validate the sort keys and compute the row order.

        Returns:
            self, for chaining.

        Raises:
            ColumnNotFound: If a sort key references an unknown column.
            RuntimeError: If the iterator was already opened.
        """
        if self._state is not IteratorState.UNINITIALIZED:
            raise RuntimeError("RowIterator is already open; create a new one to iterate again")

        if self._sort_keys is None:
            keys = [(i, SortDirection.ASCENDING) for i in range(self._table.width)]
        else:
            keys = [(self._table.column_index(k.column), k.direction) for k in self._sort_keys]

        rows = self._table.rows
        order = list(range(len(rows)))
        # Successive stable sorts, least significant key first
        for position, direction in reversed(keys):
            descending = (direction is SortDirection.DESCENDING) != self._reverse
            order.sort(key=lambda r: version_sort_key(rows[r][position]), reverse=descending)

        self._order = order
        self._cursor = 0
        self._state = IteratorState.SORTED
        logger.debug(f"Opened iterator over {len(order)} rows")
        return self

    def has_next(self) -> bool:
        """Check whether another record is available."""
        self._require_open()
        return self._cursor < len(self._order)

    def next_record(self) -> tuple[Optional[dict[str, str]], bool]:
        """
        Get the record at the cursor and advance.

        Returns:
            Tuple of (record, True), or (None, False) once exhausted. Calling
            again after exhaustion keeps returning (None, False).

        Raises:
            RuntimeError: If the iterator has not been opened.
        """
        self._require_open()

        if self._state is IteratorState.EXHAUSTED:
            return None, False

        if self._cursor >= len(self._order):
            self._state = IteratorState.EXHAUSTED
            return None, False

        self._state = IteratorState.EMITTING
        record = self._table.record(self._order[self._cursor])
        self._cursor += 1
        return record, True

    def _require_open(self) -> None:
        if self._state is IteratorState.UNINITIALIZED:
            raise RuntimeError("RowIterator is not open; call open() first")

    def __iter__(self) -> 'RowIterator':
        return self

    def __next__(self) -> dict[str, str]:
        record, ok = self.next_record()
        if not ok:
            raise StopIteration
        return record


def open_iterator(
    table: DatasetTable,
    sort_keys: Optional[Iterable[SortKeyLike]] = None,
    reverse: bool = False
) -> RowIterator:
    """
    Create and open a RowIterator.

    Args:
        table: The table to iterate.
        sort_keys: Columns to sort by (see RowIterator).
        reverse: Invert the direction of every sort key.

    Returns:
        An open RowIterator.

    Raises:
        ColumnNotFound: If a sort key references an unknown column.
    """
    return RowIterator(table, sort_keys, reverse).open()
