"""
Tests for sorted iteration over tables.
"""

import pytest

from libbids.core.decomposer import build_table
from libbids.core.errors import ColumnNotFound
from libbids.core.iterator import IteratorState, RowIterator, open_iterator, version_sort_key
from libbids.core.models import DatasetTable, SortDirection, SortKey


RUN_PATHS = [
    "ds/sub-01/func/sub-01_task-rest_run-1_bold.nii.gz",
    "ds/sub-01/func/sub-01_task-rest_run-10_bold.nii.gz",
    "ds/sub-01/func/sub-01_task-rest_run-2_bold.nii.gz",
]


@pytest.fixture
def run_table(pattern, schema):
    """Table whose runs are out of version order."""
    return build_table(RUN_PATHS, pattern, schema)


def _drain(iterator):
    values = []
    record, ok = iterator.next_record()
    while ok:
        values.append(record)
        record, ok = iterator.next_record()
    return values


class TestVersionSortKey:
    """Tests for the version sort key."""

    def test_numeric_runs(self):
        """Test that digit runs compare as numbers."""
        values = ['run-10', 'run-2', 'run-1']
        assert sorted(values, key=version_sort_key) == ['run-1', 'run-2', 'run-10']

    def test_text_compares_literally(self):
        """Test that non-digit text compares as text."""
        assert sorted(['sub-b', 'sub-a'], key=version_sort_key) == ['sub-a', 'sub-b']

    def test_mixed_values(self):
        """Test that NA and labelled values can be ordered together."""
        values = ['run-3', 'NA', 'run-12']
        assert sorted(values, key=version_sort_key) == ['NA', 'run-3', 'run-12']

    def test_multiple_digit_runs(self):
        """Test version-like strings."""
        values = ['1.10.0', '1.2.10', '1.2.9']
        assert sorted(values, key=version_sort_key) == ['1.2.9', '1.2.10', '1.10.0']


class TestRowIterator:
    """Tests for the iterator lifecycle and ordering."""

    def test_version_order(self, run_table):
        """Test that run-2 comes before run-10."""
        records = _drain(open_iterator(run_table, ['run']))
        assert [r['run'] for r in records] == ['run-1', 'run-2', 'run-10']

    def test_descending_key(self, run_table):
        """Test a descending sort key."""
        records = _drain(open_iterator(run_table, ['run:desc']))
        assert [r['run'] for r in records] == ['run-10', 'run-2', 'run-1']

    def test_reverse(self, run_table):
        """Test that reverse flips every key."""
        records = _drain(open_iterator(run_table, [SortKey('run')], reverse=True))
        assert [r['run'] for r in records] == ['run-10', 'run-2', 'run-1']

    def test_reverse_descending(self, run_table):
        """Test that reverse on a descending key sorts ascending."""
        records = _drain(open_iterator(run_table, [('run', 'desc')], reverse=True))
        assert [r['run'] for r in records] == ['run-1', 'run-2', 'run-10']

    def test_stable_ties(self, run_table):
        """Test that equal keys keep table order."""
        records = _drain(open_iterator(run_table, ['task']))
        assert [r['path'] for r in records] == RUN_PATHS

    def test_mixed_directions(self):
        """Test a two-key sort with different directions."""
        table = DatasetTable(
            header=('task', 'run'),
            rows=(('a', 'run-2'), ('b', 'run-1'), ('a', 'run-10'), ('b', 'run-3'))
        )
        keys = [SortKey('task', SortDirection.DESCENDING), SortKey('run')]
        records = _drain(open_iterator(table, keys))
        assert [(r['task'], r['run']) for r in records] == [
            ('b', 'run-1'), ('b', 'run-3'), ('a', 'run-2'), ('a', 'run-10')
        ]

    def test_default_sorts_all_columns(self):
        """Test that without keys all columns sort left to right."""
        table = DatasetTable(header=('a', 'b'), rows=(('x2', '1'), ('x10', '0'), ('x2', '0')))
        records = _drain(open_iterator(table))
        assert [(r['a'], r['b']) for r in records] == [('x2', '0'), ('x2', '1'), ('x10', '0')]

    def test_sort_by_index(self, run_table):
        """Test that sort keys accept 0-based positions."""
        position = run_table.column_index('run')
        records = _drain(open_iterator(run_table, [(position, SortDirection.ASCENDING)]))
        assert [r['run'] for r in records] == ['run-1', 'run-2', 'run-10']

    def test_unknown_sort_column(self, run_table):
        """Test that sort keys are validated on open."""
        iterator = RowIterator(run_table, ['nope'])
        with pytest.raises(ColumnNotFound):
            iterator.open()

    def test_states(self, run_table):
        """Test the lifecycle states."""
        iterator = RowIterator(run_table, ['run'])
        assert iterator.state is IteratorState.UNINITIALIZED

        iterator.open()
        assert iterator.state is IteratorState.SORTED
        assert iterator.has_next()

        iterator.next_record()
        assert iterator.state is IteratorState.EMITTING
        assert iterator.position == 1

        _drain(iterator)
        assert iterator.state is IteratorState.EXHAUSTED
        assert not iterator.has_next()

    def test_exhausted_is_idempotent(self, run_table):
        """Test that reading past the end keeps reporting exhaustion."""
        iterator = open_iterator(run_table)
        _drain(iterator)
        assert iterator.next_record() == (None, False)
        assert iterator.next_record() == (None, False)
        assert iterator.position == len(run_table)

    def test_not_open(self, run_table):
        """Test that reading before open fails."""
        iterator = RowIterator(run_table)
        with pytest.raises(RuntimeError, match="not open"):
            iterator.next_record()

    def test_open_twice(self, run_table):
        """Test that an iterator cannot be reopened."""
        iterator = open_iterator(run_table)
        with pytest.raises(RuntimeError, match="already open"):
            iterator.open()

    def test_empty_table(self, run_table):
        """Test iteration over a table without rows."""
        iterator = open_iterator(run_table.with_rows([]))
        assert iterator.next_record() == (None, False)
        assert iterator.state is IteratorState.EXHAUSTED

    def test_python_iteration(self, run_table):
        """Test that the iterator works in a for loop."""
        records = list(open_iterator(run_table, ['run']))
        assert [r['run'] for r in records] == ['run-1', 'run-2', 'run-10']
        assert records[0] == run_table.record(0)

    def test_table_not_modified(self, run_table):
        """Test that sorting does not reorder the table."""
        _drain(open_iterator(run_table, ['run:desc']))
        assert run_table.column('path') == RUN_PATHS
