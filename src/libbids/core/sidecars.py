"""
Pairing of JSON sidecars with data files.

A JSON sidecar describes the data files that share all of its descriptive
columns, i.e. every column except the ones revealing the file type
(extension and path). Inheritance of sidecars from parent directories is
not resolved.
"""

from typing import Sequence

from .models import NA, DatasetTable

JSON_PATH_COLUMN = 'json_path'
JSON_EXTENSION = 'json'

_NON_KEY_COLUMNS = frozenset(('extension', 'path', JSON_PATH_COLUMN))

JoinKey = tuple[str, ...]


def join_key(row: Sequence[str], key_positions: Sequence[int]) -> JoinKey:
    """
    Get the join key of a row.

    Args:
        row: Row tuple.
        key_positions: Positions of the descriptive columns.

    Returns:
        The values of the descriptive columns.
    """
    return tuple(row[i] for i in key_positions)


def attach_sidecar_paths(table: DatasetTable) -> DatasetTable:
    """
    Add a json_path column associating JSON sidecars with data files.

    - A JSON row whose key matches at least one data row is removed, and its
      path is set as json_path on every matching data row.
    - A JSON row matching no data row is kept, with json_path set to its own
      path (a sidecar with no single data file).
    - Data rows without a matching JSON row get json_path = NA.

    Row order is preserved. On a table that already has a json_path column,
    the column is recomputed and rows that no JSON row matches keep their
    previous value, so attaching twice gives the same table.

    Args:
        table: Table with 'extension' and 'path' columns.

    Returns:
        A new DatasetTable with json_path as its last column.

    Raises:
        ColumnNotFound: If the table has no 'extension' or 'path' column.
    """
    previous: list[str] = [NA] * len(table)
    if JSON_PATH_COLUMN in table.header:
        previous = table.column(JSON_PATH_COLUMN)
        keep = [i for i, name in enumerate(table.header) if name != JSON_PATH_COLUMN]
        table = table.select_columns(keep)

    extension_position = table.column_index('extension')
    path_position = table.column_index('path')

    key_positions = [
        i for i, name in enumerate(table.header) if name not in _NON_KEY_COLUMNS
    ]

    sidecars: dict[JoinKey, str] = {}
    data_keys: set[JoinKey] = set()
    for row in table.rows:
        key = join_key(row, key_positions)
        if row[extension_position] == JSON_EXTENSION:
            sidecars.setdefault(key, row[path_position])
        else:
            data_keys.add(key)

    rows = []
    for row, earlier in zip(table.rows, previous):
        key = join_key(row, key_positions)
        if row[extension_position] == JSON_EXTENSION:
            if key in data_keys:
                continue
            rows.append(row + (row[path_position],))
        else:
            rows.append(row + (sidecars.get(key, earlier),))

    return DatasetTable(
        header=table.header + (JSON_PATH_COLUMN,),
        rows=tuple(rows),
        aliases=table.aliases
    )
