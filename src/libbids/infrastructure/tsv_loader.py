"""
Delimited text format for dataset tables.

A table is written as one header line followed by one line per row, fields
separated by a tab (or a comma). Values are written as-is: they are not
quoted or escaped, so they must not contain the delimiter. Missing values
are written as the literal NA.
"""

import csv
import io
from pathlib import Path
from typing import Mapping, Optional, Sequence, TextIO

from ..core.errors import MalformedTable
from ..core.models import DatasetTable
from .logging_config import get_logger

logger = get_logger(__name__)


TAB = '\t'
COMMA = ','

_LINE_BREAKS = ('\n', '\r')


def delimiter_for(file_path: Path) -> str:
    """
    Guess the delimiter of a table file from its extension.

    Args:
        file_path: Path to the table file.

    Returns:
        ',' for .csv files, tab otherwise.
    """
    return COMMA if file_path.suffix.lower() == '.csv' else TAB


def _csv_options(delimiter: str) -> dict:
    # No quoting in either direction: quote characters are plain data
    return {'delimiter': delimiter, 'quoting': csv.QUOTE_NONE, 'quotechar': None}


def _write_row(writer, stream: TextIO, row: Sequence[str], delimiter: str) -> None:
    if any(delimiter in value or any(c in value for c in _LINE_BREAKS) for value in row):
        logger.warning(f"Row value contains the delimiter {delimiter!r} or a line break and will not round-trip: {row}")
        # csv refuses to write these unescaped
        stream.write(delimiter.join(row) + '\n')
    elif tuple(row) == ('',):
        # A lone empty field would need quoting
        stream.write('\n')
    else:
        writer.writerow(row)


def write_table(table: DatasetTable, stream: TextIO, delimiter: str = TAB) -> None:
    """
    Write a table to a text stream.

    Args:
        table: The table to write.
        stream: Destination stream (e.g., sys.stdout).
        delimiter: Field separator.
    """
    writer = csv.writer(stream, lineterminator='\n', **_csv_options(delimiter))
    _write_row(writer, stream, table.header, delimiter)
    for row in table.rows:
        _write_row(writer, stream, row, delimiter)


def format_table(table: DatasetTable, delimiter: str = TAB) -> str:
    """
    Serialize a table to delimited text.

    Args:
        table: The table to serialize.
        delimiter: Field separator.

    Returns:
        The text, ending with a newline.
    """
    buffer = io.StringIO()
    write_table(table, buffer, delimiter)
    return buffer.getvalue()


def parse_table(
    text: str,
    delimiter: str = TAB,
    aliases: Optional[Mapping[str, str]] = None
) -> DatasetTable:
    """
    Parse delimited text into a table.

    Blank lines are skipped.

    Args:
        text: The serialized table.
        delimiter: Field separator.
        aliases: Optional alternate column names (entity key -> column name).

    Returns:
        The DatasetTable.

    Raises:
        MalformedTable: If there is no header line or a row's field count
            differs from the header's.
    """
    header = None
    rows = []

    reader = csv.reader(text.splitlines(), **_csv_options(delimiter))
    for fields in reader:
        if not any(value.strip() for value in fields):
            continue

        if header is None:
            header = tuple(fields)
            continue

        if len(fields) != len(header):
            raise MalformedTable(
                f"Line {reader.line_num} has {len(fields)} fields, expected {len(header)}",
                line_number=reader.line_num,
                expected=len(header),
                actual=len(fields)
            )
        rows.append(tuple(fields))

    if header is None:
        raise MalformedTable("Table has no header line")

    return DatasetTable(header=header, rows=tuple(rows), aliases=aliases or {})


def load_table_file(
    file_path: Path,
    delimiter: Optional[str] = None,
    aliases: Optional[Mapping[str, str]] = None
) -> DatasetTable:
    """
    Load a table file.

    Args:
        file_path: Path to the table file.
        delimiter: Field separator. Guessed from the extension if None.
        aliases: Optional alternate column names.

    Returns:
        The DatasetTable.

    Raises:
        MalformedTable: If the file content is not a valid table.
        OSError: If the file cannot be read.
    """
    file_path = Path(file_path)
    if delimiter is None:
        delimiter = delimiter_for(file_path)

    with open(file_path, 'r', encoding='utf-8') as f:
        table = parse_table(f.read(), delimiter, aliases)

    logger.debug(f"Loaded {len(table)} rows from {file_path.name}")
    return table


def save_table_file(table: DatasetTable, file_path: Path, delimiter: Optional[str] = None) -> None:
    """
    Save a table to a file.

    Args:
        table: The table to save.
        file_path: Destination path.
        delimiter: Field separator. Guessed from the extension if None.
    """
    file_path = Path(file_path)
    if delimiter is None:
        delimiter = delimiter_for(file_path)

    with open(file_path, 'w', encoding='utf-8', newline='') as f:
        write_table(table, f, delimiter)

    logger.debug(f"Saved {len(table)} rows to {file_path}")
