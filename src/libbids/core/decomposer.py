"""
Filename decomposition and dataset table construction.

This module splits accepted dataset paths into fixed-width field records
and stacks them into a DatasetTable under the canonical header:

    derivatives, data_type, <entity display names>, suffix, extension, path
"""

from pathlib import PurePath
import re
from typing import Iterable, Optional

from ..infrastructure.logging_config import get_logger
from .entity_config import EntitySchema
from .errors import SchemaError
from .models import NA, DatasetTable
from .patterns import CompiledPattern

logger = get_logger(__name__)


LEADING_COLUMNS: tuple[str, ...] = ('derivatives', 'data_type')
TRAILING_COLUMNS: tuple[str, ...] = ('suffix', 'extension', 'path')
RESERVED_COLUMNS: frozenset[str] = frozenset(LEADING_COLUMNS + TRAILING_COLUMNS + ('json_path',))

_ENTITY_SEGMENT = re.compile(r'^([^-]+)-(.*)$')

FieldRecord = tuple[str, ...]


def table_header(schema: EntitySchema) -> tuple[str, ...]:
    """
    Get the canonical header for a schema.

    Args:
        schema: Entity schema.

    Returns:
        Column names in canonical order.

    Raises:
        SchemaError: If an entity display name collides with a fixed column.
    """
    for name in schema.display_names:
        if name in RESERVED_COLUMNS:
            raise SchemaError(f"Entity display name collides with a fixed column: {name}")
    return LEADING_COLUMNS + tuple(schema.display_names) + TRAILING_COLUMNS


def derivatives_name(path: str) -> str:
    """
    Get the derivatives pipeline name of a path.

    Args:
        path: File path.

    Returns:
        The directory following the first 'derivatives' directory, or NA.
    """
    parts = PurePath(path).parts
    # The pipeline directory must itself be a directory, not the file
    for i, part in enumerate(parts[:-2]):
        if part == 'derivatives':
            return parts[i + 1]
    return NA


def data_type_of(path: str, data_types: Iterable[str]) -> str:
    """
    Get the data type of a path from its enclosing directory name.

    Args:
        path: File path.
        data_types: Recognized data type tokens, in priority order.

    Returns:
        The matching token, or NA.
    """
    parent = PurePath(path).parent.name
    for token in data_types:
        if parent == token:
            return token
    return NA


def decompose(path: str, pattern: CompiledPattern, schema: EntitySchema) -> FieldRecord:
    """
    Decompose an accepted path into a field record.

    The extension is everything after the first dot of the filename. Entity
    values are stored as the reconstructed 'key-value' token. Segments with
    unknown keys are ignored; the last segment is always the suffix.

    Args:
        path: A path already accepted by the pattern.
        pattern: The compiled pattern (provides the data type vocabulary).
        schema: Entity schema giving the entity columns and their order.

    Returns:
        A tuple aligned with table_header(schema).
    """
    path = str(path)
    filename = PurePath(path).name

    name_no_ext, dot, extension = filename.partition('.')

    parts = name_no_ext.split('_')
    entities: dict[str, str] = {}
    for part in parts[:-1]:
        match = _ENTITY_SEGMENT.match(part)
        if match is None:
            continue
        key, value = match.groups()
        if key in schema:
            entities[key] = f"{key}-{value}"

    return (
        derivatives_name(path),
        data_type_of(path, pattern.data_types),
        *(entities.get(key, NA) for key in schema.keys),
        parts[-1],
        extension if dot else NA,
        path,
    )


def build_table(
    paths: Iterable[str],
    pattern: CompiledPattern,
    schema: EntitySchema,
    header: Optional[tuple[str, ...]] = None
) -> DatasetTable:
    """
    Build a dataset table from candidate paths.

    Paths rejected by the pattern are skipped. Rows keep the order of the
    input paths, so the result only depends on the caller's path order.

    Args:
        paths: Candidate paths, in discovery order.
        pattern: Compiled filename matcher.
        schema: Entity schema.
        header: Precomputed table_header(schema), if available.

    Returns:
        The DatasetTable.
    """
    if header is None:
        header = table_header(schema)

    rows = []
    rejected = 0
    for path in paths:
        if not pattern.matches(path):
            logger.debug(f"Skipping non-matching path: {path}")
            rejected += 1
            continue
        rows.append(decompose(path, pattern, schema))

    logger.info(f"Built table with {len(rows)} rows ({rejected} paths skipped)")
    return DatasetTable(header=header, rows=tuple(rows), aliases=schema.aliases())
