"""
Compiled filename matcher.

A CompiledPattern decides whether a candidate path names a dataset file.
It is built once from an EntitySchema and the suffix, extension and data type
vocabularies; malformed schemas or vocabularies are rejected when compiling,
not at first use. The matcher only accepts or rejects; value extraction is
the decomposer's job.
"""

from dataclasses import dataclass
from pathlib import PurePath
import re
from typing import Iterable, Optional

from .entity_config import DATA_TYPES, EXTENSIONS, SUFFIXES, EntitySchema
from .errors import SchemaError


_TOKEN_PATTERN = re.compile(r'^[a-zA-Z0-9]+$')
_EXTENSION_PATTERN = re.compile(r'^[a-zA-Z0-9]+(\.[a-zA-Z0-9]+)*$')


@dataclass(frozen=True)
class CompiledPattern:
    """
    Structural matcher for dataset filenames.

    A filename is accepted if it is made of zero or more 'key-value'
    segments (known keys, valid values, each key at most once, in any order)
    joined by underscores, followed by a known suffix and a known extension.
    """

    entity_slots: tuple[tuple[str, re.Pattern], ...]
    """Entity keys with their compiled value patterns, in schema order."""

    data_types: tuple[str, ...]
    """Recognized data type directory names, in priority order."""

    suffixes: frozenset[str]
    """Suffix vocabulary."""

    extensions: tuple[str, ...]
    """Extension vocabulary (without leading dot), longest first."""

    def split_extension(self, filename: str) -> Optional[tuple[str, str]]:
        """
        Split a filename on the longest known extension.

        Args:
            filename: Base filename (no directory).

        Returns:
            Tuple of (stem, extension), or None if no known extension ends the name.
        """
        for extension in self.extensions:
            ending = '.' + extension
            if filename.endswith(ending) and len(filename) > len(ending):
                return filename[:-len(ending)], extension
        return None

    def matches_filename(self, filename: str) -> bool:
        """
        Check whether a base filename is accepted.

        Args:
            filename: Base filename (no directory).

        Returns:
            True if the filename matches the grammar.
        """
        split = self.split_extension(filename)
        if split is None:
            return False
        stem, _ = split

        segments = stem.split('_')
        if segments[-1] not in self.suffixes:
            return False

        slots = dict(self.entity_slots)
        seen = set()
        for segment in segments[:-1]:
            key, sep, value = segment.partition('-')
            if not sep or key in seen:
                return False
            value_pattern = slots.get(key)
            if value_pattern is None or not value_pattern.fullmatch(value):
                return False
            seen.add(key)

        return True

    def matches(self, path: str) -> bool:
        """
        Check whether a candidate path names a dataset file.

        Only the filename is inspected; the directories are not.

        Args:
            path: Candidate path.

        Returns:
            True if the path is accepted.
        """
        return self.matches_filename(PurePath(path).name)

    def filter(self, paths: Iterable[str]) -> list[str]:
        """Keep the accepted paths, preserving their order."""
        return [path for path in paths if self.matches(path)]


def _normalize_extension(extension: str) -> str:
    return extension[1:] if extension.startswith('.') else extension


def compile_pattern(
    schema: EntitySchema,
    data_types: Iterable[str] = DATA_TYPES,
    suffixes: Iterable[str] = SUFFIXES,
    extensions: Iterable[str] = EXTENSIONS
) -> CompiledPattern:
    """
    Compile an entity schema and vocabularies into a filename matcher.

    Args:
        schema: Entity definitions in canonical order.
        data_types: Ordered data type directory names.
        suffixes: Accepted suffix tokens.
        extensions: Accepted extensions, with or without a leading dot.
            Multi-part extensions such as 'nii.gz' are allowed.

    Returns:
        The CompiledPattern.

    Raises:
        SchemaError: If a vocabulary is empty or holds a malformed token, or
            an entity value pattern does not compile.
    """
    slots = []
    for entity in schema:
        try:
            slots.append((entity.key, re.compile(entity.value_regex())))
        except re.error as e:
            raise SchemaError(f"Invalid value pattern for entity '{entity.key}': {e}") from e

    data_types = tuple(data_types)
    for token in data_types:
        if not _TOKEN_PATTERN.match(token):
            raise SchemaError(f"Invalid data type token: {token!r}")

    suffixes = frozenset(suffixes)
    if not suffixes:
        raise SchemaError("Suffix vocabulary is empty")
    for token in suffixes:
        if not _TOKEN_PATTERN.match(token):
            raise SchemaError(f"Invalid suffix token: {token!r}")

    normalized = {_normalize_extension(e) for e in extensions}
    if not normalized:
        raise SchemaError("Extension vocabulary is empty")
    for extension in normalized:
        if not _EXTENSION_PATTERN.match(extension):
            raise SchemaError(f"Invalid extension: {extension!r}")

    # Longest first so that 'nii.gz' wins over a shorter match
    ordered_extensions = tuple(sorted(normalized, key=lambda e: (-len(e), e)))

    return CompiledPattern(
        entity_slots=tuple(slots),
        data_types=data_types,
        suffixes=suffixes,
        extensions=ordered_extensions
    )
