"""
JSON sidecar loading.

This module decodes JSON sidecar files into flat maps of top-level keys to
type-tagged values (SidecarValue).
"""

import json
from pathlib import Path
from typing import Any, Mapping

from ..core.models import NA, SidecarValue, SidecarValueType
from .logging_config import get_logger

logger = get_logger(__name__)


def _compact(value: Any) -> str:
    return json.dumps(value, separators=(',', ':'), ensure_ascii=False)


def _item_text(item: Any) -> str:
    if isinstance(item, str):
        return item
    return _compact(item)


def to_sidecar_value(value: Any) -> SidecarValue:
    """
    Tag a decoded JSON value with its type.

    Args:
        value: A value produced by json.load.

    Returns:
        The SidecarValue. Array items are converted to text; nested arrays
        and objects inside an array are re-serialized.
    """
    # bool is a subclass of int, so it must be checked first
    if isinstance(value, bool):
        return SidecarValue(SidecarValueType.BOOLEAN, value)
    if isinstance(value, (int, float)):
        return SidecarValue(SidecarValueType.NUMBER, value)
    if isinstance(value, str):
        return SidecarValue(SidecarValueType.STRING, value)
    if isinstance(value, list):
        return SidecarValue(SidecarValueType.ARRAY, tuple(_item_text(item) for item in value))
    if isinstance(value, dict):
        return SidecarValue(SidecarValueType.OBJECT, _compact(value))
    if value is None:
        return SidecarValue(SidecarValueType.NULL, None)
    raise TypeError(f"Unsupported JSON value type: {type(value).__name__}")


def flatten_json(data: Mapping[str, Any]) -> dict[str, SidecarValue]:
    """
    Convert a decoded JSON object into a flat map of tagged values.

    Args:
        data: The decoded top-level JSON object.

    Returns:
        Dictionary mapping each top-level key to its SidecarValue, in file order.
    """
    return {key: to_sidecar_value(value) for key, value in data.items()}


def load_sidecar(file_path: Path) -> dict[str, SidecarValue]:
    """
    Load and flatten a JSON sidecar file.

    Args:
        file_path: Path to the JSON file.

    Returns:
        Dictionary mapping top-level keys to SidecarValues.

    Raises:
        OSError: If the file cannot be read.
        json.JSONDecodeError: If the file is not valid JSON.
        ValueError: If the top-level value is not an object.
    """
    with open(file_path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Sidecar top level is not a JSON object: {file_path}")

    return flatten_json(data)


def load_record_sidecar(record: Mapping[str, str]) -> dict[str, SidecarValue]:
    """
    Load the sidecar referenced by a record's json_path column.

    Args:
        record: A header-keyed record from a table with a json_path column.

    Returns:
        The flattened sidecar, or an empty dictionary if json_path is NA or missing.

    Raises:
        OSError: If the referenced file cannot be read.
        json.JSONDecodeError: If the referenced file is not valid JSON.
    """
    json_path = record.get('json_path', NA)
    if json_path == NA:
        return {}

    logger.debug(f"Loading sidecar: {json_path}")
    return load_sidecar(Path(json_path))
