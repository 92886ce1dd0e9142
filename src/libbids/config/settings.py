"""
Persistent libbids settings.

Settings live in a JSON file in the persistent data directory (see
libbids.infrastructure.paths). They control logging, the output delimiter,
and extensions of the filename grammar: custom entities, suffixes and
extensions, which are appended after the built-in vocabularies.

Example:
    from libbids.config.settings import get_settings_manager

    manager = get_settings_manager()
    manager.update(custom_entities=[
        {"name": "trc", "display_name": "tracer", "format": "label"}
    ])
    schema = manager.get().build_schema()
"""

import json
import logging
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Optional, Union

from ..core.entity_config import (
    DATA_TYPES,
    EXTENSIONS,
    SUFFIXES,
    EntitySchema,
    default_schema,
    entity_from_dict,
)
from ..core.patterns import CompiledPattern, compile_pattern
from ..infrastructure.paths import get_settings_file_path


@dataclass
class LibBidsSettings:
    """Settings for scanning and printing dataset tables."""

    log_level: Union[int, str] = logging.INFO
    """Level number or name (e.g., 'DEBUG')."""

    log_to_file: bool = True
    """Whether runs write a log file."""

    log_file_path: Optional[Path] = None
    """Log file location. None uses log.txt in the persistent data directory."""

    delimiter: str = "\t"
    """Field separator of the printed table."""

    custom_entities: list[dict] = field(default_factory=list)
    """Entity definitions ({'name', 'display_name', 'format', 'values'}) added after the built-ins."""

    extra_suffixes: list[str] = field(default_factory=list)
    """Suffixes accepted in addition to the built-in vocabulary."""

    extra_extensions: list[str] = field(default_factory=list)
    """Extensions accepted in addition to the built-in vocabulary."""

    def build_schema(self) -> EntitySchema:
        """
        Build the entity schema: built-in entities followed by custom ones.

        Returns:
            The merged EntitySchema.

        Raises:
            SchemaError: If a custom entity is invalid or collides with a built-in.
        """
        schema = default_schema()
        if not self.custom_entities:
            return schema
        return schema.extend(entity_from_dict(data) for data in self.custom_entities)

    def build_pattern(self, schema: Optional[EntitySchema] = None) -> CompiledPattern:
        """
        Compile the filename matcher for these settings.

        Args:
            schema: Schema to compile. Defaults to build_schema().

        Returns:
            The CompiledPattern.

        Raises:
            SchemaError: If the schema or a vocabulary is invalid.
        """
        if schema is None:
            schema = self.build_schema()
        return compile_pattern(
            schema,
            data_types=DATA_TYPES,
            suffixes=SUFFIXES + tuple(self.extra_suffixes),
            extensions=EXTENSIONS + tuple(self.extra_extensions)
        )


def _check_value(name: str, value: Any) -> Optional[str]:
    """Return a problem description if a loaded value has the wrong shape."""
    if name == 'log_level':
        ok = isinstance(value, (int, str)) and not isinstance(value, bool)
    elif name == 'log_to_file':
        ok = isinstance(value, bool)
    elif name == 'log_file_path':
        ok = value is None or isinstance(value, str)
    elif name == 'delimiter':
        ok = isinstance(value, str) and len(value) == 1 and value != '\n'
    elif name == 'custom_entities':
        ok = isinstance(value, list) and all(isinstance(v, dict) for v in value)
    else:
        ok = isinstance(value, list) and all(isinstance(v, str) for v in value)
    return None if ok else f"invalid value for '{name}': {value!r}"


class SettingsManager:
    """
    Reads and writes LibBidsSettings as JSON.

    Unknown keys and values of the wrong type are skipped with a warning; an
    unreadable file leaves the defaults in place.
    """

    def __init__(self, config_file: Optional[Path] = None):
        """
        Args:
            config_file: Settings file. Defaults to settings.json in the
                persistent data directory.
        """
        self.config_file = Path(config_file) if config_file is not None else get_settings_file_path()
        self._settings = LibBidsSettings()
        self._logger = logging.getLogger(__name__)

    def load(self) -> LibBidsSettings:
        """
        Read the settings file into the current settings.

        Returns:
            The current settings.
        """
        if not self.config_file.exists():
            self._logger.info(f"No settings file at {self.config_file}, using defaults")
            return self._settings

        try:
            with open(self.config_file, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            self._logger.error(f"Could not read settings from {self.config_file}: {e}. Using defaults.")
            return self._settings

        if not isinstance(data, dict):
            self._logger.error(f"{self.config_file} does not hold a JSON object. Using defaults.")
            return self._settings

        known = {f.name for f in fields(LibBidsSettings)}
        for name, value in data.items():
            if name not in known:
                self._logger.warning(f"Ignoring unknown setting: {name}")
                continue
            problem = _check_value(name, value)
            if problem is not None:
                self._logger.warning(f"Ignoring {problem}")
                continue
            if name == 'log_file_path' and value is not None:
                value = Path(value)
            setattr(self._settings, name, value)

        self._logger.info(f"Settings loaded from {self.config_file}")
        return self._settings

    def save(self, settings: Optional[LibBidsSettings] = None) -> None:
        """
        Write the settings file, replacing it atomically.

        Args:
            settings: Settings to store and make current. Defaults to the
                current settings.

        Raises:
            OSError: If the file cannot be written.
        """
        if settings is not None:
            self._settings = settings

        data = asdict(self._settings)
        if data['log_file_path'] is not None:
            data['log_file_path'] = Path(data['log_file_path']).as_posix()

        self.config_file.parent.mkdir(parents=True, exist_ok=True)
        temp_file = self.config_file.with_suffix('.tmp')
        with open(temp_file, 'w', encoding='utf-8') as f:
            json.dump(data, f, indent=2, ensure_ascii=False)
        temp_file.replace(self.config_file)

        self._logger.info(f"Settings saved to {self.config_file}")

    def get(self) -> LibBidsSettings:
        """The current settings."""
        return self._settings

    def update(self, **kwargs) -> None:
        """
        Change some settings and save.

        Args:
            **kwargs: Setting names and values. Unknown names are ignored
                with a warning.
        """
        known = {f.name for f in fields(LibBidsSettings)}
        for name, value in kwargs.items():
            if name in known:
                setattr(self._settings, name, value)
            else:
                self._logger.warning(f"Ignoring unknown setting: {name}")

        self.save()

    def reset_to_defaults(self) -> None:
        """Restore and save the default settings."""
        self.save(LibBidsSettings())


_settings_manager: Optional[SettingsManager] = None


def get_settings_manager() -> SettingsManager:
    """
    Get the process-wide settings manager, loading it on first use.

    Returns:
        The global SettingsManager.
    """
    global _settings_manager
    if _settings_manager is None:
        _settings_manager = SettingsManager()
        _settings_manager.load()
    return _settings_manager


def get_settings() -> LibBidsSettings:
    """Get the process-wide settings."""
    return get_settings_manager().get()
