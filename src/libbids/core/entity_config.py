"""
BIDS entity configuration.

This module provides the ordered entity definitions used to recognise and
decompose BIDS filenames, together with the fixed vocabularies of data type
directories, suffixes and extensions.
"""

from dataclasses import dataclass
from enum import Enum
import re
from typing import Iterable, Iterator, Optional

from .errors import SchemaError


class EntityFormat(Enum):
    """Value format of an entity in a filename."""

    LABEL = "label"
    """One or more alphanumeric characters."""

    INDEX = "index"
    """One or more digits."""


_KEY_PATTERN = re.compile(r'^[a-zA-Z0-9]+$')


@dataclass(frozen=True)
class EntityDef:
    """A single entity of the filename grammar."""

    key: str
    """Short identifier used in filenames (e.g., 'sub')."""

    display_name: str
    """Long column name (e.g., 'subject')."""

    value_format: EntityFormat = EntityFormat.LABEL
    """Declared value format."""

    allowed_values: Optional[tuple[str, ...]] = None
    """Literal values accepted instead of the format (e.g., for 'part')."""

    def value_regex(self) -> str:
        """
        Get the regular expression matching a value of this entity.

        Returns:
            A regex fragment without anchors.
        """
        if self.allowed_values is not None:
            return '(?:' + '|'.join(re.escape(v) for v in self.allowed_values) + ')'
        if self.value_format is EntityFormat.INDEX:
            return '[0-9]+'
        return '[a-zA-Z0-9]+'


class EntitySchema:
    """
    Immutable ordered sequence of entity definitions.

    The order is both the canonical order of entities in a filename and the
    order of the entity columns in a dataset table.
    """

    def __init__(self, entities: Iterable[EntityDef]):
        """
        Build a schema from entity definitions.

        Args:
            entities: Entity definitions in canonical order.

        Raises:
            SchemaError: If a key or display name is duplicated or malformed.
        """
        self._entities: tuple[EntityDef, ...] = tuple(entities)
        self._by_key: dict[str, EntityDef] = {}

        display_names = set()
        for entity in self._entities:
            if not isinstance(entity.value_format, EntityFormat):
                raise SchemaError(f"Unknown format for entity '{entity.key}': {entity.value_format!r}")
            if not _KEY_PATTERN.match(entity.key):
                raise SchemaError(f"Invalid entity key: {entity.key!r}")
            if not entity.display_name:
                raise SchemaError(f"Entity '{entity.key}' has no display name")
            if entity.key in self._by_key:
                raise SchemaError(f"Duplicate entity key: {entity.key}")
            if entity.display_name in display_names:
                raise SchemaError(f"Duplicate entity display name: {entity.display_name}")
            if entity.allowed_values is not None:
                if not entity.allowed_values:
                    raise SchemaError(f"Entity '{entity.key}' has an empty value enumeration")
                for value in entity.allowed_values:
                    if not _KEY_PATTERN.match(value):
                        raise SchemaError(f"Invalid literal value for entity '{entity.key}': {value!r}")
            self._by_key[entity.key] = entity
            display_names.add(entity.display_name)

    def __iter__(self) -> Iterator[EntityDef]:
        return iter(self._entities)

    def __len__(self) -> int:
        return len(self._entities)

    def __contains__(self, key: object) -> bool:
        return key in self._by_key

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EntitySchema):
            return NotImplemented
        return self._entities == other._entities

    def __hash__(self) -> int:
        return hash(self._entities)

    def __repr__(self) -> str:
        return f"EntitySchema({[e.key for e in self._entities]})"

    def get(self, key: str) -> Optional[EntityDef]:
        """Get an entity definition by key, or None."""
        return self._by_key.get(key)

    @property
    def keys(self) -> list[str]:
        """Entity keys in canonical order."""
        return [e.key for e in self._entities]

    @property
    def display_names(self) -> list[str]:
        """Entity display names in canonical order."""
        return [e.display_name for e in self._entities]

    def aliases(self) -> dict[str, str]:
        """
        Get the mapping from entity key to column name.

        Keys identical to their display name are left out.

        Returns:
            Dictionary mapping entity keys to display names.
        """
        return {e.key: e.display_name for e in self._entities if e.key != e.display_name}

    def extend(self, custom_entities: Iterable[EntityDef]) -> 'EntitySchema':
        """
        Create a new schema with custom entities appended after these ones.

        Args:
            custom_entities: Additional entity definitions, in their own order.

        Returns:
            A new EntitySchema.

        Raises:
            SchemaError: If a custom entity collides with an existing one.
        """
        return EntitySchema(list(self._entities) + list(custom_entities))


def entity_from_dict(data: dict) -> EntityDef:
    """
    Create an entity definition from a configuration dictionary.

    Expected keys are 'name' (the filename key), 'display_name', 'format'
    ('label' or 'index') and optionally 'values' (list of literal values).

    Args:
        data: The entity definition.

    Returns:
        An EntityDef.

    Raises:
        SchemaError: If a field is missing or the format is unknown.
    """
    try:
        key = data['name']
    except KeyError:
        raise SchemaError(f"Custom entity is missing 'name': {data!r}") from None

    fmt = data.get('format', 'label')
    try:
        value_format = EntityFormat(fmt)
    except ValueError:
        raise SchemaError(f"Unrecognized entity format '{fmt}' for entity '{key}'") from None

    values = data.get('values')
    return EntityDef(
        key=key,
        display_name=data.get('display_name', key),
        value_format=value_format,
        allowed_values=tuple(values) if values is not None else None
    )


# Built-in entities in canonical order
# Based on BIDS specification: https://bids-specification.readthedocs.io/
BUILTIN_ENTITIES: tuple[EntityDef, ...] = (
    EntityDef('sub', 'subject'),
    EntityDef('ses', 'session'),
    EntityDef('task', 'task'),
    EntityDef('acq', 'acquisition'),
    EntityDef('ce', 'ceagent'),
    EntityDef('rec', 'reconstruction'),
    EntityDef('dir', 'direction'),
    EntityDef('run', 'run', EntityFormat.INDEX),
    EntityDef('recording', 'recording'),
    EntityDef('mod', 'modality'),
    EntityDef('echo', 'echo', EntityFormat.INDEX),
    EntityDef('part', 'part', allowed_values=('mag', 'phase', 'real', 'imag')),
    EntityDef('chunk', 'chunk', EntityFormat.INDEX),
)

DATA_TYPES: tuple[str, ...] = (
    'anat',      # Anatomical MRI
    'func',      # Functional MRI
    'dwi',       # Diffusion MRI
    'fmap',      # Field maps
    'perf',      # Perfusion imaging
    'eeg',       # Electroencephalography
    'ieeg',      # Intracranial EEG
    'meg',       # Magnetoencephalography
    'beh',       # Behavioral data
    'pet',       # Positron Emission Tomography
    'micr',      # Microscopy
    'nirs',      # Near-Infrared Spectroscopy
    'motion',    # Motion tracking
)

SUFFIXES: tuple[str, ...] = (
    # Anatomical
    # UNIT1 cannot coexist with part- in a valid name, we accept it anyway
    'FLAIR', 'PDT2', 'PDw', 'T1w', 'T2starw', 'T2w', 'UNIT1', 'angio', 'inplaneT1', 'inplaneT2',
    # Parametric maps
    'Chimap', 'M0map', 'MTRmap', 'MTVmap', 'MTsat', 'MWFmap', 'PDmap', 'R1map', 'R2map',
    'R2starmap', 'RB1map', 'S0map', 'T1map', 'T1rho', 'T2map', 'T2starmap', 'TB1map',
    # Defacing mask
    'defacemask',
    # Deprecated anatomical
    'FLASH', 'PD', 'T2star',
    # Functional
    'bold', 'cbv', 'phase', 'sbref', 'noRF', 'events', 'physio', 'stim',
    # Diffusion
    'dwi',
    # Perfusion
    'asl', 'm0scan', 'aslcontext',
    # Field maps
    'magnitude1', 'magnitude2', 'phasediff', 'phase1', 'phase2', 'fieldmap', 'magnitude', 'epi',
)

EXTENSIONS: tuple[str, ...] = (
    'nii', 'nii.gz', 'json', 'json.gz', 'tsv', 'tsv.gz',
    'bval', 'bval.gz', 'bvec', 'bvec.gz',
)


def default_schema() -> EntitySchema:
    """
    Get the schema of built-in entities.

    Returns:
        An EntitySchema with the built-in entities in canonical order.
    """
    return EntitySchema(BUILTIN_ENTITIES)


def get_entity_display_name(entity_code: str, schema: Optional[EntitySchema] = None) -> str:
    """
    Get the column name for an entity code.

    Args:
        entity_code: The entity code (e.g., 'sub', 'ses', 'ce').
        schema: Schema to look in. Defaults to the built-in schema.

    Returns:
        The display name of the entity (e.g., 'subject', 'session', 'ceagent').
        If the entity code is not recognized, returns the code itself.
    """
    entity = (schema or default_schema()).get(entity_code)
    return entity.display_name if entity is not None else entity_code
