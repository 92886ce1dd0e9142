"""
Repository pattern for accessing BIDS dataset tables.

This module provides a clean interface for scanning a BIDS dataset into a
DatasetTable without exposing the discovery and decomposition steps.
"""

from pathlib import Path
from typing import Callable, Optional

from ..config.settings import LibBidsSettings, get_settings
from ..infrastructure.bids_loader import BidsLoader, is_bids_dataset
from ..infrastructure.logging_config import get_logger
from .decomposer import build_table, table_header
from .entity_config import EntitySchema
from .models import DatasetTable
from .patterns import CompiledPattern

logger = get_logger(__name__)


class BidsRepository:
    """
    Repository for scanning BIDS datasets into tables.

    The schema and the filename matcher are compiled once, when the
    repository is created.
    """

    def __init__(self, root_path: Path, settings: Optional[LibBidsSettings] = None):
        """
        Initialize the repository with a BIDS dataset root path.

        Args:
            root_path: Path to the root directory of a BIDS dataset.
            settings: Settings to use. Defaults to the global settings.

        Raises:
            FileNotFoundError: If the root path does not exist.
            NotADirectoryError: If the path is not a directory.
            SchemaError: If the configured schema or vocabularies are invalid.
        """
        self.root_path = Path(root_path)
        self._settings = settings if settings is not None else get_settings()
        self._dataset: Optional[DatasetTable] = None

        if not self.root_path.exists():
            raise FileNotFoundError(f"Dataset path does not exist: {self.root_path}")

        if not self.root_path.is_dir():
            raise NotADirectoryError(f"Path is not a directory: {self.root_path}")

        if not is_bids_dataset(self.root_path):
            logger.warning(f"No dataset_description.json in {self.root_path}, scanning anyway")

        self.schema: EntitySchema = self._settings.build_schema()
        self.pattern: CompiledPattern = self._settings.build_pattern(self.schema)
        self.header: tuple[str, ...] = table_header(self.schema)

    def load(self, progress_callback: Optional[Callable[[int, int, str], None]] = None) -> DatasetTable:
        """
        Scan the dataset and build its table.

        Args:
            progress_callback: Optional callback function(current, total, message) for progress updates.

        Returns:
            The DatasetTable, one row per matching file.
        """
        logger.info(f"Loading BIDS dataset from: {self.root_path}")

        loader = BidsLoader(self.root_path, progress_callback=progress_callback)
        self._dataset = build_table(loader.iter_candidate_paths(), self.pattern, self.schema, self.header)
        return self._dataset

    def get_dataset(self) -> Optional[DatasetTable]:
        """
        Get the most recently loaded table.

        Returns:
            The DatasetTable, or None if not yet loaded.
        """
        return self._dataset
