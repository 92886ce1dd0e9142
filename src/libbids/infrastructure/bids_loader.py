"""
BIDS dataset file discovery.

This module is responsible for reading BIDS datasets from the filesystem
and listing the candidate paths that the core turns into a table.
"""

import json
from pathlib import Path
from typing import Callable, Iterator, Optional

from .logging_config import get_logger

logger = get_logger(__name__)


ProgressCallback = Callable[[int, int, str], None]


class BidsLoader:
    """
    Lists candidate dataset files under a BIDS root.

    Subject directories (sub-*) and derivative pipelines
    (derivatives/<pipeline>/) are walked recursively. Entries are visited in
    sorted order, so the output only depends on the directory contents.
    Hidden files and directories are skipped.
    """

    def __init__(self, root_path: Path, progress_callback: Optional[ProgressCallback] = None):
        """
        Initialize the loader with a dataset root path.

        Args:
            root_path: Path to the root directory of a BIDS dataset.
            progress_callback: Optional callback function(current, total, message) for progress updates.
        """
        self.root_path = Path(root_path)
        self.progress_callback = progress_callback

    def _top_level_directories(self) -> list[Path]:
        """
        Get the directories to walk, in order.

        Returns:
            Subject directories followed by derivative pipeline directories.
        """
        directories = [p for p in sorted(self.root_path.glob('sub-*')) if p.is_dir()]

        derivatives_root = self.root_path / "derivatives"
        if derivatives_root.is_dir():
            for pipeline_dir in sorted(derivatives_root.iterdir()):
                if pipeline_dir.is_dir() and not pipeline_dir.name.startswith('.'):
                    directories.append(pipeline_dir)

        return directories

    def _walk(self, directory: Path) -> Iterator[Path]:
        """
        Recursively list the files below a directory in sorted order.

        Anything that is not a directory is reported as a file, including
        broken symbolic links (e.g., annexed content that is not present).
        """
        for entry in sorted(directory.iterdir()):
            if entry.name.startswith('.'):
                continue
            if entry.is_dir():
                yield from self._walk(entry)
            else:
                yield entry

    def iter_candidate_paths(self) -> Iterator[str]:
        """
        Iterate over candidate file paths.

        Yields:
            POSIX-style path strings starting with the root path.

        Raises:
            FileNotFoundError: If root_path does not exist.
            NotADirectoryError: If root_path is not a directory.
        """
        if not self.root_path.exists():
            raise FileNotFoundError(f"Dataset path does not exist: {self.root_path}")

        if not self.root_path.is_dir():
            raise NotADirectoryError(f"Path is not a directory: {self.root_path}")

        directories = self._top_level_directories()
        total = len(directories)
        logger.debug(f"Scanning {total} top-level directories under {self.root_path}")

        for idx, directory in enumerate(directories):
            if self.progress_callback:
                self.progress_callback(idx + 1, total, f"Scanning: {directory.name}")

            for file_path in self._walk(directory):
                yield file_path.as_posix()

    def candidate_paths(self) -> list[str]:
        """
        List candidate file paths.

        Returns:
            All candidate paths, in discovery order.
        """
        paths = list(self.iter_candidate_paths())
        logger.info(f"Found {len(paths)} candidate files under {self.root_path}")
        return paths


def is_bids_dataset(path: Path) -> bool:
    """
    Quick check if a directory appears to be a BIDS dataset.

    Args:
        path: Path to check.

    Returns:
        True if the directory contains a dataset_description.json file.
    """
    return (Path(path) / "dataset_description.json").exists()


def get_bids_version(dataset_path: Path) -> Optional[str]:
    """
    Get the BIDS version of a dataset.

    Args:
        dataset_path: Path to the BIDS dataset root.

    Returns:
        BIDS version string, or None if not found.
    """
    desc_path = Path(dataset_path) / "dataset_description.json"

    if not desc_path.exists():
        logger.warning(f"dataset_description.json not found at: {desc_path}")
        return None

    try:
        with open(desc_path, 'r', encoding='utf-8') as f:
            desc = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in dataset_description.json: {e}")
        return None
    except OSError as e:
        logger.error(f"Failed to read dataset_description.json: {e}")
        return None

    if not isinstance(desc, dict):
        logger.warning(f"dataset_description.json is not a JSON object: {desc_path}")
        return None

    bids_version = desc.get("BIDSVersion")
    if bids_version is None:
        logger.warning(f"BIDSVersion field missing in: {desc_path}")

    return bids_version
