"""
Locations of the files libbids keeps between runs (settings and logs).

The data directory can be moved with the LIBBIDS_DATA_DIR environment
variable, e.g. for batch jobs on a cluster with a read-only home.
"""

import os
import platform
from pathlib import Path


APP_NAME = "libbids"
DATA_DIR_ENV = "LIBBIDS_DATA_DIR"

SETTINGS_FILE_NAME = "settings.json"
LOG_FILE_NAME = "log.txt"
OLD_LOG_FILE_NAME = "log.old.txt"


def _platform_base_directory() -> Path:
    system = platform.system()

    if system == "Windows":
        return Path.home() / "AppData" / "LocalLow"
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support"

    xdg_config = os.environ.get("XDG_CONFIG_HOME")
    return Path(xdg_config) if xdg_config else Path.home() / ".config"


def get_persistent_data_directory() -> Path:
    """
    Get the persistent data directory, creating it if needed.

    Returns:
        $LIBBIDS_DATA_DIR if set, otherwise the platform location:

        - Windows: %APPDATA%/LocalLow/libbids
        - macOS: ~/Library/Application Support/libbids
        - Linux: $XDG_CONFIG_HOME/libbids (default ~/.config/libbids)
    """
    override = os.environ.get(DATA_DIR_ENV)
    data_dir = Path(override) if override else _platform_base_directory() / APP_NAME
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def get_settings_file_path() -> Path:
    """Path to settings.json in the persistent data directory."""
    return get_persistent_data_directory() / SETTINGS_FILE_NAME


def get_log_file_path() -> Path:
    """Path to the current run's log file."""
    return get_persistent_data_directory() / LOG_FILE_NAME


def get_old_log_file_path() -> Path:
    """Path to the previous run's log file."""
    return get_persistent_data_directory() / OLD_LOG_FILE_NAME
