"""
Logging configuration for libbids.

Standard output carries the serialized table, so console messages go to
standard error with a short format. The optional log file keeps the full,
timestamped format and is rotated once per run (log.txt -> log.old.txt).
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

from .paths import get_log_file_path, get_old_log_file_path


CONSOLE_FORMAT = "%(levelname)s: %(message)s"
FILE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def parse_log_level(level: Union[int, str]) -> int:
    """
    Convert a log level setting to a logging level number.

    Args:
        level: A level number or a level name such as 'DEBUG' (any case).

    Returns:
        The level number.

    Raises:
        ValueError: If the name is not a known level.
    """
    if isinstance(level, int):
        return level

    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


def rotate_log_files(log_file: Optional[Path] = None, old_log_file: Optional[Path] = None) -> None:
    """
    Keep the previous run's log next to the new one.

    An existing log file replaces the old log file (log.txt -> log.old.txt),
    so at most two runs are kept. Failures are reported on stderr and do not
    stop the program.

    Args:
        log_file: Current log file. Defaults to the persistent log file.
        old_log_file: Where to move it. Defaults to '<stem>.old<suffix>'
            next to log_file.
    """
    if log_file is None:
        log_file = get_log_file_path()
        old_log_file = old_log_file or get_old_log_file_path()
    elif old_log_file is None:
        old_log_file = log_file.with_name(f"{log_file.stem}.old{log_file.suffix}")

    if not log_file.exists():
        return

    try:
        log_file.replace(old_log_file)
    except OSError as e:
        print(f"Warning: Could not rotate log file {log_file}: {e}", file=sys.stderr)


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
    log_to_file: bool = True
) -> None:
    """
    Configure logging for a libbids run.

    Args:
        level: Logging level number or name.
        log_file: Log file path. Defaults to log.txt in the persistent data directory.
        format_string: Format for both handlers. Defaults to CONSOLE_FORMAT on
            stderr and FILE_FORMAT in the log file.
        log_to_file: Whether to write a log file.
    """
    level = parse_log_level(level)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(logging.Formatter(format_string or CONSOLE_FORMAT))
    handlers: list[logging.Handler] = [console_handler]

    if log_to_file:
        if log_file is None:
            log_file = get_log_file_path()
        rotate_log_files(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_file, encoding='utf-8', mode='w')
        file_handler.setFormatter(logging.Formatter(format_string or FILE_FORMAT))
        handlers.append(file_handler)

    for handler in handlers:
        handler.setLevel(level)

    # Replace handlers left by an earlier configuration
    logging.basicConfig(level=level, handlers=handlers, force=True)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance for a module.

    Args:
        name: Logger name (typically __name__).

    Returns:
        A configured logger instance.
    """
    return logging.getLogger(name)
