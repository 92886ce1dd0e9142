"""
Command-line interface for libbids.

Scans a BIDS dataset and prints its table to standard output.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .. import __version__
from ..config.settings import get_settings
from ..core.errors import LibBidsError
from ..core.repository import BidsRepository
from ..infrastructure.logging_config import get_logger, parse_log_level, setup_logging
from ..infrastructure.tsv_loader import COMMA, write_table


logger = get_logger(__name__)


def create_parser() -> argparse.ArgumentParser:
    """
    Create the argument parser for the CLI.

    Returns:
        Configured ArgumentParser.
    """
    parser = argparse.ArgumentParser(
        prog="libbids",
        description="Print the file table of a BIDS dataset"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"libbids {__version__}"
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )

    parser.add_argument(
        "--csv",
        action="store_true",
        help="Separate fields with commas instead of the configured delimiter"
    )

    parser.add_argument(
        "--no-log-file",
        action="store_true",
        help="Do not write a log file"
    )

    parser.add_argument("dataset", type=Path, help="Path to BIDS dataset")

    return parser


def cmd_table(args: argparse.Namespace) -> int:
    """
    Scan the dataset and print its table.

    Args:
        args: Parsed command-line arguments.

    Returns:
        Exit code (0 for success).
    """
    settings = get_settings()
    delimiter = COMMA if args.csv else settings.delimiter

    try:
        repository = BidsRepository(args.dataset, settings=settings)
        table = repository.load()
    except (FileNotFoundError, NotADirectoryError) as e:
        logger.error(str(e))
        return 1
    except LibBidsError as e:
        logger.error(f"Failed to build table: {e}")
        return 1

    write_table(table, sys.stdout, delimiter)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    Main entry point for the CLI.

    Args:
        argv: Command-line arguments. Defaults to sys.argv[1:].

    Returns:
        Exit code.
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    settings = get_settings()

    # Setup logging
    bad_level = None
    if args.verbose:
        log_level = logging.DEBUG
    else:
        try:
            log_level = parse_log_level(settings.log_level)
        except ValueError as e:
            bad_level = e
            log_level = logging.INFO

    setup_logging(
        level=log_level,
        log_file=settings.log_file_path,
        log_to_file=settings.log_to_file and not args.no_log_file
    )
    if bad_level is not None:
        logger.warning(f"{bad_level}, using INFO")

    return cmd_table(args)


if __name__ == "__main__":
    sys.exit(main())
