"""Command-line entry point for the Halo action importer.

Usage:
    halo-importer                      # Import every file under ./input
    halo-importer --input exports      # Import from another directory
    halo-importer --parse-only         # Classify rows without submitting

Settings are read from the environment; a ``.env`` file in the working
directory is loaded first without overriding variables already set.
"""

from __future__ import annotations

import asyncio
import sys
import typing as typ
from pathlib import Path

from cyclopts import App, Parameter
from dotenv import load_dotenv

from halo_importer import __version__
from halo_importer.config import ImporterConfig
from halo_importer.errors import (
    ImporterConfigError,
    ImporterError,
    NoInputFilesError,
)
from halo_importer.logging import configure_logging, get_logger, log_error, log_info
from halo_importer.sync.discovery import discover_files
from halo_importer.sync.runner import ImportRunner

if typ.TYPE_CHECKING:
    from halo_importer.sync.summary import ImportSummary

logger = get_logger(__name__)

DEFAULT_INPUT_DIR = Path("input")
LOG_DIR = Path("log")

app = App(
    name="halo-importer",
    help="Import ticket actions from CSV and spreadsheet exports into Halo",
    version=__version__,
)


async def run_import(
    config: ImporterConfig, input_dir: Path, *, parse_only: bool = False
) -> ImportSummary:
    """Discover files under ``input_dir`` and import them.

    Files are discovered before any network call, so an empty directory
    fails fast.
    """
    files = discover_files(input_dir)
    if not files:
        raise NoInputFilesError(input_dir)
    runner = ImportRunner(config, parse_only=parse_only)
    try:
        return await runner.run(files)
    finally:
        await runner.aclose()


@app.default
def run(
    *,
    input_dir: typ.Annotated[Path, Parameter(name="--input")] = DEFAULT_INPUT_DIR,
    parse_only: bool = False,
) -> int:
    """Import actions that Halo does not already hold.

    Args:
        input_dir: Directory containing .csv, .xlsx and .xls exports.
        parse_only: Authenticate and reconcile, then report what would be
            imported without submitting anything.

    Returns:
        Exit code (0 for success, 1 when the run could not complete).

    """
    load_dotenv(override=False)
    try:
        config = ImporterConfig.from_env()
    except ImporterConfigError as exc:
        configure_logging("INFO")
        log_error(logger, "Failed to load configuration: %s", exc)
        return 1

    try:
        configure_logging(config.log_level, log_dir=LOG_DIR)
    except OSError as exc:
        log_error(logger, "Failed to create log file in %s: %s", LOG_DIR, exc)
        return 1
    log_info(logger, "Starting Halo action importer")
    log_info(logger, "Configuration loaded successfully")
    try:
        asyncio.run(run_import(config, input_dir, parse_only=parse_only))
    except ImporterError as exc:
        log_error(logger, "Import failed: %s", exc)
        return 1
    return 0


def main() -> int:
    """Entry point for the CLI."""
    return app()


if __name__ == "__main__":
    sys.exit(main())
