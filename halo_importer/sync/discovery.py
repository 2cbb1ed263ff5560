"""Locate importable files in the input directory."""

from __future__ import annotations

import typing as typ

from halo_importer.errors import InputDirectoryError
from halo_importer.records.sources import is_supported

if typ.TYPE_CHECKING:
    from pathlib import Path


def discover_files(directory: Path) -> list[tuple[Path, str]]:
    """Return ``(path, display_name)`` pairs for importable files.

    Only regular files with a ``.csv``, ``.xlsx`` or ``.xls`` extension are
    returned, sorted by name. Subdirectories are not searched.

    Raises
    ------
    InputDirectoryError
        If ``directory`` is missing, is not a directory or cannot be listed.

    """
    if not directory.exists():
        raise InputDirectoryError(directory, "does not exist")
    if not directory.is_dir():
        raise InputDirectoryError(directory, "is not a directory")
    try:
        entries = list(directory.iterdir())
    except OSError as exc:
        raise InputDirectoryError(directory, f"could not be read: {exc}") from exc
    files = [path for path in entries if path.is_file() and is_supported(path)]
    return [(path, path.name) for path in sorted(files, key=lambda path: path.name)]
