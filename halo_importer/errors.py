"""Top-level importer errors."""

from __future__ import annotations

import typing as typ

if typ.TYPE_CHECKING:
    from pathlib import Path


class ImporterError(Exception):
    """Base class for every error raised by the importer.

    The CLI catches this type to turn a failed run into a logged error and a
    non-zero exit status.
    """


class ImporterConfigError(ImporterError):
    """Raised when environment configuration is missing or invalid."""

    @classmethod
    def missing(cls, key: str) -> ImporterConfigError:
        """Return an error for a required environment variable that is unset."""
        return cls(f"missing required environment variable: {key}")

    @classmethod
    def invalid(cls, key: str, value: str, constraint: str) -> ImporterConfigError:
        """Return an error for an environment value that fails validation."""
        return cls(f"invalid value for {key}: {value!r} ({constraint})")


class InputDirectoryError(ImporterError):
    """Raised when the input directory cannot be listed."""

    def __init__(self, directory: Path, reason: str) -> None:
        """Initialise with the offending directory and a reason."""
        self.directory = directory
        super().__init__(f"Input directory '{directory}' {reason}")


class NoInputFilesError(ImporterError):
    """Raised when a run is started without any importable files."""

    def __init__(self, directory: Path | None = None) -> None:
        """Initialise with the directory that was searched, when known."""
        self.directory = directory
        where = f" in input directory: {directory}" if directory else ""
        super().__init__(f"No CSV or Excel files found{where}. Nothing to process.")
