"""Select an input adapter for a file."""

from __future__ import annotations

import typing as typ

from halo_importer.records.csv_source import CsvRecordSource
from halo_importer.records.errors import UnsupportedSourceError
from halo_importer.records.excel_source import ExcelRecordSource

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from halo_importer.records.errors import RowFormatError
    from halo_importer.records.models import ActionRecord


class RecordSource(typ.Protocol):
    """Re-iterable stream of decoded rows from one input file."""

    @property
    def name(self) -> str:
        """Return the display name of the source file."""
        ...

    @property
    def total_rows(self) -> int | None:
        """Return the number of data rows, when known."""
        ...

    def __iter__(self) -> cabc.Iterator[ActionRecord | RowFormatError]:
        """Yield one decoded record or row error per data row."""
        ...


_ADAPTERS: dict[str, cabc.Callable[[Path], RecordSource]] = {
    ".csv": CsvRecordSource.open,
    ".xlsx": ExcelRecordSource.open,
    ".xls": ExcelRecordSource.open,
}

SUPPORTED_SUFFIXES: frozenset[str] = frozenset(_ADAPTERS)


def is_supported(path: Path) -> bool:
    """Return True when ``path`` has an extension with an adapter."""
    return path.suffix.lower() in SUPPORTED_SUFFIXES


def open_record_source(path: Path) -> RecordSource:
    """Open ``path`` with the adapter matching its extension.

    Raises
    ------
    UnsupportedSourceError
        If the extension is not ``.csv``, ``.xlsx`` or ``.xls``.
    SourceReadError
        If the file cannot be opened.

    """
    adapter = _ADAPTERS.get(path.suffix.lower())
    if adapter is None:
        raise UnsupportedSourceError(path)
    return adapter(path)
