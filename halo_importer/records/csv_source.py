"""Delimited-text input adapter."""

from __future__ import annotations

import csv
import typing as typ

from halo_importer.records.decode import decode_record
from halo_importer.records.errors import (
    FieldValueError,
    RowFormatError,
    RowLocation,
    SourceReadError,
)
from halo_importer.records.fields import HeaderMap

if typ.TYPE_CHECKING:
    import collections.abc as cabc
    from pathlib import Path

    from halo_importer.records.models import ActionRecord

_ENCODING = "utf-8-sig"
# Undecodable bytes survive as lone surrogates so that each row can be
# checked on its own.
_DECODE_ERRORS = "surrogateescape"


def _data_rows(handle: typ.TextIO) -> cabc.Iterator[list[str]]:
    return (row for row in csv.reader(handle) if row)


def _undecodable_column(headers: tuple[str, ...], cells: list[str]) -> str | None:
    for index, cell in enumerate(cells):
        try:
            cell.encode("utf-8")
        except UnicodeEncodeError:
            if index < len(headers) and headers[index]:
                return headers[index]
            return f"column {index + 1}"
    return None


class CsvRecordSource:
    """Stream action records from a CSV file with a header row.

    The file is read twice: once when the source is opened, to count data
    rows for progress reporting, and again on every iteration. Each data row
    yields either an :class:`ActionRecord` or a :class:`RowFormatError`;
    bytes that are not valid UTF-8 fail only the row that holds them.
    """

    def __init__(self, path: Path, *, header: HeaderMap, total_rows: int) -> None:
        """Initialise from an already-inspected file; prefer :meth:`open`."""
        self.path = path
        self.name = path.name
        self._header = header
        self._total_rows = total_rows

    @classmethod
    def open(cls, path: Path) -> CsvRecordSource:
        """Inspect ``path`` and return a source ready to iterate.

        Raises
        ------
        SourceReadError
            If the file cannot be read or has no header row.

        """
        try:
            with path.open(
                encoding=_ENCODING, errors=_DECODE_ERRORS, newline=""
            ) as handle:
                rows = _data_rows(handle)
                header_row = next(rows, None)
                if header_row is None:
                    raise SourceReadError.no_header(path)
                header = HeaderMap.from_headers(header_row)
                total_rows = sum(1 for _ in rows)
        except (OSError, csv.Error) as exc:
            raise SourceReadError.cannot_open(path, str(exc)) from exc
        return cls(path, header=header, total_rows=total_rows)

    @property
    def total_rows(self) -> int:
        """Return the number of data rows counted when the source was opened."""
        return self._total_rows

    @property
    def headers(self) -> tuple[str, ...]:
        """Return the header row as read from the file."""
        return self._header.headers

    def __iter__(self) -> cabc.Iterator[ActionRecord | RowFormatError]:
        """Yield one decoded record or row error per data row."""
        try:
            with self.path.open(
                encoding=_ENCODING, errors=_DECODE_ERRORS, newline=""
            ) as handle:
                rows = _data_rows(handle)
                next(rows, None)
                for row_number, cells in enumerate(rows, start=1):
                    yield self._decode(row_number, cells)
        except (OSError, csv.Error) as exc:
            raise SourceReadError.cannot_open(self.path, str(exc)) from exc

    def _decode(
        self, row_number: int, cells: list[str]
    ) -> ActionRecord | RowFormatError:
        try:
            column = _undecodable_column(self._header.headers, cells)
            if column is not None:
                raise FieldValueError(column, "value is not valid UTF-8")
            return decode_record(self._header.project(cells))
        except FieldValueError as exc:
            return RowFormatError(
                RowLocation(self.name, row_number),
                str(exc),
                headers=self._header.headers,
                values=self._header.raw_values(cells),
            )
