"""Spreadsheet input adapter for ``.xlsx`` and ``.xls`` workbooks."""

from __future__ import annotations

import dataclasses
import typing as typ
import zipfile

import openpyxl
import xlrd
from openpyxl.utils.exceptions import InvalidFileException
from xlrd.compdoc import CompDocError

from halo_importer.records.decode import decode_record, is_blank_row
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

_Row = list[object]


@dataclasses.dataclass(frozen=True, slots=True)
class _SheetGrid:
    """First worksheet of a workbook, loaded into memory."""

    name: str
    rows: list[_Row]


def _load_xlsx(path: Path) -> _SheetGrid:
    try:
        workbook = openpyxl.load_workbook(path, read_only=True, data_only=True)
    except (OSError, InvalidFileException, zipfile.BadZipFile, KeyError) as exc:
        raise SourceReadError.cannot_open(path, str(exc)) from exc
    try:
        if not workbook.worksheets:
            raise SourceReadError.no_worksheets(path)
        sheet = workbook.worksheets[0]
        rows = [list(row) for row in sheet.iter_rows(values_only=True)]
        return _SheetGrid(name=sheet.title, rows=rows)
    finally:
        workbook.close()


def _xls_cell(value: object) -> object:
    # xlrd reports empty cells as empty strings
    return None if value == "" else value


def _load_xls(path: Path) -> _SheetGrid:
    try:
        book = xlrd.open_workbook(str(path), on_demand=True)
    except (OSError, xlrd.XLRDError, CompDocError) as exc:
        raise SourceReadError.cannot_open(path, str(exc)) from exc
    try:
        if book.nsheets == 0:
            raise SourceReadError.no_worksheets(path)
        sheet = book.sheet_by_index(0)
        rows = [
            [_xls_cell(value) for value in sheet.row_values(index)]
            for index in range(sheet.nrows)
        ]
        return _SheetGrid(name=sheet.name, rows=rows)
    finally:
        book.release_resources()


_LOADERS: dict[str, cabc.Callable[[Path], _SheetGrid]] = {
    ".xlsx": _load_xlsx,
    ".xls": _load_xls,
}


class ExcelRecordSource:
    """Yield action records from the first worksheet of a workbook.

    The first row is the header. Rows shorter than the header are padded
    with empty cells, and rows in which every cell is empty are skipped
    without being reported. Numeric timestamps are read as spreadsheet date
    serials.
    """

    def __init__(self, path: Path, grid: _SheetGrid) -> None:
        """Initialise from a loaded grid; prefer :meth:`open`."""
        if not grid.rows or is_blank_row(grid.rows[0]):
            raise SourceReadError.no_header(path, grid.name)
        self.path = path
        self.name = path.name
        self.sheet_name = grid.name
        self._header = HeaderMap.from_headers(grid.rows[0])
        width = len(self._header.headers)
        self._rows = [
            row + [None] * (width - len(row)) if len(row) < width else row
            for row in grid.rows[1:]
        ]

    @classmethod
    def open(cls, path: Path) -> ExcelRecordSource:
        """Load the first worksheet of ``path``.

        Raises
        ------
        SourceReadError
            If the workbook cannot be opened, has no worksheets or its first
            worksheet is empty.

        """
        loader = _LOADERS.get(path.suffix.lower(), _load_xlsx)
        return cls(path, loader(path))

    @property
    def total_rows(self) -> int:
        """Return the number of non-blank data rows."""
        return sum(1 for row in self._rows if not is_blank_row(row))

    @property
    def headers(self) -> tuple[str, ...]:
        """Return the header row of the worksheet."""
        return self._header.headers

    def __iter__(self) -> cabc.Iterator[ActionRecord | RowFormatError]:
        """Yield one decoded record or row error per non-blank data row."""
        for row_number, cells in enumerate(self._rows, start=1):
            if not is_blank_row(cells):
                yield self._decode(row_number, cells)

    def _decode(self, row_number: int, cells: _Row) -> ActionRecord | RowFormatError:
        try:
            return decode_record(self._header.project(cells), allow_serial=True)
        except FieldValueError as exc:
            return RowFormatError(
                RowLocation(self.name, row_number, self.sheet_name),
                str(exc),
                headers=self._header.headers,
                values=self._header.raw_values(cells),
            )
