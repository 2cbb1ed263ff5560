"""Errors raised while reading input files into action records."""

from __future__ import annotations

import dataclasses
import typing as typ

import msgspec

from halo_importer.errors import ImporterError

if typ.TYPE_CHECKING:
    from pathlib import Path


class FieldValueError(ImporterError):
    """Raised when one canonical field of a row cannot be decoded."""

    def __init__(self, field: str, reason: str) -> None:
        """Initialise with the canonical field name and a reason."""
        self.field = field
        self.reason = reason
        super().__init__(f"{field}: {reason}")

    @classmethod
    def missing_column(cls, field: str) -> FieldValueError:
        """Return an error for a required column absent from the header."""
        return cls(field, "missing field")

    @classmethod
    def blank(cls, field: str) -> FieldValueError:
        """Return an error for a required value that is empty."""
        return cls(field, "value is required")

    @classmethod
    def invalid(cls, field: str, value: object, expected: str) -> FieldValueError:
        """Return an error for a value of the wrong kind."""
        return cls(field, f"expected {expected}, got {value!r}")


@dataclasses.dataclass(frozen=True, slots=True)
class RowLocation:
    """Position of a data row inside an input file.

    ``row_number`` counts data rows from 1, excluding the header.
    """

    file_name: str
    row_number: int
    sheet_name: str | None = None


def _render_values(values: typ.Mapping[str, object]) -> str:
    return msgspec.json.encode(dict(values), enc_hook=str).decode()


class RowFormatError(ImporterError):
    """Raised for a data row that cannot become an action record.

    Attributes
    ----------
    location
        File, row and (for spreadsheets) worksheet of the failing row.
    reason
        Description of the first field that failed.
    headers
        Header names available in the source.
    values
        Raw header-to-value map of the row, when available.

    """

    def __init__(
        self,
        location: RowLocation,
        reason: str,
        *,
        headers: tuple[str, ...] = (),
        values: typ.Mapping[str, object] | None = None,
    ) -> None:
        """Initialise with the row location and the failure context."""
        self.location = location
        self.reason = reason
        self.headers = headers
        self.values = dict(values) if values is not None else None
        super().__init__(self._describe())

    @property
    def row_number(self) -> int:
        """Return the 1-based data row number."""
        return self.location.row_number

    @property
    def file_name(self) -> str:
        """Return the source file name."""
        return self.location.file_name

    def _describe(self) -> str:
        where = self.location
        if where.sheet_name is None:
            return (
                f"failed to decode row {where.row_number} in csv file "
                f"'{where.file_name}': {self.reason}"
            )
        message = (
            f"failed to decode row {where.row_number} in worksheet "
            f"'{where.sheet_name}' of excel file '{where.file_name}': "
            f"Available fields: [{', '.join(self.headers)}]. Error: {self.reason}"
        )
        if self.values is not None:
            message = f"{message} (data: {_render_values(self.values)})"
        return message


class SourceReadError(ImporterError):
    """Raised when an input file cannot be opened or has no usable sheet."""

    def __init__(self, path: Path, reason: str) -> None:
        """Initialise with the offending path and a reason."""
        self.path = path
        super().__init__(f"failed to read '{path.name}': {reason}")

    @classmethod
    def cannot_open(cls, path: Path, detail: str) -> SourceReadError:
        """Return an error for a file that could not be opened or parsed."""
        return cls(path, f"could not open file ({detail})")

    @classmethod
    def no_worksheets(cls, path: Path) -> SourceReadError:
        """Return an error for a workbook without worksheets."""
        return cls(path, "workbook has no worksheets")

    @classmethod
    def no_header(cls, path: Path, sheet_name: str | None = None) -> SourceReadError:
        """Return an error for a source without a header row."""
        where = f"worksheet '{sheet_name}'" if sheet_name else "file"
        return cls(path, f"{where} has no header row")


class UnsupportedSourceError(ImporterError):
    """Raised for a file whose extension has no record adapter."""

    def __init__(self, path: Path) -> None:
        """Initialise with the unsupported path."""
        self.path = path
        super().__init__(
            f"unsupported input file '{path.name}': expected .csv, .xlsx or .xls"
        )


__all__ = [
    "FieldValueError",
    "RowFormatError",
    "RowLocation",
    "SourceReadError",
    "UnsupportedSourceError",
]
