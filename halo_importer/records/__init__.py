"""Input file adapters that normalise rows into action records."""

from __future__ import annotations

from .csv_source import CsvRecordSource
from .decode import decode_record
from .errors import (
    FieldValueError,
    RowFormatError,
    RowLocation,
    SourceReadError,
    UnsupportedSourceError,
)
from .excel_source import ExcelRecordSource
from .fields import FIELD_SPECS, FieldKind, FieldSpec, HeaderMap
from .models import DEFAULT_OUTCOME, ActionRecord
from .sources import (
    SUPPORTED_SUFFIXES,
    RecordSource,
    is_supported,
    open_record_source,
)

__all__ = [
    "DEFAULT_OUTCOME",
    "FIELD_SPECS",
    "SUPPORTED_SUFFIXES",
    "ActionRecord",
    "CsvRecordSource",
    "ExcelRecordSource",
    "FieldKind",
    "FieldSpec",
    "FieldValueError",
    "HeaderMap",
    "RecordSource",
    "RowFormatError",
    "RowLocation",
    "SourceReadError",
    "UnsupportedSourceError",
    "decode_record",
    "is_supported",
    "open_record_source",
]
