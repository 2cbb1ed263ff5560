"""Decode canonical field values into :class:`ActionRecord` instances.

Both input adapters project their rows onto canonical field names through
:class:`~halo_importer.records.fields.HeaderMap` and then share the coercion
rules defined here.
"""

from __future__ import annotations

import datetime as dt
import typing as typ

from halo_importer.records.dates import parse_timestamp
from halo_importer.records.errors import FieldValueError
from halo_importer.records.fields import (
    ACTION_ID,
    ACTION_TIMESTAMP,
    ACTOR,
    FIELD_SPECS,
    NOTE,
    OUTCOME,
    TICKET_ID,
    FieldKind,
    FieldSpec,
)
from halo_importer.records.models import DEFAULT_OUTCOME, ActionRecord


def coerce_integer(value: object) -> object:
    """Return ``value`` as an int when it is integral, otherwise unchanged.

    Integral floats and numeric strings become ints; anything else is left
    for validation to reject.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else value
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            pass
        try:
            number = float(text)
        except ValueError:
            return value
        return int(number) if number.is_integer() else value
    return value


def cell_text(value: object) -> str:
    """Render a raw cell value as text.

    Integral floats lose their trailing ``.0`` so that spreadsheet numbers
    read the same as their delimited-text spelling.
    """
    match value:
        case None:
            return ""
        case str():
            return value
        case bool():
            return "true" if value else "false"
        case float() if value.is_integer():
            return str(int(value))
        case dt.datetime() | dt.date():
            return value.isoformat()
        case _:
            return str(value)


def _is_blank(raw: object) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


def _coerce_text(spec: FieldSpec, raw: object, *, allow_serial: bool) -> str:
    del spec, allow_serial
    return cell_text(raw)


def _coerce_integer_field(
    spec: FieldSpec, raw: object, *, allow_serial: bool
) -> int | None:
    del allow_serial
    if _is_blank(raw):
        if spec.required:
            raise FieldValueError.blank(spec.name)
        return None
    number = coerce_integer(raw)
    if not isinstance(number, int) or isinstance(number, bool):
        raise FieldValueError.invalid(spec.name, raw, "an integer")
    return number


def _coerce_datetime_field(
    spec: FieldSpec, raw: object, *, allow_serial: bool
) -> dt.datetime | None:
    try:
        return parse_timestamp(raw, allow_serial=allow_serial)
    except ValueError as exc:
        raise FieldValueError(spec.name, str(exc)) from exc


class _Coercer(typ.Protocol):
    def __call__(
        self, spec: FieldSpec, raw: object, /, *, allow_serial: bool
    ) -> object: ...


_COERCERS: dict[FieldKind, _Coercer] = {
    FieldKind.TEXT: _coerce_text,
    FieldKind.INTEGER: _coerce_integer_field,
    FieldKind.DATETIME: _coerce_datetime_field,
}


def coerce_fields(
    values: typ.Mapping[str, object], *, allow_serial: bool = False
) -> dict[str, object]:
    """Coerce every canonical field according to its declared kind.

    Fields are visited in :data:`FIELD_SPECS` order, so the first failing
    field is the one reported.

    Raises
    ------
    FieldValueError
        When a required column is absent or a value has the wrong kind.

    """
    for spec in FIELD_SPECS:
        if spec.required and spec.name not in values:
            raise FieldValueError.missing_column(spec.name)
    return {
        spec.name: _COERCERS[spec.kind](
            spec, values.get(spec.name), allow_serial=allow_serial
        )
        for spec in FIELD_SPECS
    }


def decode_record(
    values: typ.Mapping[str, object], *, allow_serial: bool = False
) -> ActionRecord:
    """Build an action record from canonical field values.

    Parameters
    ----------
    values
        Canonical field name to raw value. Fields whose column is absent
        from the source are omitted.
    allow_serial
        Whether numeric timestamps are spreadsheet date serials.

    Raises
    ------
    FieldValueError
        For the first field that is missing, cannot be coerced, or breaks
        a record rule.

    """
    fields = coerce_fields(values, allow_serial=allow_serial)
    ticket_id = typ.cast("int", fields[TICKET_ID])
    if ticket_id < 1:
        raise FieldValueError.invalid(
            TICKET_ID, values[TICKET_ID], "a positive integer"
        )
    action_id = typ.cast("str", fields[ACTION_ID]).strip()
    if not action_id:
        raise FieldValueError.blank(ACTION_ID)
    outcome = typ.cast("str", fields[OUTCOME]).strip()
    return ActionRecord(
        ticket_id=ticket_id,
        action_timestamp=typ.cast("dt.datetime | None", fields[ACTION_TIMESTAMP]),
        outcome=outcome or DEFAULT_OUTCOME,
        note=typ.cast("str", fields[NOTE]),
        actor=typ.cast("str", fields[ACTOR]),
        action_id=action_id,
    )


def is_blank_row(cells: typ.Sequence[object]) -> bool:
    """Return True when every cell is empty or whitespace."""
    return all(cell is None or not cell_text(cell).strip() for cell in cells)


__all__ = [
    "cell_text",
    "coerce_fields",
    "coerce_integer",
    "decode_record",
    "is_blank_row",
]
