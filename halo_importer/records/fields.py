"""Canonical action fields and the header spellings that map onto them.

Header matching is case-insensitive and ignores surrounding whitespace.
Supporting a new export format is a matter of adding an alias below.
"""

from __future__ import annotations

import dataclasses
import enum
import typing as typ


class FieldKind(enum.StrEnum):
    """How a raw cell value is coerced for a canonical field."""

    TEXT = "text"
    INTEGER = "integer"
    DATETIME = "datetime"


@dataclasses.dataclass(frozen=True, slots=True)
class FieldSpec:
    """Canonical field definition.

    Attributes
    ----------
    name
        Canonical field name on :class:`~halo_importer.records.models.ActionRecord`.
    kind
        Coercion applied to raw values.
    aliases
        Lower-case header spellings accepted for this field.
    required
        Whether the column must be present in the source header.

    """

    name: str
    kind: FieldKind
    aliases: tuple[str, ...]
    required: bool


TICKET_ID = "ticket_id"
ACTION_TIMESTAMP = "action_timestamp"
OUTCOME = "outcome"
NOTE = "note"
ACTOR = "actor"
ACTION_ID = "action_id"

FIELD_SPECS: tuple[FieldSpec, ...] = (
    FieldSpec(
        TICKET_ID,
        FieldKind.INTEGER,
        ("ticket_id", "requestid", "request_id"),
        required=True,
    ),
    FieldSpec(
        ACTION_TIMESTAMP,
        FieldKind.DATETIME,
        ("actiondate", "action_date"),
        required=False,
    ),
    FieldSpec(OUTCOME, FieldKind.TEXT, ("outcome",), required=False),
    FieldSpec(NOTE, FieldKind.TEXT, ("note",), required=True),
    FieldSpec(ACTOR, FieldKind.TEXT, ("actionwho", "action_who", "who"), required=True),
    FieldSpec(
        ACTION_ID,
        FieldKind.TEXT,
        ("cfactionid", "action_id", "cdactionid"),
        required=True,
    ),
)

_ALIAS_INDEX: dict[str, str] = {
    alias: spec.name for spec in FIELD_SPECS for alias in spec.aliases
}


def canonical_field(header: str) -> str | None:
    """Return the canonical field for ``header``, or ``None`` if unrecognised."""
    return _ALIAS_INDEX.get(header.strip().lower())


@dataclasses.dataclass(frozen=True, slots=True)
class HeaderMap:
    """Column positions of the canonical fields within one source.

    When several columns match the same field, the leftmost one wins.
    """

    headers: tuple[str, ...]
    columns: typ.Mapping[str, int]

    @classmethod
    def from_headers(cls, headers: typ.Sequence[object]) -> HeaderMap:
        """Build the map from the raw header row."""
        names = tuple("" if cell is None else str(cell).strip() for cell in headers)
        columns: dict[str, int] = {}
        for index, name in enumerate(names):
            field = canonical_field(name)
            if field is not None and field not in columns:
                columns[field] = index
        return cls(headers=names, columns=columns)

    def project(self, cells: typ.Sequence[object]) -> dict[str, object]:
        """Return the canonical-field values present in ``cells``.

        Fields whose column is absent from the header are omitted; cells
        beyond the end of a short row read as ``None``.
        """
        return {
            field: cells[index] if index < len(cells) else None
            for field, index in self.columns.items()
        }

    def raw_values(self, cells: typ.Sequence[object]) -> dict[str, object]:
        """Return the header-to-value map used in error reports."""
        return {
            header: cells[index] if index < len(cells) else None
            for index, header in enumerate(self.headers)
            if header
        }


__all__ = [
    "ACTION_ID",
    "ACTION_TIMESTAMP",
    "ACTOR",
    "FIELD_SPECS",
    "NOTE",
    "OUTCOME",
    "TICKET_ID",
    "FieldKind",
    "FieldSpec",
    "HeaderMap",
    "canonical_field",
]
