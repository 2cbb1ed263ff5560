"""Canonical action record shared by every input format."""

from __future__ import annotations

import datetime as dt  # noqa: TC003

import msgspec

from halo_importer.records.dates import to_wire_timestamp

DEFAULT_OUTCOME = "Imported Note"


class ActionRecord(msgspec.Struct, kw_only=True, frozen=True):
    """One ticket action decoded from an input row.

    Attributes
    ----------
    ticket_id
        Positive identifier of the Halo ticket the action belongs to.
    note
        Action body; sent as both plain text and HTML.
    actor
        Name recorded as the action's author.
    action_id
        External identifier used to deduplicate imports, as text.
    action_timestamp
        Naive UTC-7 wall-clock time of the action, when known.
    outcome
        Halo outcome label.
    is_import
        Marks the action as imported; always ``True``.

    """

    ticket_id: int
    note: str
    actor: str
    action_id: str
    action_timestamp: dt.datetime | None = None
    outcome: str = DEFAULT_OUTCOME
    is_import: bool = True

    def to_wire(self, custom_field_id: int) -> dict[str, object]:
        """Return the JSON object Halo expects for this action.

        Parameters
        ----------
        custom_field_id
            Numeric id of the custom field that stores ``action_id``.

        """
        payload: dict[str, object] = {
            "ticket_id": self.ticket_id,
            "requestid": self.ticket_id,
            "who": self.actor,
            "actionwho": self.actor,
            "note": self.note,
            "note_html": self.note,
            "outcome": self.outcome,
            "_isimport": self.is_import,
            "customfields": [{"id": custom_field_id, "value": self.action_id}],
        }
        if self.action_timestamp is not None:
            payload["datetime"] = to_wire_timestamp(self.action_timestamp)
        return payload
