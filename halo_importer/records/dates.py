"""Action timestamp parsing and wire formatting.

Source timestamps are naive wall-clock values recorded in UTC-7. They are
kept naive in memory and converted to UTC only when encoded for Halo.

Usage
-----
>>> parse_timestamp("2024-01-05T10:00:00Z")
datetime.datetime(2024, 1, 5, 10, 0)
>>> serial_to_datetime(45000.5)
datetime.datetime(2023, 3, 15, 12, 0)
>>> to_wire_timestamp(dt.datetime(2024, 1, 5, 10, 0, 0, 500000))
'2024-01-05T17:00:00.500Z'

"""

from __future__ import annotations

import datetime as dt
import math

SPREADSHEET_EPOCH = dt.datetime(1899, 12, 30)  # noqa: DTZ001
SOURCE_TIMEZONE = dt.timezone(dt.timedelta(hours=-7))

TEXT_FORMATS: tuple[str, ...] = (
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d %H:%M:%S",
)

_SECONDS_PER_DAY = 86_400


def serial_to_datetime(serial: float) -> dt.datetime:
    """Convert a spreadsheet date serial to a naive datetime.

    The integer part counts days since 1899-12-30 and the fraction is the
    time of day, rounded to the nearest second.
    """
    if not math.isfinite(serial):
        msg = f"unrecognised date serial {serial!r}"
        raise ValueError(msg)
    days = int(serial // 1)
    seconds = round((serial - days) * _SECONDS_PER_DAY)
    try:
        return SPREADSHEET_EPOCH + dt.timedelta(days=days, seconds=seconds)
    except OverflowError as exc:
        msg = f"date serial out of range: {serial!r}"
        raise ValueError(msg) from exc


def _strip_zone_marker(text: str) -> str:
    if text.endswith(("Z", "z")):
        return text[:-1]
    return text


def parse_text_timestamp(text: str) -> dt.datetime | None:
    """Parse a textual timestamp using the accepted formats.

    Returns ``None`` for blank text.

    Raises
    ------
    ValueError
        If the text matches none of the accepted formats.

    """
    stripped = text.strip()
    if not stripped:
        return None
    candidate = _strip_zone_marker(stripped)
    for fmt in TEXT_FORMATS:
        try:
            return dt.datetime.strptime(candidate, fmt)  # noqa: DTZ007
        except ValueError:
            continue
    msg = f"unrecognised date {text!r}"
    raise ValueError(msg)


def _parse_serial_text(text: str) -> float | None:
    try:
        return float(text)
    except ValueError:
        return None


def _normalise(value: object, *, allow_serial: bool) -> dt.datetime | None:
    if value is None:
        return None
    if isinstance(value, bool):
        msg = f"unrecognised date {value!r}"
        raise ValueError(msg)
    if isinstance(value, dt.datetime):
        return value.replace(tzinfo=None)
    if isinstance(value, dt.date):
        return dt.datetime.combine(value, dt.time())
    if isinstance(value, int | float):
        if not allow_serial:
            msg = f"unrecognised date {value!r}"
            raise ValueError(msg)
        return serial_to_datetime(float(value))
    text = str(value)
    if allow_serial:
        serial = _parse_serial_text(text.strip())
        if serial is not None:
            return serial_to_datetime(serial)
    return parse_text_timestamp(text)


def _to_utc(value: dt.datetime) -> dt.datetime:
    return value.replace(tzinfo=SOURCE_TIMEZONE).astimezone(dt.UTC)


def parse_timestamp(value: object, *, allow_serial: bool = False) -> dt.datetime | None:
    """Normalise a raw cell value into a naive datetime.

    Parameters
    ----------
    value
        Raw cell value: ``None``, a string, a date or datetime, or (for
        spreadsheets) a numeric date serial.
    allow_serial
        Whether numeric values, and numeric text, are read as spreadsheet
        date serials.

    Returns
    -------
    datetime.datetime | None
        The naive timestamp, or ``None`` when the value is blank.

    Raises
    ------
    ValueError
        If the value cannot be interpreted as a timestamp, or lies
        so close to the end of the calendar that it has no UTC equivalent.

    """
    timestamp = _normalise(value, allow_serial=allow_serial)
    if timestamp is None:
        return None
    try:
        _to_utc(timestamp)
    except OverflowError as exc:
        msg = f"date out of range {timestamp.isoformat()!r}"
        raise ValueError(msg) from exc
    return timestamp


def to_wire_timestamp(value: dt.datetime) -> str:
    """Render a source timestamp as a UTC ISO-8601 string with milliseconds."""
    utc_value = _to_utc(value)
    millis = utc_value.microsecond // 1000
    return f"{utc_value:%Y-%m-%dT%H:%M:%S}.{millis:03d}Z"
