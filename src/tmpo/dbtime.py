"""Text encoding of timestamps inside the store.

Every timestamp written by tmpo is UTC with a fixed microsecond layout, e.g.
``2026-01-08 20:30:00.000000+00:00``, so lexical order matches time order.
Older databases hold values in the host's local offset, sometimes in Go's
``time.Time`` text layout; :func:`decode_timestamp` reads all of them.
"""
from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Optional

UTC = timezone.utc

_TIMESTAMP_PATTERN = re.compile(
    r"^\s*(?P<date>\d{4}-\d{2}-\d{2})[T ](?P<time>\d{2}:\d{2}(?::\d{2})?)"
    r"(?:\.(?P<fraction>\d+))?"
    r"\s*(?P<offset>Z|[+-]\d{2}:?\d{2})?"
)


def _parse_offset(text: str) -> timezone:
    if text == "Z":
        return UTC
    sign = -1 if text[0] == "-" else 1
    digits = text[1:].replace(":", "")
    delta = timedelta(hours=int(digits[:2]), minutes=int(digits[2:4]))
    if not delta:
        return UTC
    return timezone(sign * delta)


def decode_timestamp(value: str) -> datetime:
    """Parse a stored timestamp into an aware datetime, keeping its stored offset.

    Values without an offset were written in host-local time and are read as such.
    """
    match = _TIMESTAMP_PATTERN.match(value)
    if match is None:
        raise ValueError(f"Unrecognized timestamp {value!r}")
    clock = match.group("time")
    if clock.count(":") == 1:
        clock += ":00"
    fraction = (match.group("fraction") or "0")[:6].ljust(6, "0")
    naive = datetime.fromisoformat(f"{match.group('date')}T{clock}.{fraction}")
    offset = match.group("offset")
    if offset is None:
        return naive.astimezone()
    return naive.replace(tzinfo=_parse_offset(offset))


def decode_optional(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return decode_timestamp(value)


def encode_timestamp(value: datetime) -> str:
    """Render ``value`` as canonical UTC text. Naive values are taken as host-local."""
    return value.astimezone(UTC).isoformat(sep=" ", timespec="microseconds")


def encode_optional(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return encode_timestamp(value)


def is_utc(value: datetime) -> bool:
    return value.utcoffset() == timedelta(0)


def utcnow_text() -> str:
    return encode_timestamp(datetime.now(UTC))
