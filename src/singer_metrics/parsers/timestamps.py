"""Log timestamp parsing, to integer nanoseconds since the Unix epoch."""
from __future__ import annotations

from datetime import datetime, timezone

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

# Formats tried in order when parsing log timestamps
_TIMESTAMP_FORMATS: list[str] = [
    "%Y-%m-%d %H:%M:%S,%f",     # logging asctime (Singer default)
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%dT%H:%M:%S.%f%z",
    "%Y-%m-%dT%H:%M:%S%z",
    "%Y-%m-%dT%H:%M:%S.%f",
    "%Y-%m-%dT%H:%M:%S",
]


def _parse_datetime(raw: str) -> datetime | None:
    """Try each known format and return the first successful parse."""
    raw = raw.strip()
    if raw.endswith("Z"):
        raw = raw[:-1] + "+0000"
    for fmt in _TIMESTAMP_FORMATS:
        try:
            return datetime.strptime(raw, fmt)
        except ValueError:
            continue
    return None


def datetime_to_ns(dt: datetime) -> int:
    """Exact nanoseconds since the epoch. Naive datetimes are taken as UTC."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    delta = dt - _EPOCH
    return (delta.days * 86_400 + delta.seconds) * 1_000_000_000 + delta.microseconds * 1_000


def parse_timestamp_ns(raw: str) -> int | None:
    """Parse a log timestamp string.

    Returns None for unrecognised strings and for times before the epoch,
    which line protocol cannot represent here.
    """
    dt = _parse_datetime(raw)
    if dt is None:
        return None
    ns = datetime_to_ns(dt)
    return ns if ns >= 0 else None
