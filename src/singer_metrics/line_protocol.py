"""InfluxDB line protocol rendering.

    measurement[,tag_key="tag_value"...] field_key=field_value[,...] timestamp

https://docs.influxdata.com/influxdb/v2/reference/syntax/line-protocol/

Tag values are always double-quoted; field values are bare numeric
literals, with integers suffixed ``i``.
"""
from __future__ import annotations

from enum import Enum
from typing import Mapping

from .models import Point


class Precision(str, Enum):
    NANOSECONDS = "ns"
    MICROSECONDS = "us"
    MILLISECONDS = "ms"
    SECONDS = "s"

    @property
    def divisor(self) -> int:
        return _DIVISORS[self]


_DIVISORS = {
    Precision.NANOSECONDS: 1,
    Precision.MICROSECONDS: 1_000,
    Precision.MILLISECONDS: 1_000_000,
    Precision.SECONDS: 1_000_000_000,
}

_MEASUREMENT_ESCAPES = str.maketrans({",": r"\,", " ": r"\ "})
_KEY_ESCAPES = str.maketrans({",": r"\,", "=": r"\=", " ": r"\ "})


def escape_measurement(name: str) -> str:
    return name.translate(_MEASUREMENT_ESCAPES)


def escape_key(key: str) -> str:
    """Escape a tag key, tag value or field key."""
    return key.translate(_KEY_ESCAPES)


def format_field_value(value: int | float) -> str:
    """Render a numeric field literal: ``5i`` for integers, ``0.5`` for floats."""
    if isinstance(value, bool):
        raise TypeError("boolean field values are not numeric")
    if isinstance(value, int):
        return f"{value}i"
    return repr(float(value))


def format_tags(tags: Mapping[str, str]) -> str:
    """Return ``,k="v",...`` sorted by key, or an empty string."""
    if not tags:
        return ""
    return "".join(
        f',{escape_key(k)}="{escape_key(tags[k])}"' for k in sorted(tags)
    )


def format_fields(fields: Mapping[str, int | float]) -> str:
    return ",".join(
        f"{escape_key(k)}={format_field_value(fields[k])}" for k in sorted(fields)
    )


class LineProtocol:
    """Render points as line protocol.

    ``extra_tags`` are merged into every point; a point's own tag with the
    same key wins.  ``precision`` scales the nanosecond timestamp on output.
    """

    def __init__(
        self,
        precision: Precision | str = Precision.NANOSECONDS,
        extra_tags: Mapping[str, str] | None = None,
    ) -> None:
        self.precision = Precision(precision)
        self.extra_tags = dict(extra_tags or {})

    def dump(self, point: Point) -> str:
        """Return one newline-terminated line for ``point``."""
        if point.timestamp_ns < 0:
            raise ValueError(f"negative timestamp: {point.timestamp_ns}")
        tags = {**self.extra_tags, **point.tags}
        timestamp = point.timestamp_ns // self.precision.divisor
        return (
            f"{escape_measurement(point.measurement)}{format_tags(tags)} "
            f"{format_fields(point.fields)} {timestamp}\n"
        )
