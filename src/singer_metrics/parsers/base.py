"""Line recognizer types shared by every log format."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, runtime_checkable

RawLine = str | bytes


@dataclass(frozen=True)
class MetricLine:
    """The parts of a log line that carry a metric.

    ``body`` is the JSON text after the marker, stripped of surrounding
    whitespace.  ``timestamp_ns`` is the log prefix time in
    nanoseconds since the Unix epoch, or ``None`` when the prefix is absent
    or could not be parsed.
    """

    body: str
    timestamp_ns: int | None = None


@runtime_checkable
class LineRecognizer(Protocol):
    """Anything with ``name`` and ``recognize`` can split metric lines."""

    def recognize(self, line: str) -> MetricLine | None:
        """Split a decoded line. Returns None if it is not a metric line."""
        ...

    @property
    def name(self) -> str:
        """Human-readable recognizer name (e.g. 'singer')."""
        ...
