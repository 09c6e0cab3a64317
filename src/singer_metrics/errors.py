"""Per-line error taxonomy.

Transcoding failures are values, not exceptions: the transcoder hands a
``LineError`` back to the I/O driver, which decides whether to log and
continue or to stop.  ``MetricError`` is only raised inside the mapper and
is caught at the line boundary.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ErrorKind(str, Enum):
    INVALID_JSON = "InvalidJson"
    INVALID_METRIC = "InvalidMetric"
    MISSING_TIMESTAMP = "MissingTimestamp"
    ENCODING_ERROR = "EncodingError"

    def __str__(self) -> str:
        return self.value


class MetricError(Exception):
    """Raised by the mapper when a JSON body cannot become a metric."""

    def __init__(self, kind: ErrorKind, message: str) -> None:
        super().__init__(message)
        self.kind = kind
        self.message = message


@dataclass(frozen=True)
class LineError:
    """A recoverable failure for one input line."""

    kind: ErrorKind
    message: str
    line_no: int | None = None
    raw: str | None = None

    def __str__(self) -> str:
        where = f"line {self.line_no}: " if self.line_no is not None else ""
        return f"{where}{self.kind}: {self.message}"
