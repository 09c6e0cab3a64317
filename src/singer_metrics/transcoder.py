"""Line Transcoder: Singer metric log lines to InfluxDB line protocol.

    raw line -> recognizer -> JSON body -> mapper -> line protocol

Each line is handled independently; a ``Transcoder`` holds only its
configuration, so one instance can be shared or pickled to worker
processes.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Iterator, Mapping

from .errors import ErrorKind, LineError, MetricError
from .line_protocol import LineProtocol, Precision
from .mapper import parse_metric, to_point
from .metric_types import MetricTypeRegistry, default_registry
from .parsers.base import LineRecognizer, RawLine
from .parsers.singer import SingerRecognizer

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LineResult:
    """Outcome for one input line: output text, an error, or neither (skipped)."""

    line_no: int
    output: str | None = None
    error: LineError | None = None

    @property
    def skipped(self) -> bool:
        return self.output is None and self.error is None


def decode_line(raw: RawLine) -> str:
    """Decode bytes as strict UTF-8 and drop the line terminator."""
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    return raw.lstrip("\ufeff").rstrip("\r\n")


class Transcoder:
    """Convert Singer ``METRIC:`` log lines to line protocol.

    Usage::

        transcoder = Transcoder(precision="ms", extra_tags={"host": "etl-1"})
        for line in transcoder.iter_lines(open("tap.log", "rb")):
            sys.stdout.write(line)
    """

    def __init__(
        self,
        precision: Precision | str = Precision.NANOSECONDS,
        extra_tags: Mapping[str, str] | None = None,
        strict_types: bool = True,
        recognizer: LineRecognizer | None = None,
        registry: MetricTypeRegistry | None = None,
    ) -> None:
        self.protocol = LineProtocol(precision=precision, extra_tags=extra_tags)
        self.strict_types = strict_types
        self.recognizer = recognizer or SingerRecognizer()
        self.registry = registry or default_registry

    def transcode_line(
        self, raw: RawLine, line_no: int | None = None
    ) -> str | LineError | None:
        """Convert one line.

        Returns the line-protocol text, a ``LineError``, or None when the
        line is not a metric line at all.
        """
        try:
            line = decode_line(raw)
        except UnicodeDecodeError as exc:
            return LineError(ErrorKind.ENCODING_ERROR, str(exc), line_no, repr(raw))

        metric_line = self.recognizer.recognize(line)
        if metric_line is None:
            logger.debug("Skipping non-metric line %s", line_no)
            return None

        try:
            record = parse_metric(metric_line.body, self.registry, self.strict_types)
            point = to_point(record, metric_line.timestamp_ns, self.registry)
        except MetricError as exc:
            return LineError(exc.kind, exc.message, line_no, line)
        return self.protocol.dump(point)

    def transcode(self, lines: Iterable[RawLine], start: int = 1) -> Iterator[LineResult]:
        """Lazily transcode a stream, yielding one result per input line."""
        for line_no, raw in enumerate(lines, start=start):
            outcome = self.transcode_line(raw, line_no)
            if isinstance(outcome, LineError):
                yield LineResult(line_no, error=outcome)
            else:
                yield LineResult(line_no, output=outcome)

    def iter_lines(self, lines: Iterable[RawLine]) -> Iterator[str]:
        """Yield only the successfully converted lines; errors are logged."""
        for result in self.transcode(lines):
            if result.error is not None:
                logger.debug("%s", result.error)
            elif result.output is not None:
                yield result.output
