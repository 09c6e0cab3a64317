"""Singer metric log lines.

Format:  <TIMESTAMP> INFO METRIC: <JSON>

The timestamp is whatever the producing logger emits; the Singer default is
Python's logging ``asctime`` (``2023-04-02 20:42:30,224``).
"""
from __future__ import annotations

import logging
import re

from .base import MetricLine
from .timestamps import parse_timestamp_ns

logger = logging.getLogger(__name__)

_SINGER_METRIC_RE = re.compile(
    r"^(?P<timestamp>.*?)"       # opaque prefix, may be empty
    r"(?:^|\s)INFO\s+METRIC:"     # case-sensitive markers
    r"(?P<body>.*)$",
    re.DOTALL,
)


class SingerRecognizer:
    """Recognize ``INFO METRIC:`` lines and split off the JSON body."""

    @property
    def name(self) -> str:
        return "singer"

    def recognize(self, line: str) -> MetricLine | None:
        m = _SINGER_METRIC_RE.match(line)
        if not m:
            return None
        prefix = m.group("timestamp").strip()
        timestamp_ns = None
        if prefix:
            timestamp_ns = parse_timestamp_ns(prefix)
            if timestamp_ns is None:
                logger.debug("Unparseable timestamp prefix %r", prefix)
        return MetricLine(body=m.group("body").strip(), timestamp_ns=timestamp_ns)
