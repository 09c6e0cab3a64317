"""Metric records and line-protocol points."""
from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class MetricRecord:
    """One parsed metric event from a Singer ``METRIC:`` line."""

    metric_type: str
    metric: str
    value: int | float
    tags: dict[str, str] = field(default_factory=dict)
    timestamp_ns: int | None = None


@dataclass(frozen=True)
class Point:
    """A line-protocol record: measurement, tag set, field set, time.

    ``timestamp_ns`` is always a non-negative integer nanosecond count;
    precision is applied only when the point is rendered.
    """

    measurement: str
    fields: dict[str, int | float]
    timestamp_ns: int
    tags: dict[str, str] = field(default_factory=dict)
