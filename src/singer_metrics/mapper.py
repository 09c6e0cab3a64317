"""Metric Mapper: JSON body to MetricRecord to line-protocol Point.

Every failure raises ``MetricError`` tagged with the error kind; the
transcoder turns it into a per-line ``LineError``.
"""
from __future__ import annotations

import json
import math
from typing import Any

from .errors import ErrorKind, MetricError
from .metric_types import FALLBACK_RULE, FieldRule, MetricTypeRegistry, default_registry
from .models import MetricRecord, Point
from .parsers.timestamps import parse_timestamp_ns

TIMESTAMP_KEY = "timestamp"

_LINE_BREAKS = ("\n", "\r")


def _reject_constant(name: str) -> Any:
    raise ValueError(f"{name} is not valid JSON")


def load_json(body: str) -> dict[str, Any]:
    """Parse the body as a JSON object."""
    try:
        doc = json.loads(body, parse_constant=_reject_constant)
    except (ValueError, RecursionError) as exc:
        raise MetricError(ErrorKind.INVALID_JSON, f"malformed JSON: {exc}") from exc
    if not isinstance(doc, dict):
        raise MetricError(
            ErrorKind.INVALID_JSON, f"expected a JSON object, got {type(doc).__name__}"
        )
    return doc


def _invalid(message: str) -> MetricError:
    return MetricError(ErrorKind.INVALID_METRIC, message)


def _check_text(what: str, text: str) -> str:
    if any(c in text for c in _LINE_BREAKS):
        raise _invalid(f"{what} contains a line break: {text!r}")
    return text


def _flatten_into(out: dict[str, str], key: str, value: Any) -> None:
    if value is None:
        return
    if isinstance(value, dict):
        for k, v in value.items():
            _flatten_into(out, f"{key}__{k}", v)
    elif isinstance(value, list):
        for i, v in enumerate(value):
            _flatten_into(out, f"{key}_{i}", v)
    elif isinstance(value, str):
        out[_check_text("tag key", key)] = _check_text("tag value", value)
    else:
        out[_check_text("tag key", key)] = json.dumps(value)


def flatten_tags(tags: dict[str, Any]) -> dict[str, str]:
    """Flatten a JSON tag object into string tags.

    Nested objects become ``parent__child`` keys, arrays ``key_0``,
    ``key_1``...; numbers and booleans keep their JSON text and nulls are
    dropped.
    """
    out: dict[str, str] = {}
    for key, value in tags.items():
        _flatten_into(out, key, value)
    return out


def _parse_json_timestamp(raw: Any) -> int | None:
    if raw is None:
        return None
    if isinstance(raw, bool):
        raise _invalid(f"{TIMESTAMP_KEY} must be an integer or a string, got {raw!r}")
    if isinstance(raw, int):
        if raw < 0:
            raise _invalid(f"{TIMESTAMP_KEY} must not be negative, got {raw}")
        return raw
    if isinstance(raw, str):
        ns = parse_timestamp_ns(raw)
        if ns is None:
            raise _invalid(f"unparseable {TIMESTAMP_KEY}: {raw!r}")
        return ns
    raise _invalid(f"{TIMESTAMP_KEY} must be an integer or a string, got {raw!r}")


def _resolve_rule(
    metric_type: str, registry: MetricTypeRegistry, strict_types: bool
) -> FieldRule:
    rule = registry.get(metric_type)
    if rule is not None:
        return rule
    if strict_types:
        known = ", ".join(registry.names())
        raise _invalid(f"unknown metric_type {metric_type!r} (expected one of: {known})")
    return FALLBACK_RULE


def parse_metric(
    body: str,
    registry: MetricTypeRegistry = default_registry,
    strict_types: bool = True,
) -> MetricRecord:
    """Parse and validate one JSON metric body."""
    doc = load_json(body)

    metric_type = doc.get("metric_type")
    if not isinstance(metric_type, str) or not metric_type:
        raise _invalid(f"metric_type must be a non-empty string, got {metric_type!r}")
    rule = _resolve_rule(metric_type, registry, strict_types)

    metric = doc.get("metric")
    if not isinstance(metric, str) or not metric.strip():
        raise _invalid(f"metric must be a non-empty string, got {metric!r}")
    _check_text("metric", metric)

    if "value" not in doc:
        raise _invalid("missing value")
    value = doc["value"]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _invalid(f"value must be numeric, got {value!r}")
    if isinstance(value, float) and not math.isfinite(value):
        raise _invalid(f"value must be finite, got {value!r}")

    tags = doc.get("tags")
    if tags is None:
        tags = {}
    elif not isinstance(tags, dict):
        raise _invalid(f"tags must be an object, got {type(tags).__name__}")

    try:
        value = rule.coerce(value)
    except OverflowError as exc:
        raise _invalid(f"value out of range for {metric_type}: {exc}") from exc

    return MetricRecord(
        metric_type=metric_type,
        metric=metric,
        value=value,
        tags=flatten_tags(tags),
        timestamp_ns=_parse_json_timestamp(doc.get(TIMESTAMP_KEY)),
    )


def to_point(
    record: MetricRecord,
    log_timestamp_ns: int | None = None,
    registry: MetricTypeRegistry = default_registry,
) -> Point:
    """Map a record onto a line-protocol point.

    The record's own timestamp takes precedence over the log line's.
    """
    timestamp_ns = record.timestamp_ns
    if timestamp_ns is None:
        timestamp_ns = log_timestamp_ns
    if timestamp_ns is None:
        raise MetricError(
            ErrorKind.MISSING_TIMESTAMP,
            f"no timestamp for metric {record.metric!r} in the metric or the log line",
        )
    rule = registry.get(record.metric_type) or FALLBACK_RULE
    return Point(
        measurement=record.metric,
        fields={rule.field: record.value},
        timestamp_ns=timestamp_ns,
        tags=dict(record.tags),
    )
