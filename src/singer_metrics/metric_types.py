"""Metric type table: maps ``metric_type`` to a field rendering rule.

Each rule names the line-protocol field and a coercion that turns the JSON
value into the Python number whose type picks the literal (``int`` renders
with the ``i`` suffix, ``float`` without).  New types are data, not code:

    registry.register(FieldRule("histogram", "value", as_float))

Third-party packages can contribute rules through the entry-point group::

    [project.entry-points."singer_metrics.metric_types"]
    histogram = "my_package.metrics:HISTOGRAM_RULE"
"""
from __future__ import annotations

import importlib.metadata
import logging
from dataclasses import dataclass
from typing import Any, Callable

logger = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "singer_metrics.metric_types"

# InfluxDB integer fields are signed 64-bit
_INT64_MIN = -(2**63)
_INT64_MAX = 2**63 - 1


def as_float(value: int | float) -> float:
    return float(value)


def as_number(value: int | float) -> int | float:
    """Integer when the value is integral and fits int64, float otherwise."""
    if isinstance(value, float):
        if not value.is_integer():
            return value
        value = int(value)
    if _INT64_MIN <= value <= _INT64_MAX:
        return value
    return float(value)


@dataclass(frozen=True)
class FieldRule:
    """How one metric type becomes a line-protocol field."""

    name: str
    field: str
    coerce: Callable[[int | float], int | float]


BUILTIN_RULES: tuple[FieldRule, ...] = (
    FieldRule("counter", "value", as_number),
    FieldRule("timer", "value", as_float),
    FieldRule("gauge", "value", as_float),
)

# Used for unknown types when strict type checking is off
FALLBACK_RULE = FieldRule("*", "value", as_number)


class MetricTypeRegistry:
    """Lookup table of field rules keyed by ``metric_type``.

    Usage::

        registry = MetricTypeRegistry()
        registry.discover()  # loads entry-point rules

        rule = registry.get("timer")
    """

    def __init__(self, rules: tuple[FieldRule, ...] = BUILTIN_RULES) -> None:
        self._rules: dict[str, FieldRule] = {}
        for rule in rules:
            self.register(rule)

    def register(self, rule: FieldRule) -> None:
        if not isinstance(rule, FieldRule):
            raise TypeError(f"{rule!r} is not a FieldRule")
        self._rules[rule.name] = rule
        logger.debug("Registered metric type: %s", rule.name)

    def get(self, name: str) -> FieldRule | None:
        return self._rules.get(name)

    def names(self) -> list[str]:
        return sorted(self._rules)

    def __contains__(self, name: object) -> bool:
        return name in self._rules

    def discover(self) -> int:
        """Load rules from the 'singer_metrics.metric_types' entry-point group.

        Returns the number of rules successfully loaded.
        """
        loaded = 0
        for ep in importlib.metadata.entry_points(group=ENTRY_POINT_GROUP):
            try:
                obj: Any = ep.load()
                rule = obj if isinstance(obj, FieldRule) else obj()
                self.register(rule)
                loaded += 1
            except Exception as exc:
                logger.warning("Failed to load metric type %r: %s", ep.name, exc)

        return loaded


# Shared by the CLI and by Transcoder instances built without a registry
default_registry = MetricTypeRegistry()
