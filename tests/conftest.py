"""Shared pytest fixtures for singer-metrics tests."""
from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Callable

import pytest

# 1680468150224571000 ns since the epoch
TS_PREFIX = "2023-04-02 20:42:30,224571"


def _metric_line(payload: dict[str, Any], prefix: str = TS_PREFIX) -> str:
    """Build a Singer log line around a metric payload."""
    head = f"{prefix} " if prefix else ""
    return f"{head}INFO METRIC: {json.dumps(payload)}"


# only these are escape sequences in tag keys and values
_ESCAPABLE = (",", " ", "=")


def _split_unescaped(text: str, sep: str) -> list[str]:
    parts: list[str] = []
    buf: list[str] = []
    i = 0
    while i < len(text):
        if text[i] == "\\" and text[i + 1:i + 2] in _ESCAPABLE:
            buf.append(text[i:i + 2])
            i += 2
            continue
        if text[i] == sep:
            parts.append("".join(buf))
            buf = []
        else:
            buf.append(text[i])
        i += 1
    parts.append("".join(buf))
    return parts


def _unescape(text: str) -> str:
    return re.sub(r"\\([, =])", r"\1", text)


def _parse_line_protocol(line: str) -> dict[str, Any]:
    """Minimal reader for the line-protocol text this package emits."""
    assert line.endswith("\n")
    head, fields, timestamp = _split_unescaped(line[:-1], " ")
    measurement, *tag_parts = _split_unescaped(head, ",")
    tags: dict[str, str] = {}
    for part in tag_parts:
        key, *rest = _split_unescaped(part, "=")
        value = "=".join(rest)
        assert value.startswith('"') and value.endswith('"')
        tags[_unescape(key)] = _unescape(value[1:-1])
    parsed_fields: dict[str, int | float] = {}
    for part in _split_unescaped(fields, ","):
        key, value = part.split("=", 1)
        parsed_fields[_unescape(key)] = int(value[:-1]) if value.endswith("i") else float(value)
    return {
        "measurement": _unescape(measurement),
        "tags": tags,
        "fields": parsed_fields,
        "timestamp": int(timestamp),
    }


@pytest.fixture(autouse=True)
def _restore_package_logger():
    """The CLI configures the package logger; undo it between tests."""
    pkg_logger = logging.getLogger("singer_metrics")
    level, handlers = pkg_logger.level, list(pkg_logger.handlers)
    yield
    pkg_logger.setLevel(level)
    pkg_logger.handlers[:] = handlers


@pytest.fixture()
def parse_lp() -> Callable[[str], dict[str, Any]]:
    """Return a parser for emitted line-protocol lines."""
    return _parse_line_protocol


@pytest.fixture()
def make_line() -> Callable[..., str]:
    """Return a builder for Singer METRIC log lines."""
    return _metric_line


@pytest.fixture()
def tmp_log_file(tmp_path: Path):
    """Return a factory that creates temporary log files."""

    def _make(lines: list[str], name: str = "tap.log") -> Path:
        p = tmp_path / name
        p.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return p

    return _make


@pytest.fixture()
def singer_log_lines() -> list[str]:
    return [
        "2023-04-02 20:42:29,001 INFO Starting sync of stream issues",
        _metric_line({
            "metric_type": "timer", "metric": "http_request_duration",
            "value": 0.846369, "tags": {"endpoint": "issues", "http_status_code": 200},
        }, prefix="2023-04-02 20:42:30,224"),
        _metric_line({
            "metric_type": "counter", "metric": "record_count",
            "value": 100, "tags": {"endpoint": "issues"},
        }, prefix="2023-04-02 20:42:30,231"),
        "2023-04-02 20:42:30,300 INFO METRIC: {not json",
        "2023-04-02 20:42:31,000 INFO Sync complete",
    ]
