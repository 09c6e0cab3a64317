"""Tests for environment-driven settings."""
from __future__ import annotations

import pytest
from pydantic import ValidationError

from singer_metrics.config import Settings
from singer_metrics.line_protocol import Precision


@pytest.fixture(autouse=True)
def _isolated(monkeypatch, tmp_path):
    # keep a developer's .env out of the tests
    monkeypatch.chdir(tmp_path)


class TestSettings:
    def test_defaults(self) -> None:
        s = Settings()
        assert s.precision is Precision.NANOSECONDS
        assert s.on_error == "report"
        assert s.strict_types is True
        assert s.extra_tags == {}
        assert s.workers == 1
        assert s.log_level == "WARNING"

    def test_env_overrides(self, monkeypatch) -> None:
        monkeypatch.setenv("SINGER_METRICS_PRECISION", "ms")
        monkeypatch.setenv("SINGER_METRICS_ON_ERROR", "fail")
        monkeypatch.setenv("SINGER_METRICS_STRICT_TYPES", "false")
        monkeypatch.setenv("SINGER_METRICS_EXTRA_TAGS", '{"env": "prod"}')
        monkeypatch.setenv("SINGER_METRICS_WORKERS", "0")
        s = Settings()
        assert s.precision is Precision.MILLISECONDS
        assert s.on_error == "fail"
        assert s.strict_types is False
        assert s.extra_tags == {"env": "prod"}
        assert s.workers == 0

    def test_dotenv_file(self, tmp_path) -> None:
        (tmp_path / ".env").write_text("SINGER_METRICS_PRECISION=s\n", encoding="utf-8")
        assert Settings().precision is Precision.SECONDS

    @pytest.mark.parametrize("name,value", [
        ("SINGER_METRICS_PRECISION", "minutes"),
        ("SINGER_METRICS_ON_ERROR", "explode"),
        ("SINGER_METRICS_WORKERS", "-1"),
    ])
    def test_invalid_values(self, monkeypatch, name: str, value: str) -> None:
        monkeypatch.setenv(name, value)
        with pytest.raises(ValidationError):
            Settings()
