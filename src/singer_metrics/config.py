"""Settings for the converter, read from SINGER_METRICS_* variables."""
from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .line_protocol import Precision


class Settings(BaseSettings):
    """Defaults for the CLI; environment variables and .env override them."""

    model_config = SettingsConfigDict(env_prefix="SINGER_METRICS_", env_file=".env")

    precision: Precision = Field(default=Precision.NANOSECONDS, description="Output timestamp precision (ns|us|ms|s)")
    on_error: Literal["skip", "report", "fail"] = Field(default="report", description="What to do with lines that fail to convert")
    strict_types: bool = Field(default=True, description="Reject unknown metric_type values")
    extra_tags: dict[str, str] = Field(default_factory=dict, description="Tags added to every line (JSON object in the environment)")
    workers: int = Field(default=1, ge=0, description="Worker processes for large files (0 = CPU count)")
    log_level: str = Field(default="WARNING", description="Diagnostics log level")


def get_settings() -> Settings:
    return Settings()
