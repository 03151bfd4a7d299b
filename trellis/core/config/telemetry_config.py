"""
Telemetry Configuration Schema.

Logging verbosity and the optional directory for rotating log files.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .types import LogLevel


class TelemetryConfig(BaseModel):
    """
    Attributes:
        log_level: Logging verbosity.
        log_dir: Directory for log files (None = console only).
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    log_level: LogLevel = Field(default="INFO")
    log_dir: Path | None = Field(default=None)

    @model_validator(mode="before")
    @classmethod
    def handle_empty_config(cls, data: Any) -> Any:
        return {} if data is None else data

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    @field_validator("log_dir")
    @classmethod
    def resolve_log_dir(cls, v: Path | None) -> Path | None:
        return v.expanduser().resolve() if v is not None else None
