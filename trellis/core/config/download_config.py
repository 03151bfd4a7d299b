"""
Download Configuration Schema.

Controls the resource fetcher: cache location, retry policy, network
timeouts and checksum verification.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..paths import get_cache_dir
from .types import ChunkSize, NonNegativeFloat, PositiveInt, RetryCount, ValidatedPath


class DownloadConfig(BaseModel):
    """
    Resource fetcher settings.

    Attributes:
        cache_dir: Directory where downloads and extractions are cached.
        retries: Download attempts per URL before giving up.
        delay: Base delay (seconds) between attempts (quadratic on HTTP 429).
        timeout: Per-request network timeout in seconds.
        chunk_size: Streaming chunk size in bytes.
        force_download: Ignore cached copies and fetch again.
        verify_checksums: Compare downloads against recorded md5 checksums.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    cache_dir: ValidatedPath = Field(default_factory=get_cache_dir)
    retries: RetryCount = Field(default=3)
    delay: NonNegativeFloat = Field(default=2.0)
    timeout: PositiveInt = Field(default=60)
    chunk_size: ChunkSize = Field(default=8192)
    force_download: bool = Field(default=False)
    verify_checksums: bool = Field(default=True)

    @model_validator(mode="before")
    @classmethod
    def handle_empty_config(cls, data: Any) -> Any:
        """An empty ``download:`` YAML section arrives as None; apply defaults."""
        return {} if data is None else data
