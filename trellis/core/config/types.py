"""
Semantic type Definitions & Validation Primitives.

Annotated pydantic types shared by the configuration schemas: path
sanitization without disk I/O, bounded numeric primitives, and the
literal policy vocabularies of the loader.
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Literal

from pydantic import AfterValidator, Field, PlainSerializer


def _sanitize_path(v: str | Path) -> Path:
    """Expand ``~`` and resolve to an absolute path (no filesystem checks)."""
    return Path(v).expanduser().resolve()


# GENERIC PRIMITIVES
PositiveInt = Annotated[int, Field(gt=0)]
NonNegativeInt = Annotated[int, Field(ge=0)]
NonNegativeFloat = Annotated[float, Field(ge=0.0)]

# FILESYSTEM
ValidatedPath = Annotated[
    Path,
    AfterValidator(_sanitize_path),
    PlainSerializer(lambda v: str(v), when_used="json", return_type=str),
]

# DOWNLOADS
RetryCount = Annotated[int, Field(ge=1, le=20)]
ChunkSize = Annotated[int, Field(ge=1024, le=64 * 1024 * 1024)]

# LOADER POLICIES
DanglingReferencePolicy = Literal["error", "skip"]
MissingMetadataPolicy = Literal["error", "drop"]

# TELEMETRY
LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
