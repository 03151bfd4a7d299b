"""
Trellis Exception Hierarchy.

TrellisError (base, Exception)
├── TrellisConfigError(TrellisError, ValueError)    ← config / schema declaration
├── TrellisDatasetError(TrellisError)               ← resources and records
│   ├── SchemaMismatchError                         ← record disagrees with features
│   ├── DuplicateKeyError                           ← record key seen twice in a split
│   ├── ResourceUnavailableError                    ← locator cannot be resolved
│   │   └── ChecksumMismatchError                   ← bytes differ from the record
│   ├── DanglingReferenceError                      ← metadata row without a file
│   ├── MissingMetadataError                        ← file without a metadata row
│   └── MetadataFormatError                         ← malformed metadata.jsonl
└── TrellisPublishError(TrellisError)               ← publish destination failures

TrellisConfigError multi-inherits from ValueError so callers validating
user input with ``except ValueError`` keep working.
"""

from __future__ import annotations

from collections.abc import Iterable


class TrellisError(Exception):
    """Base exception for all Trellis errors."""


class TrellisConfigError(TrellisError, ValueError):
    """Configuration or schema declaration error (backward-compatible with ValueError)."""


class TrellisDatasetError(TrellisError):
    """Dataset resolution, generation, or validation error."""


class SchemaMismatchError(TrellisDatasetError):
    """A generated record does not match the declared features. Aborts the split."""


class DuplicateKeyError(TrellisDatasetError):
    """Two records of the same split were generated with the same key."""


class ResourceUnavailableError(TrellisDatasetError):
    """A declared URL or path could not be fetched or resolved."""

    def __init__(self, locator: str, reason: str = "") -> None:
        self.locator = locator
        message = f"Resource unavailable: {locator}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class ChecksumMismatchError(ResourceUnavailableError):
    """Downloaded resource does not match its recorded checksum."""

    def __init__(self, locator: str, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(locator, f"md5 expected {expected}, got {actual}")


class _FileListError(TrellisDatasetError):
    """Error carrying the offending relative file names."""

    _label = ""

    def __init__(self, file_names: Iterable[str], where: str = "") -> None:
        self.file_names = sorted(file_names)
        preview = ", ".join(self.file_names[:5])
        if len(self.file_names) > 5:
            preview += f", ... (+{len(self.file_names) - 5} more)"
        location = f" in {where}" if where else ""
        super().__init__(f"{len(self.file_names)} {self._label}{location}: {preview}")


class DanglingReferenceError(_FileListError):
    """metadata.jsonl rows whose ``file_name`` matches no sibling image."""

    _label = "metadata row(s) reference missing files"


class MissingMetadataError(_FileListError):
    """Images without a matching metadata row while metadata is mandatory."""

    _label = "image(s) have no metadata row"


class MetadataFormatError(TrellisDatasetError):
    """Metadata file is not valid UTF-8, or a row is not an object or lacks ``file_name``."""


class TrellisPublishError(TrellisError):
    """Publishing a materialized dataset to its destination failed."""
