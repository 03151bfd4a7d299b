"""
Dataset Builder and Resource Fetcher Protocols.

A dataset is described by any object offering exactly three operations:

    describe()            → DatasetInfo          (pure, no I/O)
    plan_splits(fetcher)  → {split: SplitPlan}   (locate resources only)
    generate(plan)        → iterator of (key, example)

The fetcher is the external capability that turns locators into local
handles and streams sequential archives.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from pathlib import Path
from typing import IO, Any, Protocol, runtime_checkable

from .config import BuilderConfig
from .info import DatasetInfo
from .splits import SplitPlan

Record = tuple[str, dict[str, Any]]


@runtime_checkable
class ResourceFetcher(Protocol):
    """Resolves, downloads and extracts named or URL-addressed resources."""

    def download(self, url_or_urls: Any) -> Any:
        """Local paths for a locator, or a list/dict of them (structure preserved)."""
        ...

    def extract(self, path_or_paths: Any) -> Any:
        """Extracted directories for archives; non-archives pass through."""
        ...

    def download_and_extract(self, url_or_urls: Any) -> Any: ...

    def iter_archive(self, path: Path | str) -> Iterator[tuple[str, IO[bytes]]]:
        """
        Yield ``(entry_path, file_obj)`` once each, in archive order, without seeking.

        ``file_obj`` is only valid until the next entry is requested.
        """
        ...

    def iter_files(self, paths: Any) -> Iterator[Path]: ...


@runtime_checkable
class DatasetBuilder(Protocol):
    """Describe / plan / generate capability set of one dataset configuration."""

    config: BuilderConfig

    def describe(self) -> DatasetInfo: ...

    def plan_splits(self, fetcher: ResourceFetcher) -> Mapping[str, SplitPlan]: ...

    def generate(self, plan: SplitPlan) -> Iterator[Record]: ...
