"""
Metadata Join for Folder Layouts.

Pairs the images of a split with the rows of the ``metadata.jsonl`` files
found in it. Each row's ``file_name`` is resolved relative to the directory
holding its metadata file and must name exactly one image. The whole
metadata is read before any record is produced.

Unmatched entries follow the loader policies:
    - row without image: ``DanglingReferenceError`` or skipped (``"skip"``)
    - image without row: ``MissingMetadataError`` or dropped (``"drop"``)
Skipped and dropped names are counted in the returned ``JoinReport``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..builder.splits import JoinReport
from ..core.config import LoaderConfig
from ..core.io import read_jsonl
from ..core.logger import LogStyle
from ..core.paths import FILE_NAME_KEY, LOGGER_NAME
from ..exceptions import DanglingReferenceError, MetadataFormatError, MissingMetadataError

logger = logging.getLogger(LOGGER_NAME)


@dataclass(frozen=True)
class MetadataFile:
    """Rows of one metadata file, all carrying ``file_name``."""

    path: Path
    rows: tuple[dict[str, Any], ...]

    @classmethod
    def read(cls, path: Path) -> MetadataFile:
        return cls(path=path, rows=tuple(read_jsonl(path, required_key=FILE_NAME_KEY)))

    def resolve(self, row: dict[str, Any]) -> Path:
        """Absolute path a row's ``file_name`` refers to."""
        file_name = row[FILE_NAME_KEY]
        if not isinstance(file_name, str) or not file_name:
            raise MetadataFormatError(
                f"{self.path.name}: '{FILE_NAME_KEY}' must be a non-empty string, got {file_name!r}"
            )
        return (self.path.parent / file_name).resolve()


def join_metadata(
    images: Sequence[Path],
    metadata_files: Sequence[MetadataFile],
    policy: LoaderConfig,
    split_root: Path,
) -> tuple[list[tuple[Path, dict[str, Any]]], JoinReport]:
    """
    Join *images* with the rows of *metadata_files*.

    Args:
        images: Image files of the split.
        metadata_files: Parsed metadata files of the split.
        policy: Loader policies for unmatched rows and images.
        split_root: Split directory, used to report relative names.

    Returns:
        ``(image, row)`` pairs in image order, and the join report.

    Raises:
        DanglingReferenceError: Unmatched rows under the ``"error"`` policy.
        MissingMetadataError: Unmatched images under the ``"error"`` policy.
        MetadataFormatError: Two rows naming the same image.
    """
    by_path = {image.resolve(): image for image in images}
    rows_by_image: dict[Path, dict[str, Any]] = {}
    dangling: list[str] = []

    def _relative(path: Path) -> str:
        try:
            return path.relative_to(split_root.resolve()).as_posix()
        except ValueError:
            return path.as_posix()

    for meta in metadata_files:
        for row in meta.rows:
            target = meta.resolve(row)
            if target not in by_path:
                dangling.append(_relative(target))
                continue
            if target in rows_by_image:
                raise MetadataFormatError(
                    f"{meta.path.name}: '{_relative(target)}' is described by more than one row"
                )
            rows_by_image[target] = row

    missing = [_relative(p) for p in by_path if p not in rows_by_image]
    where = split_root.name

    if dangling:
        if policy.on_dangling_reference == "error":
            raise DanglingReferenceError(dangling, where)
        logger.warning(
            LogStyle.kv("Dangling Rows", f"{len(dangling)} skipped in '{where}'", LogStyle.WARNING)
        )

    if missing:
        if policy.on_missing_metadata == "error":
            raise MissingMetadataError(missing, where)
        logger.warning(
            LogStyle.kv(
                "Missing Metadata", f"{len(missing)} dropped in '{where}'", LogStyle.WARNING
            )
        )

    pairs = [
        (by_path[resolved], rows_by_image[resolved])
        for resolved in by_path
        if resolved in rows_by_image
    ]
    report = JoinReport(
        matched=len(pairs),
        dangling_skipped=tuple(sorted(dangling)),
        missing_dropped=tuple(sorted(missing)),
    )
    return pairs, report
