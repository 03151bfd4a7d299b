"""
Project-wide Path Constants and File-Layout Conventions.

Single source of truth for cache location, logger identity, and the
filesystem conventions of the folder-based layout (split directory aliases,
metadata file name, image extensions).

Module Attributes:
    LOGGER_NAME: Global logger identity used by all modules for log synchronization.
    CACHE_DIR: Default download cache (overridable via ``TRELLIS_CACHE``).
    METADATA_FILENAME: Side-channel metadata file of the folder layout.
    FILE_NAME_KEY: Required key of every metadata row.
    SPLIT_ALIASES: Directory names recognised as split roots.
    INFO_FILENAME: File written by ``trellis test --save-info``.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Final

from PIL import Image

# GLOBAL CONSTANTS
# Global logger identity used by all modules to ensure log synchronization
LOGGER_NAME: Final[str] = "Trellis"

# Folder layout conventions
METADATA_FILENAME: Final[str] = "metadata.jsonl"
FILE_NAME_KEY: Final[str] = "file_name"
LABEL_KEY: Final[str] = "label"
IMAGE_KEY: Final[str] = "image"
INFO_FILENAME: Final[str] = "dataset_infos.yaml"
PUBLISHED_INFO_FILENAME: Final[str] = "dataset_info.yaml"

# Canonical split name → accepted directory names
SPLIT_ALIASES: Final[dict[str, tuple[str, ...]]] = {
    "train": ("train", "training"),
    "validation": ("validation", "valid", "val", "dev"),
    "test": ("test", "testing", "eval"),
}


def _image_extensions() -> frozenset[str]:
    """Lower-case file suffixes Pillow can open (e.g. ``.png``, ``.jpg``)."""
    return frozenset(ext.lower() for ext in Image.registered_extensions())


IMAGE_EXTENSIONS: Final[frozenset[str]] = _image_extensions()


# PATH CALCULATIONS
def get_cache_dir() -> Path:
    """
    Resolve the download cache directory.

    ``TRELLIS_CACHE`` wins when set; otherwise ``~/.cache/trellis``.

    Returns:
        Absolute, user-expanded cache path (not created).
    """
    override = os.getenv("TRELLIS_CACHE")
    if override:
        return Path(override).expanduser().resolve()
    return (Path.home() / ".cache" / "trellis").resolve()


CACHE_DIR: Final[Path] = get_cache_dir()


def canonical_split_name(dirname: str) -> str | None:
    """
    Map a directory name to its canonical split, or None if it is not a split.

    Args:
        dirname: Directory base name (case-insensitive).

    Returns:
        ``"train"``, ``"validation"``, ``"test"`` or None.
    """
    lowered = dirname.lower()
    for split, aliases in SPLIT_ALIASES.items():
        if lowered in aliases:
            return split
    return None
