"""
Filesystem Authority Package.

Centralizes the logger identity, download cache location and the naming
conventions of the folder-based dataset layout.
"""

from .constants import (
    CACHE_DIR,
    FILE_NAME_KEY,
    IMAGE_EXTENSIONS,
    IMAGE_KEY,
    INFO_FILENAME,
    LABEL_KEY,
    LOGGER_NAME,
    METADATA_FILENAME,
    PUBLISHED_INFO_FILENAME,
    SPLIT_ALIASES,
    canonical_split_name,
    get_cache_dir,
)

__all__ = [
    "CACHE_DIR",
    "FILE_NAME_KEY",
    "IMAGE_EXTENSIONS",
    "IMAGE_KEY",
    "INFO_FILENAME",
    "LABEL_KEY",
    "LOGGER_NAME",
    "METADATA_FILENAME",
    "PUBLISHED_INFO_FILENAME",
    "SPLIT_ALIASES",
    "canonical_split_name",
    "get_cache_dir",
]
