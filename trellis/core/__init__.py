"""
Core Utilities Package.

Paths and naming conventions, logging, YAML/JSON Lines I/O. Configuration
schemas live in ``trellis.core.config`` and are imported lazily.
"""

from .io import load_config_from_yaml, md5_checksum, read_jsonl, save_as_yaml
from .logger import Logger, LogStyle, log_dataset_summary, log_verification_summary
from .paths import CACHE_DIR, LOGGER_NAME, METADATA_FILENAME, get_cache_dir

__all__ = [
    "CACHE_DIR",
    "LOGGER_NAME",
    "METADATA_FILENAME",
    "Logger",
    "LogStyle",
    "get_cache_dir",
    "load_config_from_yaml",
    "log_dataset_summary",
    "log_verification_summary",
    "md5_checksum",
    "read_jsonl",
    "save_as_yaml",
]
