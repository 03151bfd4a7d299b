"""
Input/Output & Persistence Utilities.

YAML recipes and info manifests, file checksums, and JSON Lines metadata.
"""

from .data_io import md5_checksum, read_jsonl
from .serialization import load_config_from_yaml, save_as_yaml

__all__ = [
    "load_config_from_yaml",
    "md5_checksum",
    "read_jsonl",
    "save_as_yaml",
]
