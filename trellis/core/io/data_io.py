"""
Data Integrity & Metadata File Utilities.

Checksums for downloaded resources and a strict reader for newline-delimited
JSON metadata files.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

from ...exceptions import MetadataFormatError


def md5_checksum(path: Path, chunk_size: int = 8192) -> str:
    """
    Calculates the MD5 checksum of a file using buffered reading.

    Args:
        path: File to hash.
        chunk_size: Read buffer size in bytes.

    Returns:
        Hexadecimal MD5 digest.
    """
    hash_md5 = hashlib.md5(usedforsecurity=False)
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            hash_md5.update(chunk)
    return hash_md5.hexdigest()


def read_jsonl(path: Path, required_key: str | None = None) -> list[dict[str, Any]]:
    """
    Reads every row of a UTF-8 JSON Lines file into memory.

    Blank lines are ignored. Each remaining line must be a JSON object and,
    when *required_key* is given, must contain it.

    Args:
        path: ``.jsonl`` file.
        required_key: Key every row must carry (e.g. ``file_name``).

    Returns:
        Parsed rows in file order.

    Raises:
        MetadataFormatError: Invalid UTF-8 or JSON, non-object row or missing key.
    """
    rows: list[dict[str, Any]] = []
    with path.open("rb") as f:
        for lineno, raw in enumerate(f, start=1):
            try:
                line = raw.decode("utf-8").strip()
            except UnicodeDecodeError as e:
                raise MetadataFormatError(
                    f"{path.name}:{lineno}: not valid UTF-8 ({e.reason})"
                ) from e
            if not line:
                continue
            try:
                row = json.loads(line)
            except json.JSONDecodeError as e:
                raise MetadataFormatError(f"{path.name}:{lineno}: invalid JSON ({e.msg})") from e
            if not isinstance(row, dict):
                raise MetadataFormatError(f"{path.name}:{lineno}: expected a JSON object")
            if required_key is not None and required_key not in row:
                raise MetadataFormatError(
                    f"{path.name}:{lineno}: missing required key '{required_key}'"
                )
            rows.append(row)
    return rows
