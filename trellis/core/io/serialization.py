"""
YAML Serialization & Persistence Utilities.

Loads recipes and persists dataset info manifests (features, split sizes,
download checksums) with recursive sanitization and an atomic, fsync'ed
write.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any

import yaml

from ..paths import LOGGER_NAME

logger = logging.getLogger(LOGGER_NAME)


def save_as_yaml(data: Any, yaml_path: Path) -> Path:
    """
    Serializes *data* to a YAML file.

    Accepts pydantic models (``model_dump(mode="json")``), objects exposing
    ``to_dict()``, or plain containers.

    Args:
        data: Object to persist.
        yaml_path: Destination path (parents are created).

    Returns:
        The written path.

    Raises:
        ValueError: If the object cannot be serialized.
        OSError: On filesystem errors.
    """
    try:
        if hasattr(data, "model_dump"):
            raw = data.model_dump(mode="json")
        elif hasattr(data, "to_dict"):
            raw = data.to_dict()
        else:
            raw = data
        final_data = _sanitize_for_yaml(raw)
    except Exception as e:
        logger.error(f"Serialization failed: {e}")
        raise ValueError(f"Could not serialize object: {e}") from e

    try:
        _persist_yaml_atomic(final_data, yaml_path)
    except OSError as e:
        logger.error(f"IO Error: could not write YAML to {yaml_path}: {e}")
        raise

    logger.debug(f"YAML written → {yaml_path.name}")
    return yaml_path


def load_config_from_yaml(yaml_path: Path) -> Any:
    """
    Loads a YAML document.

    Raises:
        FileNotFoundError: If the path does not exist.
    """
    if not yaml_path.exists():
        raise FileNotFoundError(f"YAML file not found at: {yaml_path}")

    with open(yaml_path, "r", encoding="utf-8") as f:
        return yaml.safe_load(f)


def _sanitize_for_yaml(obj: Any) -> Any:
    """Recursively convert Paths to strings and tuples to lists."""
    if isinstance(obj, dict):
        return {k: _sanitize_for_yaml(v) for k, v in obj.items()}
    if isinstance(obj, (list, tuple)):
        return [_sanitize_for_yaml(i) for i in obj]
    if isinstance(obj, Path):
        return str(obj)
    return obj


def _persist_yaml_atomic(data: Any, path: Path) -> None:
    """Write to a sibling temp file, fsync, then atomically replace *path*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp_path = path.with_suffix(path.suffix + ".tmp")

    with open(tmp_path, "w", encoding="utf-8") as f:
        yaml.safe_dump(
            data, f, default_flow_style=False, sort_keys=False, indent=2, allow_unicode=True
        )
        f.flush()
        os.fsync(f.fileno())
    tmp_path.replace(path)
