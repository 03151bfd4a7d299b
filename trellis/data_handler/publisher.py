"""
Dataset Publishing.

Writes a materialized ``DatasetDict`` to a hub destination addressed by a
``namespace/name`` repository id. ``LocalHubPublisher`` targets a local
directory tree and writes a folder-convention layout that loads back with
``ImageFolderBuilder``:

    <hub_dir>/<namespace>/<name>/
        dataset_info.yaml
        <split>/<class>/<image>            label only
        <split>/metadata.jsonl + <image>   any other fields

The tree is assembled in a temporary sibling directory and moved into place
once complete, so a failed publish never leaves a partial dataset behind.
"""

from __future__ import annotations

import json
import logging
import re
import shutil
from pathlib import Path, PurePosixPath
from typing import Any, Protocol, runtime_checkable

from ..builder import Dataset, DatasetDict
from ..core.io import save_as_yaml
from ..core.logger import LogStyle
from ..core.paths import (
    FILE_NAME_KEY,
    LABEL_KEY,
    LOGGER_NAME,
    METADATA_FILENAME,
    PUBLISHED_INFO_FILENAME,
)
from ..exceptions import TrellisPublishError
from ..features import ClassLabel, Image

logger = logging.getLogger(LOGGER_NAME)

_REPO_ID_PATTERN = re.compile(r"^[A-Za-z0-9][\w.-]*/[A-Za-z0-9][\w.-]*$")


@runtime_checkable
class Publisher(Protocol):
    """Accepts a materialized dataset and a destination identifier."""

    def publish(self, datasets: DatasetDict, repo_id: str) -> Any: ...


def _image_field(ds: Dataset) -> str:
    fields = [key for key, feature in ds.features.items() if isinstance(feature, Image)]
    if len(fields) != 1:
        raise TrellisPublishError(
            f"Publishing needs exactly one image field, found {fields or 'none'}"
        )
    return fields[0]


class LocalHubPublisher:
    """
    Publisher writing to a local hub directory.

    Attributes:
        hub_dir: Root of the local hub.
        overwrite: Replace an existing dataset with the same repository id.
    """

    def __init__(self, hub_dir: Path | str, overwrite: bool = False) -> None:
        self.hub_dir = Path(hub_dir).expanduser()
        self.overwrite = overwrite

    def destination(self, repo_id: str) -> Path:
        if not _REPO_ID_PATTERN.match(repo_id):
            raise TrellisPublishError(
                f"Invalid repository id '{repo_id}', expected 'namespace/name'"
            )
        namespace, name = repo_id.split("/")
        return self.hub_dir / namespace / name

    def publish(self, datasets: DatasetDict, repo_id: str) -> Path:
        """
        Write every split of *datasets* under the hub directory.

        Args:
            datasets: Materialized splits sharing one ``DatasetInfo``.
            repo_id: ``namespace/name`` destination.

        Returns:
            Directory the dataset was published to.

        Raises:
            TrellisPublishError: Invalid id, existing destination without
                ``overwrite``, unsupported schema, or unreadable images.
        """
        target = self.destination(repo_id)
        if not datasets:
            raise TrellisPublishError("Nothing to publish: the dataset has no splits")
        if target.exists() and not self.overwrite:
            raise TrellisPublishError(f"{target} already exists (use overwrite=True to replace)")

        tmp_dir = target.with_name(target.name + ".tmp")
        if tmp_dir.exists():
            shutil.rmtree(tmp_dir)
        tmp_dir.mkdir(parents=True)

        logger.info(LogStyle.kv("Publishing", f"{repo_id} → {target}"))
        try:
            for split, ds in datasets.items():
                self._write_split(ds, tmp_dir / split)
            info = datasets.info
            manifest = info.to_dict() if info is not None else {}
            manifest["repo_id"] = repo_id
            manifest["splits"] = {
                split: {"num_examples": n} for split, n in datasets.num_rows.items()
            }
            save_as_yaml(manifest, tmp_dir / PUBLISHED_INFO_FILENAME)
        except (OSError, TrellisPublishError):
            shutil.rmtree(tmp_dir, ignore_errors=True)
            raise

        if target.exists():
            shutil.rmtree(target)
        tmp_dir.replace(target)
        logger.info(LogStyle.kv("Published", str(target), LogStyle.SUCCESS))
        return target

    def _write_split(self, ds: Dataset, split_dir: Path) -> None:
        image_key = _image_field(ds)
        label = ds.features.get(LABEL_KEY)
        extras = [key for key in ds.features if key not in (image_key, LABEL_KEY)]
        # class directories carry the label only when nothing else needs metadata rows
        use_class_dirs = isinstance(label, ClassLabel) and not extras
        if LABEL_KEY in ds.features and not use_class_dirs:
            extras.insert(0, LABEL_KEY)

        split_dir.mkdir(parents=True)
        taken: set[str] = set()
        rows: list[dict[str, Any]] = []

        for key, example in ds.items():
            subdir = ""
            if use_class_dirs:
                if example[LABEL_KEY] is None:
                    raise TrellisPublishError(f"Record '{key}' has no label")
                subdir = label.int2str(example[LABEL_KEY])
            relative = _unique_name(subdir, key, example[image_key], taken)
            _write_image(example[image_key], split_dir / relative, key)

            if extras:
                row = {FILE_NAME_KEY: relative}
                for field in extras:
                    value = example[field]
                    if field == LABEL_KEY and isinstance(label, ClassLabel) and value is not None:
                        value = label.int2str(value)
                    row[field] = value
                rows.append(row)

        if rows:
            with open(split_dir / METADATA_FILENAME, "w", encoding="utf-8") as f:
                for row in rows:
                    f.write(json.dumps(row, ensure_ascii=False) + "\n")

        logger.info(LogStyle.kv(f"Split {split_dir.name}", f"{len(ds)} images written"))


def _unique_name(subdir: str, key: str, image: dict[str, Any], taken: set[str]) -> str:
    """Relative posix path for an image, derived from its key and kept unique per split."""
    source = PurePosixPath(image.get("path") or key)
    stem = PurePosixPath(key).stem or "image"
    suffix = source.suffix or ".png"

    candidate = str(PurePosixPath(subdir, f"{stem}{suffix}")) if subdir else f"{stem}{suffix}"
    n = 1
    while candidate in taken:
        name = f"{stem}_{n}{suffix}"
        candidate = str(PurePosixPath(subdir, name)) if subdir else name
        n += 1
    taken.add(candidate)
    return candidate


def _write_image(image: dict[str, Any], dest: Path, key: str) -> None:
    dest.parent.mkdir(parents=True, exist_ok=True)
    if image.get("bytes") is not None:
        dest.write_bytes(image["bytes"])
        return
    source = Path(image["path"])
    if not source.is_file():
        raise TrellisPublishError(f"Record '{key}': image file {source} not found")
    shutil.copyfile(source, dest)
