"""
Folder-Convention Dataset Builder.

Loads image datasets laid out on disk without a loading script:

    root/<split>/<class>/<image>          class directories become labels
    root/<split>/metadata.jsonl + images  metadata rows add fields

The split level is optional; without it the whole tree is a single
``train`` split. Split directories are recognised through their aliases
(``val`` → ``validation``, ...).

The layout is scanned once at construction: images, class names and
metadata rows are read there so ``describe()`` stays free of I/O, and the
join of rows with images happens in ``plan_splits`` before any record is
streamed.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from ..builder import BuilderConfig, DatasetInfo, SplitPlan
from ..builder.protocol import ResourceFetcher
from ..builder.splits import Split
from ..core.config import LoaderConfig
from ..core.logger import LogStyle
from ..core.paths import (
    FILE_NAME_KEY,
    IMAGE_EXTENSIONS,
    IMAGE_KEY,
    LABEL_KEY,
    LOGGER_NAME,
    METADATA_FILENAME,
    canonical_split_name,
)
from ..exceptions import ResourceUnavailableError, TrellisConfigError
from ..features import ClassLabel, Features, Image, fill_missing, infer_features
from .download_manager import _is_hidden
from .metadata import MetadataFile, join_metadata

logger = logging.getLogger(LOGGER_NAME)


def _find_splits(data_dir: Path) -> dict[str, Path]:
    """Canonical split name → split directory; the root itself when no split dirs exist."""
    splits: dict[str, Path] = {}
    others: list[str] = []
    for child in sorted(p for p in data_dir.iterdir() if p.is_dir() and not _is_hidden(p.name)):
        split = canonical_split_name(child.name)
        if split is None:
            others.append(child.name)
            continue
        if split in splits:
            raise TrellisConfigError(
                f"Directories '{splits[split].name}' and '{child.name}' both map to split '{split}'"
            )
        splits[split] = child

    if not splits:
        return {Split.TRAIN: data_dir}
    if others:
        logger.warning(
            LogStyle.kv("Ignored Dirs", f"{others} (not split directories)", LogStyle.WARNING)
        )
    return splits


def _scan_split(split_root: Path, with_metadata: bool) -> tuple[list[Path], list[Path]]:
    images: list[Path] = []
    metadata: list[Path] = []
    for path in sorted(split_root.rglob("*")):
        if not path.is_file() or _is_hidden(path.relative_to(split_root).as_posix()):
            continue
        if path.name == METADATA_FILENAME:
            if with_metadata:
                metadata.append(path)
        elif path.suffix.lower() in IMAGE_EXTENSIONS:
            images.append(path)
    return images, metadata


class ImageFolderBuilder:
    """
    Builder over a folder-convention image dataset.

    Attributes:
        data_dir: Dataset root directory.
        loader_cfg: Label and metadata policies.
        config: Configuration record (a single ``default`` configuration).
    """

    def __init__(
        self,
        data_dir: Path | str,
        loader_cfg: LoaderConfig | None = None,
        config: BuilderConfig | None = None,
    ) -> None:
        self.data_dir = Path(data_dir).expanduser().resolve()
        if not self.data_dir.is_dir():
            raise ResourceUnavailableError(str(data_dir), "dataset directory not found")

        self.loader_cfg = loader_cfg if loader_cfg is not None else LoaderConfig()
        self.config = config if config is not None else BuilderConfig(data_url=str(self.data_dir))

        self._split_roots = _find_splits(self.data_dir)
        self._images: dict[str, list[Path]] = {}
        self._metadata: dict[str, list[MetadataFile]] = {}
        with_metadata = not self.loader_cfg.drop_metadata
        for split, root in self._split_roots.items():
            images, metadata_paths = _scan_split(root, with_metadata)
            self._images[split] = images
            self._metadata[split] = [MetadataFile.read(p) for p in metadata_paths]

        self._has_metadata = any(self._metadata.values())
        self._class_names = self._infer_class_names(
            self.loader_cfg.infer_labels(self._has_metadata)
        )
        self._metadata_features = infer_features(
            (row for files in self._metadata.values() for meta in files for row in meta.rows),
            exclude={FILE_NAME_KEY},
        )
        self._features = self._build_features()

    def _infer_class_names(self, wanted: bool) -> tuple[str, ...] | None:
        if not wanted:
            return None
        parents = {
            image.parent
            for split, images in self._images.items()
            for image in images
            if image.parent != self._split_roots[split]
        }
        at_root = any(
            image.parent == self._split_roots[split]
            for split, images in self._images.items()
            for image in images
        )
        if at_root or not parents:
            if self.loader_cfg.drop_labels is False:
                raise TrellisConfigError(
                    f"Labels requested but images in {self.data_dir} are not all inside "
                    "class directories"
                )
            return None
        return tuple(sorted({parent.name for parent in parents}))

    def _build_features(self) -> Features:
        features = Features({IMAGE_KEY: Image()})
        if self._class_names is not None:
            features[LABEL_KEY] = ClassLabel(self._class_names)
        for key, feature in self._metadata_features.items():
            if key in features:
                raise TrellisConfigError(
                    f"Metadata column '{key}' collides with the inferred '{key}' field"
                )
            features[key] = feature
        return features

    @property
    def split_names(self) -> list[str]:
        return list(self._split_roots)

    def describe(self) -> DatasetInfo:
        labelled = self._class_names is not None
        return DatasetInfo(
            description=f"Image folder dataset at {self.data_dir}",
            features=Features(self._features),
            supervised_keys=(IMAGE_KEY, LABEL_KEY) if labelled else None,
            config_name=self.config.name,
            version=self.config.version,
        )

    def plan_splits(self, fetcher: ResourceFetcher) -> dict[str, SplitPlan]:
        """
        Locate the dataset root and join each split's metadata with its images.

        Raises:
            ResourceUnavailableError: The root directory disappeared.
            DanglingReferenceError, MissingMetadataError: Under strict policies.
        """
        fetcher.download(str(self.data_dir))

        plans: dict[str, SplitPlan] = {}
        for split, root in self._split_roots.items():
            if self._has_metadata:
                # splits without a metadata file join against no rows
                files, report = join_metadata(
                    self._images[split], self._metadata[split], self.loader_cfg, root
                )
            else:
                files, report = [(image, {}) for image in self._images[split]], None
            plans[split] = SplitPlan(
                name=split,
                gen_kwargs={"files": tuple(files), "split_root": root},
                report=report,
            )
        return plans

    def generate(self, plan: SplitPlan) -> Iterator[tuple[str, dict[str, Any]]]:
        return plan.bind(self._generate_examples)

    def _generate_examples(
        self, files: tuple[tuple[Path, dict[str, Any]], ...], split_root: Path
    ) -> Iterator[tuple[str, dict[str, Any]]]:
        for image, row in files:
            example: dict[str, Any] = {IMAGE_KEY: {"path": str(image), "bytes": None}}
            if self._class_names is not None:
                example[LABEL_KEY] = image.parent.name
            for key, feature in self._metadata_features.items():
                example[key] = fill_missing(feature, row.get(key))
            yield image.relative_to(split_root).as_posix(), example

    def __repr__(self) -> str:
        return f"ImageFolderBuilder({str(self.data_dir)!r}, splits={self.split_names})"
