"""
Dataset Loading Entry Points.

A dataset path is either a directory, loaded with the folder convention,
or a ``.py`` loading script defining a builder class. Both resolve to a
``DatasetBuilder`` for one configuration, which ``load_dataset`` plans and
materializes.
"""

from __future__ import annotations

from pathlib import Path

from .builder import DatasetBuilder, DatasetDict, materialize
from .builder.protocol import ResourceFetcher
from .builder.script import find_builder_class, instantiate, load_script_module
from .builder.verification import load_expected_checksums
from .core.config import Config
from .core.paths import INFO_FILENAME
from .data_handler import DownloadManager, ImageFolderBuilder
from .exceptions import ResourceUnavailableError, TrellisConfigError


def load_builder(
    path: Path | str, name: str | None = None, cfg: Config | None = None
) -> DatasetBuilder:
    """
    Resolve *path* to a builder for the configuration *name*.

    Args:
        path: Dataset directory or loading script.
        name: Configuration name (scripts only; a folder has just ``default``).
        cfg: Loader settings for folder datasets.

    Raises:
        ResourceUnavailableError: The path does not exist or is neither kind.
        TrellisConfigError: Unknown configuration name.
    """
    path = Path(path)
    cfg = cfg if cfg is not None else Config()

    if path.is_dir():
        builder = ImageFolderBuilder(path, cfg.loader)
        if name is not None and name != builder.config.name:
            raise TrellisConfigError(
                f"Folder datasets have a single '{builder.config.name}' configuration, "
                f"got '{name}'"
            )
        return builder

    if path.suffix == ".py":
        builder_cls = find_builder_class(load_script_module(path))
        return instantiate(builder_cls, name)

    raise ResourceUnavailableError(
        str(path), "expected a dataset directory or a .py loading script"
    )


def make_fetcher(
    path: Path | str, builder: DatasetBuilder, cfg: Config | None = None
) -> DownloadManager:
    """
    ``DownloadManager`` resolving relative locators next to *path*.

    Checksums recorded in a ``dataset_infos.yaml`` beside a loading script are
    verified for the builder's configuration.
    """
    path = Path(path).resolve()
    cfg = cfg if cfg is not None else Config()
    base_dir = path if path.is_dir() else path.parent

    expected: dict[str, str] = {}
    if cfg.download.verify_checksums and path.is_file():
        expected = load_expected_checksums(base_dir / INFO_FILENAME, builder.config.name)

    return DownloadManager(cfg.download, base_dir=base_dir, expected_checksums=expected)


def load_dataset(
    path: Path | str,
    name: str | None = None,
    split: str | None = None,
    cfg: Config | None = None,
    fetcher: ResourceFetcher | None = None,
) -> DatasetDict:
    """
    Load and materialize a dataset.

    Args:
        path: Dataset directory or loading script.
        name: Configuration name.
        split: Restrict to one split.
        cfg: Download and loader settings.
        fetcher: Resource fetcher (defaults to ``make_fetcher``).

    Returns:
        ``DatasetDict`` of materialized splits.

    Example:
        >>> ds = load_dataset("data/pets", split="train")
        >>> ds["train"].features["label"].names
        ('cat', 'dog')
    """
    builder = load_builder(path, name, cfg)
    if fetcher is None:
        fetcher = make_fetcher(path, builder, cfg)
    return materialize(builder, fetcher, split)
