"""
Trellis: declarative image datasets.

Top-level convenience API re-exporting the most commonly used components
from subpackages, so users and the ``trellis`` CLI can write:

    from trellis import BuilderConfig, DatasetInfo, Features, load_dataset
"""

from importlib.metadata import version as _pkg_version

__version__ = _pkg_version("trellis-datasets")

from .builder import (
    BuilderConfig,
    ConfigRegistry,
    Dataset,
    DatasetBuilder,
    DatasetDict,
    DatasetInfo,
    Split,
    SplitPlan,
    materialize,
)
from .core import LogStyle
from .core.config import Config
from .data_handler import DownloadManager, ImageFolderBuilder, LocalHubPublisher
from .features import BBoxes, ClassLabel, Features, Image, Sequence, Value
from .load import load_builder, load_dataset

__all__ = [
    "__version__",
    # Descriptors
    "BuilderConfig",
    "ConfigRegistry",
    "DatasetBuilder",
    "DatasetInfo",
    "Split",
    "SplitPlan",
    # Features
    "BBoxes",
    "ClassLabel",
    "Features",
    "Image",
    "Sequence",
    "Value",
    # Loading
    "Config",
    "Dataset",
    "DatasetDict",
    "DownloadManager",
    "ImageFolderBuilder",
    "LocalHubPublisher",
    "LogStyle",
    "load_builder",
    "load_dataset",
    "materialize",
]
