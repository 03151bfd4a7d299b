"""
Dataset Definition Package.

The descriptor side of a dataset: immutable ``DatasetInfo`` and
``BuilderConfig`` records, the ``ConfigRegistry``, ``SplitPlan`` and the
``DatasetBuilder`` protocol, plus the engine that streams, validates and
materializes records.
"""

from .config import BuilderConfig, ConfigRegistry
from .dataset import Dataset, DatasetDict
from .engine import SplitStream, materialize, prepare, stream_split
from .info import DatasetInfo
from .protocol import DatasetBuilder, Record, ResourceFetcher
from .script import find_builder_class, instantiate, load_script_module
from .splits import JoinReport, Split, SplitPlan, SplitState
from .verification import VerificationResult, load_expected_checksums, save_infos, verify_builder

__all__ = [
    "BuilderConfig",
    "ConfigRegistry",
    "Dataset",
    "DatasetBuilder",
    "DatasetDict",
    "DatasetInfo",
    "JoinReport",
    "Record",
    "ResourceFetcher",
    "Split",
    "SplitPlan",
    "SplitState",
    "SplitStream",
    "VerificationResult",
    "find_builder_class",
    "instantiate",
    "load_expected_checksums",
    "load_script_module",
    "materialize",
    "prepare",
    "save_infos",
    "stream_split",
    "verify_builder",
]
