"""
Materialized Datasets.

In-memory containers produced by draining record streams: one ``Dataset``
per split, grouped in a ``DatasetDict``. They are what the publish
interface accepts.
"""

from __future__ import annotations

from collections.abc import Iterator
from typing import Any

from ..features import Features
from .info import DatasetInfo
from .splits import JoinReport


class Dataset:
    """
    Records of one split, validated against ``info.features``.

    Attributes:
        split: Split name.
        info: Dataset info of the configuration the split belongs to.
        keys: Record identifiers in generation order.
        report: Metadata join summary of the split, if any.
    """

    def __init__(
        self,
        split: str,
        info: DatasetInfo,
        records: list[tuple[str, dict[str, Any]]],
        report: JoinReport | None = None,
    ) -> None:
        self.split = split
        self.info = info
        self.keys = [key for key, _ in records]
        self._examples = [example for _, example in records]
        self.report = report

    @property
    def features(self) -> Features:
        return self.info.features

    @property
    def column_names(self) -> list[str]:
        return list(self.features)

    def __len__(self) -> int:
        return len(self._examples)

    def __getitem__(self, idx: int) -> dict[str, Any]:
        return self._examples[idx]

    def __iter__(self) -> Iterator[dict[str, Any]]:
        return iter(self._examples)

    def items(self) -> Iterator[tuple[str, dict[str, Any]]]:
        """Iterate ``(key, example)`` pairs in generation order."""
        return zip(self.keys, self._examples)

    def column(self, name: str) -> list[Any]:
        if name not in self.features:
            raise KeyError(f"Column '{name}' not found. Available: {self.column_names}")
        return [example[name] for example in self._examples]

    def decoded(self, idx: int, as_array: bool = False) -> dict[str, Any]:
        """Example *idx* with its images opened with Pillow (or as numpy arrays)."""
        return self.features.decode_example(self._examples[idx], as_array=as_array)

    def __repr__(self) -> str:
        return f"<Dataset split={self.split!r} num_rows={len(self)} features={self.column_names}>"


class DatasetDict(dict):
    """Mapping of split name to ``Dataset``."""

    @property
    def num_rows(self) -> dict[str, int]:
        return {split: len(ds) for split, ds in self.items()}

    @property
    def info(self) -> DatasetInfo | None:
        for ds in self.values():
            return ds.info
        return None
