"""
Dataset Verification.

Backs the ``trellis test`` command: runs describe / plan_splits / generate
for a configuration, checks every record against the declared features,
and counts records per split. Results can be persisted next to the loading
script as ``dataset_infos.yaml`` together with the download checksums the
fetcher recorded, so later runs can verify their downloads.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from ..core.io import load_config_from_yaml, save_as_yaml
from ..core.paths import LOGGER_NAME
from .engine import SplitStream, prepare
from .info import DatasetInfo
from .protocol import DatasetBuilder, ResourceFetcher
from .splits import JoinReport

logger = logging.getLogger(LOGGER_NAME)


@dataclass
class VerificationResult:
    """Outcome of verifying one configuration."""

    info: DatasetInfo
    split_sizes: dict[str, int] = field(default_factory=dict)
    reports: dict[str, JoinReport] = field(default_factory=dict)

    @property
    def config_name(self) -> str:
        return self.info.config_name

    @property
    def num_examples(self) -> int:
        return sum(self.split_sizes.values())

    def to_dict(self) -> dict[str, Any]:
        data = self.info.to_dict()
        data["splits"] = {name: {"num_examples": n} for name, n in self.split_sizes.items()}
        return data


def verify_builder(builder: DatasetBuilder, fetcher: ResourceFetcher) -> VerificationResult:
    """
    Generate every split of *builder* once, validating each record.

    Raises:
        SchemaMismatchError, DuplicateKeyError: On the first invalid record.
        ResourceUnavailableError: If a resource cannot be located.
    """
    info = builder.describe()
    result = VerificationResult(info=info)

    for name, plan in prepare(builder, fetcher).items():
        with SplitStream(builder, plan, info.features) as stream:
            for _ in stream:
                pass
            result.split_sizes[name] = stream.num_records
        if plan.report is not None:
            result.reports[name] = plan.report
        logger.debug(f"Verified split '{name}' ({result.split_sizes[name]} records)")

    return result


def save_infos(
    results: list[VerificationResult],
    path: Path,
    download_checksums: dict[str, dict[str, Any]] | None = None,
) -> Path:
    """
    Persist verification results as ``{config_name: info}`` YAML.

    Existing entries for other configurations are preserved.
    """
    existing: dict[str, Any] = {}
    if path.exists():
        existing = load_config_from_yaml(path) or {}

    for result in results:
        entry = result.to_dict()
        if download_checksums:
            entry["download_checksums"] = download_checksums
        existing[result.config_name] = entry

    return save_as_yaml(existing, path)


def load_expected_checksums(path: Path, config_name: str) -> dict[str, str]:
    """Recorded ``url → md5`` for *config_name*, empty when none were saved."""
    if not path.exists():
        return {}
    entry = (load_config_from_yaml(path) or {}).get(config_name) or {}
    recorded = entry.get("download_checksums") or {}
    return {url: item["checksum"] for url, item in recorded.items() if "checksum" in item}
