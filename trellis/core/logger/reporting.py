"""
Dataset Summary Logging.

Formatted summaries for materialized datasets and verification runs,
including the metadata join counts of every split.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from ..paths import LOGGER_NAME
from .styles import LogStyle

if TYPE_CHECKING:  # pragma: no cover
    from ...builder import DatasetDict, VerificationResult
    from ...builder.splits import JoinReport

logger = logging.getLogger(LOGGER_NAME)


def _log_report(log: logging.Logger, split: str, report: "JoinReport | None") -> None:
    if report is None:
        return
    if report.is_clean:
        log.info(
            LogStyle.kv(f"{split} metadata", f"{report.matched} rows joined", LogStyle.SUCCESS)
        )
        return
    log.warning(LogStyle.kv(f"{split} metadata", report.summary(), LogStyle.WARNING))


def log_dataset_summary(
    datasets: "DatasetDict", logger_instance: logging.Logger | None = None
) -> None:
    """
    Log features and per-split sizes of a materialized dataset.

    Args:
        datasets: Materialized splits.
        logger_instance: Logger to use (defaults to the module logger).
    """
    log = logger_instance or logger
    info = datasets.info

    LogStyle.log_header(log, "DATASET SUMMARY")
    if info is not None:
        log.info(LogStyle.kv("Configuration", info.config_name))
        log.info(LogStyle.kv("Features", ", ".join(info.features)))
    for split, ds in datasets.items():
        log.info(LogStyle.kv(f"Split {split}", f"{len(ds)} records"))
        _log_report(log, split, ds.report)
    log.info(LogStyle.LIGHT)


def log_verification_summary(
    results: "list[VerificationResult]", logger_instance: logging.Logger | None = None
) -> None:
    """Log split sizes and join reports for each verified configuration."""
    log = logger_instance or logger

    LogStyle.log_header(log, "VERIFICATION")
    for result in results:
        log.info(LogStyle.kv("Configuration", f"{result.config_name} (v{result.info.version})"))
        for split, size in result.split_sizes.items():
            log.info(LogStyle.kv(f"Split {split}", f"{size} records", LogStyle.SUCCESS))
            _log_report(log, split, result.reports.get(split))
    log.info(LogStyle.LIGHT)
