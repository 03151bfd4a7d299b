"""
Record Streaming Engine.

Drives a ``DatasetBuilder``: plans splits, streams records with schema
validation and duplicate-key detection, and materializes splits into
in-memory datasets.

Streaming is cooperative pull: the consumer requests the next record, the
generator does no background work. Closing a stream (explicitly, via
``with``, or by exhaustion) closes the underlying generator so archive and
file handles opened inside it are released.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from typing import Any

from ..core.logger import LogStyle
from ..core.paths import LOGGER_NAME
from ..exceptions import DuplicateKeyError, SchemaMismatchError, TrellisConfigError
from ..features import Features
from .dataset import Dataset, DatasetDict
from .protocol import DatasetBuilder, ResourceFetcher
from .splits import SplitPlan, SplitState

logger = logging.getLogger(LOGGER_NAME)


class SplitStream:
    """
    Single-pass, validated record stream for one split.

    Starts in RESOURCES_LOCATED; the first ``next()`` calls
    ``builder.generate(plan)`` and enters STREAMING; the end of the
    generator, an error, or ``close()`` enters EXHAUSTED. To regenerate,
    create a new stream from the same plan.

    Attributes:
        split: Split name.
        state: Current lifecycle state.
        num_records: Records yielded so far.
    """

    def __init__(
        self, builder: DatasetBuilder, plan: SplitPlan, features: Features | None = None
    ) -> None:
        self._builder = builder
        self.plan = plan
        self.split = plan.name
        self.features = features if features is not None else builder.describe().features
        self.state = SplitState.RESOURCES_LOCATED
        self.num_records = 0
        self._iterator: Iterator[Any] | None = None
        self._seen_keys: set[str] = set()

    def __iter__(self) -> SplitStream:
        return self

    def __next__(self) -> tuple[str, dict[str, Any]]:
        if self.state is SplitState.EXHAUSTED:
            raise StopIteration

        if self._iterator is None:
            self._iterator = iter(self._builder.generate(self.plan))
            self.state = SplitState.STREAMING

        try:
            item = next(self._iterator)
        except Exception:
            # StopIteration included: exhaustion and failure both end the stream
            self.close()
            raise

        return self._validate(item)

    def _validate(self, item: Any) -> tuple[str, dict[str, Any]]:
        try:
            key, example = item
        except (TypeError, ValueError):
            self.close()
            raise SchemaMismatchError(
                f"Split '{self.split}': generator must yield (key, example) pairs, got {item!r}"
            ) from None

        key = str(key)
        if key in self._seen_keys:
            self.close()
            raise DuplicateKeyError(f"Split '{self.split}': duplicate record key '{key}'")

        try:
            encoded = self.features.encode_example(example)
        except SchemaMismatchError as e:
            self.close()
            raise SchemaMismatchError(f"Split '{self.split}', record '{key}': {e}") from e

        self._seen_keys.add(key)
        self.num_records += 1
        return key, encoded

    def close(self) -> None:
        """Release the underlying generator (and any handles it holds)."""
        if self._iterator is not None and hasattr(self._iterator, "close"):
            self._iterator.close()
        self._iterator = None
        self.state = SplitState.EXHAUSTED

    def __enter__(self) -> SplitStream:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()


def prepare(builder: DatasetBuilder, fetcher: ResourceFetcher) -> dict[str, SplitPlan]:
    """
    Run ``plan_splits`` and check the resulting plans.

    Accepts a mapping of split name to plan or an iterable of plans.

    Raises:
        TrellisConfigError: Duplicate split names or a key/plan name mismatch.
    """
    raw = builder.plan_splits(fetcher)
    plans: dict[str, SplitPlan] = {}

    items: Iterable[tuple[str, SplitPlan]]
    if isinstance(raw, Mapping):
        items = raw.items()
    else:
        items = ((plan.name, plan) for plan in raw)

    for name, plan in items:
        if not isinstance(plan, SplitPlan):
            raise TrellisConfigError(f"plan_splits returned {type(plan).__name__} for '{name}'")
        if name != plan.name:
            raise TrellisConfigError(f"Split key '{name}' does not match plan name '{plan.name}'")
        if name in plans:
            raise TrellisConfigError(f"Duplicate split name '{name}'")
        plans[name] = plan

    for plan in plans.values():
        if plan.report is not None and not plan.report.is_clean:
            logger.warning(
                f"{LogStyle.INDENT}{LogStyle.WARNING} {'Metadata Join':<18}: "
                f"[{plan.name}] {plan.report.summary()}"
            )
    return plans


def stream_split(builder: DatasetBuilder, plan: SplitPlan) -> SplitStream:
    """Fresh validated stream over *plan*; calling again regenerates from the start."""
    return SplitStream(builder, plan)


def materialize(
    builder: DatasetBuilder,
    fetcher: ResourceFetcher,
    split: str | None = None,
) -> DatasetDict:
    """
    Plan and drain every split (or only *split*) into memory.

    Args:
        builder: Dataset builder for the selected configuration.
        fetcher: Resource fetcher handed to ``plan_splits``.
        split: Restrict to one split name.

    Returns:
        ``DatasetDict`` of materialized splits.

    Raises:
        TrellisConfigError: Unknown split requested.
    """
    info = builder.describe()
    plans = prepare(builder, fetcher)

    if split is not None:
        if split not in plans:
            raise TrellisConfigError(f"Unknown split '{split}'. Available: {list(plans)}")
        plans = {split: plans[split]}

    datasets = DatasetDict()
    for name, plan in plans.items():
        with SplitStream(builder, plan, info.features) as stream:
            records = list(stream)
        datasets[name] = Dataset(name, info, records, plan.report)
        logger.info(LogStyle.kv(f"Split {name}", f"{len(records)} records"))

    return datasets
