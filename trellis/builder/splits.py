"""
Split Plans and Split Lifecycle.

``plan_splits`` returns one ``SplitPlan`` per split: the located resource
handles and the keyword arguments the record generator will be called
with. Plans never iterate record contents. A plan may carry a
``JoinReport`` summarizing how a metadata join treated unmatched rows and
files, so lenient policies never drop data silently.

Per split and configuration the lifecycle is:

    UNRESOLVED → RESOURCES_LOCATED → STREAMING → EXHAUSTED

``plan_splits`` performs the first transition, the first pull from the
record stream the second, and the end of the underlying iterator the
third. Nothing leaves EXHAUSTED; regenerating starts a fresh stream.
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterator
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import ConfigDict, Field, InstanceOf

from ..exceptions import TrellisConfigError
from ._model import FrozenRecord


class Split:
    """Canonical split names."""

    TRAIN = "train"
    VALIDATION = "validation"
    TEST = "test"


class SplitState(Enum):
    UNRESOLVED = "unresolved"
    RESOURCES_LOCATED = "resources_located"
    STREAMING = "streaming"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class JoinReport:
    """
    Outcome of joining metadata rows with resources for one split.

    Attributes:
        matched: Resources paired with a metadata row.
        dangling_skipped: Row file names skipped because no resource matched.
        missing_dropped: Resources dropped because no row matched.
    """

    matched: int = 0
    dangling_skipped: tuple[str, ...] = field(default_factory=tuple)
    missing_dropped: tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_clean(self) -> bool:
        return not self.dangling_skipped and not self.missing_dropped

    def summary(self) -> str:
        return (
            f"matched={self.matched}, dangling_skipped={len(self.dangling_skipped)}, "
            f"missing_dropped={len(self.missing_dropped)}"
        )


class SplitPlan(FrozenRecord):
    """
    Generation recipe for one split.

    Attributes:
        name: Split name (``train``, ``validation``, ``test`` or arbitrary).
        gen_kwargs: Resource handles and arguments for the record generator.
        report: Optional metadata join summary.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str = Field(pattern=r"^[A-Za-z0-9][\w.-]*$")
    gen_kwargs: dict[str, Any] = Field(default_factory=dict)
    report: InstanceOf[JoinReport] | None = Field(default=None)

    def bind(self, generator: Callable[..., Iterator[Any]]) -> Iterator[Any]:
        """
        Call *generator* with this plan's arguments after checking its signature.

        Args:
            generator: Record generator function, typically a bound method.

        Returns:
            The generator's iterator.

        Raises:
            TrellisConfigError: If ``gen_kwargs`` does not match the signature.
        """
        try:
            inspect.signature(generator).bind(**self.gen_kwargs)
        except TypeError as e:
            name = getattr(generator, "__qualname__", repr(generator))
            raise TrellisConfigError(
                f"Split '{self.name}': arguments {sorted(self.gen_kwargs)} do not match "
                f"{name}{inspect.signature(generator)}: {e}"
            ) from e
        return generator(**self.gen_kwargs)
