"""
Feature inference from metadata rows.

Used by the folder-based loader to derive a schema for the extra fields a
``metadata.jsonl`` contributes. Each column is inferred from all of its
non-null values and the per-row guesses are merged: integer and float
columns widen to ``float64``, structs merge their keys, and lists whose key
names a bounding box (``bbox``/``bboxes``) become ``BBoxes``.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from numbers import Real
from typing import Any

from .features import BBoxes, FeatureType, Sequence, Value

_BBOX_KEYS = frozenset({"bbox", "bboxes"})
_NUMERIC = ("int64", "float64")


def _is_box_list(value: list[Any]) -> bool:
    return all(
        isinstance(box, (list, tuple))
        and len(box) == 4
        and all(isinstance(c, Real) and not isinstance(c, bool) for c in box)
        for box in value
    )


def infer_feature(value: Any, key: str = "") -> FeatureType | None:
    """
    Guess the feature of a single non-null value; None when undecidable (e.g. ``[]``).
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return Value("bool")
    if isinstance(value, int):
        return Value("int64")
    if isinstance(value, float):
        return Value("float64")
    if isinstance(value, str):
        return Value("string")
    if isinstance(value, Mapping):
        return {k: infer_feature(v, k) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        if key in _BBOX_KEYS and _is_box_list(value):
            return BBoxes()
        inner: FeatureType | None = None
        for item in value:
            inner = merge_features(inner, infer_feature(item))
        return Sequence(inner) if inner is not None else None
    return Value("string")


def merge_features(a: FeatureType | None, b: FeatureType | None) -> FeatureType | None:
    """Combine two guesses for the same column; the first one wins on real conflicts."""
    if a is None:
        return b
    if b is None or a == b:
        return a
    if isinstance(a, Value) and isinstance(b, Value):
        if a.dtype in _NUMERIC and b.dtype in _NUMERIC:
            return Value("float64")
        return a
    if isinstance(a, dict) and isinstance(b, dict):
        merged = dict(a)
        for key, sub in b.items():
            merged[key] = merge_features(merged.get(key), sub)
        return merged
    if isinstance(a, Sequence) and isinstance(b, Sequence):
        return Sequence(merge_features(a.feature, b.feature) or Value("string"))
    return a


def _finalize(feature: FeatureType | None) -> FeatureType:
    """Replace undecidable leaves (all-null or empty lists) with strings."""
    if feature is None:
        return Value("string")
    if isinstance(feature, dict):
        return {key: _finalize(sub) for key, sub in feature.items()}
    if isinstance(feature, Sequence):
        return Sequence(_finalize(feature.feature), feature.length)
    return feature


def infer_features(
    rows: Iterable[Mapping[str, Any]], exclude: Iterable[str] = ()
) -> dict[str, FeatureType]:
    """
    Infer a feature mapping from metadata rows.

    Args:
        rows: Parsed metadata rows.
        exclude: Keys to leave out (e.g. ``file_name``).

    Returns:
        Mapping of column name to feature, in order of first appearance.
    """
    skipped = set(exclude)
    guesses: dict[str, FeatureType | None] = {}
    for row in rows:
        for key, value in row.items():
            if key in skipped:
                continue
            guesses[key] = merge_features(guesses.get(key), infer_feature(value, key))
    return {key: _finalize(guess) for key, guess in guesses.items()}


def fill_missing(feature: FeatureType, value: Any) -> Any:
    """
    Null-fill the struct keys *value* lacks under an inferred *feature*.

    Inferred structs carry the union of keys seen across rows, so a single
    row may omit some of them; those become ``None`` like absent top-level
    columns. Lists of structs are filled item by item.
    """
    if isinstance(feature, dict) and isinstance(value, Mapping):
        filled = {key: fill_missing(sub, value.get(key)) for key, sub in feature.items()}
        filled.update((key, sub) for key, sub in value.items() if key not in feature)
        return filled
    if isinstance(feature, Sequence) and isinstance(value, (list, tuple)):
        return [fill_missing(feature.feature, item) for item in value]
    return value
