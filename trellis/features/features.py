"""
Feature Schema Definitions.

A dataset's feature schema is an ordered mapping from field name to a
semantic type. Every record yielded by a generator is encoded through the
schema before it reaches the caller; any disagreement raises
``SchemaMismatchError`` naming the offending field path.

Semantic types:
    Value: scalar (string, bool, int32, int64, float32, float64).
    ClassLabel: integer class index, accepting either the index or its name.
    Image: image blob as ``{"path", "bytes"}`` (decoded lazily with Pillow).
    BBoxes: list of 4-number bounding boxes, stored exactly as provided.
    Sequence: list of an inner feature.
    dict: nested struct of features.
"""

from __future__ import annotations

import io
from collections.abc import Mapping
from dataclasses import dataclass
from numbers import Integral, Real
from pathlib import Path
from typing import Any, Literal, Union

import numpy as np
from PIL import Image as PILImage

from ..exceptions import SchemaMismatchError, TrellisConfigError

ValueDType = Literal["string", "bool", "int32", "int64", "float32", "float64"]

_INT32_BOUNDS = (-(2**31), 2**31 - 1)


def _mismatch(path: str, expected: str, value: Any) -> SchemaMismatchError:
    shown = repr(value)
    if len(shown) > 60:
        shown = shown[:57] + "..."
    return SchemaMismatchError(
        f"Field '{path}' expected {expected}, got {type(value).__name__} {shown}"
    )


# SCALAR TYPES
@dataclass(frozen=True)
class Value:
    """Scalar value of a fixed dtype."""

    dtype: ValueDType = "string"

    def encode(self, value: Any, path: str) -> Any:
        if self.dtype == "string":
            if not isinstance(value, str):
                raise _mismatch(path, "string", value)
            return value

        if self.dtype == "bool":
            if not isinstance(value, (bool, np.bool_)):
                raise _mismatch(path, "bool", value)
            return bool(value)

        if self.dtype in ("int32", "int64"):
            if isinstance(value, (bool, np.bool_)) or not isinstance(value, Integral):
                raise _mismatch(path, self.dtype, value)
            value = int(value)
            if self.dtype == "int32" and not _INT32_BOUNDS[0] <= value <= _INT32_BOUNDS[1]:
                raise _mismatch(path, "int32 within bounds", value)
            return value

        # float32 / float64
        if isinstance(value, (bool, np.bool_)) or not isinstance(value, Real):
            raise _mismatch(path, self.dtype, value)
        return float(value)


@dataclass(frozen=True)
class ClassLabel:
    """
    Integer class label over a fixed, ordered set of names.

    Accepts either the integer index or the class name; always encodes to
    the integer index.
    """

    names: tuple[str, ...]

    def __post_init__(self) -> None:
        if len(set(self.names)) != len(self.names):
            raise TrellisConfigError(f"ClassLabel names must be unique: {list(self.names)}")

    @property
    def num_classes(self) -> int:
        return len(self.names)

    def str2int(self, name: str) -> int:
        try:
            return self.names.index(name)
        except ValueError:
            raise KeyError(f"Unknown class name '{name}'") from None

    def int2str(self, index: int) -> str:
        return self.names[index]

    def encode(self, value: Any, path: str) -> int:
        if isinstance(value, str):
            if value not in self.names:
                raise _mismatch(path, f"one of {self.num_classes} class names", value)
            return self.names.index(value)
        if isinstance(value, Integral) and not isinstance(value, (bool, np.bool_)):
            if not 0 <= int(value) < self.num_classes:
                raise _mismatch(path, f"class index in [0, {self.num_classes})", value)
            return int(value)
        raise _mismatch(path, "class name or index", value)


# IMAGE
@dataclass(frozen=True)
class Image:
    """
    Image blob stored as ``{"path": str | None, "bytes": bytes | None}``.

    Generators may yield a path string, a ``{"path", "bytes"}`` mapping, or a
    ``PIL.Image.Image`` (re-encoded to bytes). Decoding happens only on
    request via ``decode_example``.
    """

    def encode(self, value: Any, path: str) -> dict[str, Any]:
        if isinstance(value, (str, Path)):
            return {"path": str(value), "bytes": None}

        if isinstance(value, PILImage.Image):
            buffer = io.BytesIO()
            value.save(buffer, format=value.format or "PNG")
            return {"path": None, "bytes": buffer.getvalue()}

        if not isinstance(value, Mapping) or not set(value) <= {"path", "bytes"}:
            raise _mismatch(path, "image path or {'path', 'bytes'} mapping", value)

        img_path = value.get("path")
        img_bytes = value.get("bytes")
        if img_path is None and img_bytes is None:
            raise _mismatch(path, "image with a path or bytes", value)
        if img_path is not None and not isinstance(img_path, (str, Path)):
            raise _mismatch(f"{path}.path", "string", img_path)
        if img_bytes is not None and not isinstance(img_bytes, (bytes, bytearray)):
            raise _mismatch(f"{path}.bytes", "bytes", img_bytes)

        return {
            "path": str(img_path) if img_path is not None else None,
            "bytes": bytes(img_bytes) if img_bytes is not None else None,
        }

    @staticmethod
    def decode_example(value: Mapping[str, Any], as_array: bool = False) -> Any:
        """
        Open an encoded image with Pillow.

        Args:
            value: Encoded ``{"path", "bytes"}`` mapping (bytes take precedence).
            as_array: Return a ``numpy.ndarray`` (H, W[, C]) instead of a PIL image.

        Returns:
            A loaded ``PIL.Image.Image`` or its array view.
        """
        if value.get("bytes") is not None:
            img = PILImage.open(io.BytesIO(value["bytes"]))
        else:
            img = PILImage.open(value["path"])
        img.load()
        return np.asarray(img) if as_array else img


# COMPOSITE TYPES
@dataclass(frozen=True)
class BBoxes:
    """Bounding boxes: a list of 4-number boxes in the given coordinate format."""

    format: Literal["coco", "voc", "yolo"] = "coco"

    def encode(self, value: Any, path: str) -> list[list[Any]]:
        if not isinstance(value, (list, tuple)):
            raise _mismatch(path, "list of 4-number boxes", value)
        boxes = []
        for i, box in enumerate(value):
            if not isinstance(box, (list, tuple)) or len(box) != 4:
                raise _mismatch(f"{path}[{i}]", "4-number box", box)
            for coord in box:
                if isinstance(coord, bool) or not isinstance(coord, Real):
                    raise _mismatch(f"{path}[{i}]", "numeric coordinates", box)
            boxes.append(list(box))
        return boxes


@dataclass(frozen=True)
class Sequence:
    """List of values of an inner feature; ``length=-1`` means any length."""

    feature: "FeatureType"
    length: int = -1

    def encode(self, value: Any, path: str) -> list[Any]:
        if not isinstance(value, (list, tuple)):
            raise _mismatch(path, "list", value)
        if self.length >= 0 and len(value) != self.length:
            raise _mismatch(path, f"list of length {self.length}", value)
        return [encode_value(self.feature, item, f"{path}[{i}]") for i, item in enumerate(value)]


FeatureType = Union[Value, ClassLabel, Image, BBoxes, Sequence, dict]


def encode_value(feature: FeatureType, value: Any, path: str) -> Any:
    """
    Encode *value* against *feature*, raising ``SchemaMismatchError`` on disagreement.

    ``None`` is accepted for every feature except ``Image``.
    """
    if value is None:
        if isinstance(feature, Image):
            raise _mismatch(path, "image", value)
        return None

    if isinstance(feature, dict):
        if not isinstance(value, Mapping):
            raise _mismatch(path, "mapping", value)
        _check_keys(feature, value, path)
        return {key: encode_value(sub, value[key], f"{path}.{key}") for key, sub in feature.items()}

    return feature.encode(value, path)


def _check_keys(schema: Mapping[str, Any], value: Mapping[str, Any], path: str) -> None:
    missing = [k for k in schema if k not in value]
    unexpected = [k for k in value if k not in schema]
    if missing or unexpected:
        parts = []
        if missing:
            parts.append(f"missing {missing}")
        if unexpected:
            parts.append(f"unexpected {unexpected}")
        where = f"'{path}'" if path else "record"
        raise SchemaMismatchError(f"Fields of {where} do not match the schema: {', '.join(parts)}")


# SCHEMA
class Features(dict):
    """
    Ordered mapping ``field name → feature``.

    Example:
        >>> features = Features({"image": Image(), "label": ClassLabel(("cat", "dog"))})
        >>> features.encode_example({"image": "cat/1.png", "label": "dog"})["label"]
        1
    """

    def encode_example(self, example: Any) -> dict[str, Any]:
        """Validate *example* against the schema and return its normalized form."""
        if not isinstance(example, Mapping):
            raise _mismatch("<record>", "mapping", example)
        _check_keys(self, example, "")
        return {key: encode_value(feature, example[key], key) for key, feature in self.items()}

    def decode_example(self, example: Mapping[str, Any], as_array: bool = False) -> dict[str, Any]:
        """Return a copy of *example* with top-level images opened with Pillow."""
        decoded = dict(example)
        for key, feature in self.items():
            if isinstance(feature, Image) and example.get(key) is not None:
                decoded[key] = Image.decode_example(example[key], as_array=as_array)
        return decoded

    def to_dict(self) -> dict[str, Any]:
        """Serializable form, e.g. ``{"label": {"_type": "ClassLabel", "names": [...]}}``."""
        return {key: _feature_to_dict(feature) for key, feature in self.items()}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Features:
        """Inverse of ``to_dict``."""
        return cls({key: _feature_from_dict(value) for key, value in data.items()})


def _feature_to_dict(feature: FeatureType) -> dict[str, Any]:
    if isinstance(feature, dict):
        return {key: _feature_to_dict(sub) for key, sub in feature.items()}
    if isinstance(feature, Value):
        return {"_type": "Value", "dtype": feature.dtype}
    if isinstance(feature, ClassLabel):
        return {"_type": "ClassLabel", "names": list(feature.names)}
    if isinstance(feature, Image):
        return {"_type": "Image"}
    if isinstance(feature, BBoxes):
        return {"_type": "BBoxes", "format": feature.format}
    if isinstance(feature, Sequence):
        return {
            "_type": "Sequence",
            "feature": _feature_to_dict(feature.feature),
            "length": feature.length,
        }
    raise TrellisConfigError(f"Unsupported feature type: {type(feature).__name__}")


def _feature_from_dict(data: Mapping[str, Any]) -> FeatureType:
    kind = data.get("_type")
    if kind is None:
        return {key: _feature_from_dict(sub) for key, sub in data.items()}
    if kind == "Value":
        return Value(data["dtype"])
    if kind == "ClassLabel":
        return ClassLabel(tuple(data["names"]))
    if kind == "Image":
        return Image()
    if kind == "BBoxes":
        return BBoxes(data.get("format", "coco"))
    if kind == "Sequence":
        return Sequence(_feature_from_dict(data["feature"]), data.get("length", -1))
    raise TrellisConfigError(f"Unknown feature type '{kind}'")
