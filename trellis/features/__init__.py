"""
Feature Schema Package.

Semantic field types, schema validation of generated records, and schema
inference from metadata rows.
"""

from .features import (
    BBoxes,
    ClassLabel,
    Features,
    FeatureType,
    Image,
    Sequence,
    Value,
    encode_value,
)
from .inference import fill_missing, infer_feature, infer_features, merge_features

__all__ = [
    "BBoxes",
    "ClassLabel",
    "Features",
    "FeatureType",
    "Image",
    "Sequence",
    "Value",
    "encode_value",
    "fill_missing",
    "infer_feature",
    "infer_features",
    "merge_features",
]
