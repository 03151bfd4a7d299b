"""
Dataset Info Definition.

``DatasetInfo`` is the immutable descriptor returned by ``describe()``:
human-facing metadata plus the feature schema every record must satisfy.
Construction fails when the declaration is internally inconsistent, e.g.
supervised keys naming a field that is not in the schema.
"""

from __future__ import annotations

from typing import Any

from pydantic import ConfigDict, Field, InstanceOf, field_validator, model_validator

from ..exceptions import TrellisConfigError
from ..features import Features
from ._model import FrozenRecord

_VERSION_PATTERN = r"^\d+\.\d+\.\d+$"


class DatasetInfo(FrozenRecord):
    """
    Immutable dataset metadata for one configuration.

    Attributes:
        description: Free-text description.
        features: Feature schema (field name → semantic type).
        license: License identifier or text.
        citation: BibTeX citation.
        homepage: Project homepage URL.
        supervised_keys: ``(input, target)`` field names for supervised use.
        config_name: Name of the configuration this info describes.
        version: ``MAJOR.MINOR.PATCH`` version of the configuration.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    description: str = Field(default="")
    features: InstanceOf[Features]
    license: str = Field(default="")
    citation: str = Field(default="")
    homepage: str = Field(default="")
    supervised_keys: tuple[str, str] | None = Field(default=None)
    config_name: str = Field(default="default")
    version: str = Field(default="1.0.0", pattern=_VERSION_PATTERN)

    @field_validator("features", mode="before")
    @classmethod
    def _coerce_features(cls, v: Any) -> Any:
        """Accept a plain mapping of features and wrap it."""
        if isinstance(v, dict) and not isinstance(v, Features):
            return Features(v)
        return v

    @model_validator(mode="after")
    def _check_supervised_keys(self) -> DatasetInfo:
        if not self.features:
            raise TrellisConfigError("DatasetInfo.features must declare at least one field")
        if self.supervised_keys is not None:
            absent = [k for k in self.supervised_keys if k not in self.features]
            if absent:
                raise TrellisConfigError(
                    f"supervised_keys {absent} are not declared in features "
                    f"{list(self.features)}"
                )
        return self

    def to_dict(self) -> dict[str, Any]:
        """YAML/JSON-compatible representation."""
        return {
            "config_name": self.config_name,
            "version": self.version,
            "description": self.description,
            "homepage": self.homepage,
            "license": self.license,
            "citation": self.citation,
            "supervised_keys": list(self.supervised_keys) if self.supervised_keys else None,
            "features": self.features.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DatasetInfo:
        """Inverse of ``to_dict``."""
        payload = dict(data)
        payload["features"] = Features.from_dict(payload["features"])
        keys = payload.get("supervised_keys")
        payload["supervised_keys"] = tuple(keys) if keys else None
        return cls(**payload)
