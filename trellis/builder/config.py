"""
Builder Configurations and their Registry.

A configuration is plain data: a unique name, a description, a version and
the resource locators that selecting it implies. Datasets with several
variants (e.g. "breakfast" and "dinner" subsets) declare an ordered
``ConfigRegistry``; selecting a name determines which resources are fetched.
Behavior never varies by configuration, only data does.
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

from pydantic import Field, model_validator

from ..core.io import load_config_from_yaml
from ..exceptions import TrellisConfigError
from ._model import FrozenRecord
from .info import _VERSION_PATTERN


class BuilderConfig(FrozenRecord):
    """
    Immutable dataset configuration record.

    Attributes:
        name: Unique configuration key.
        description: Human-readable description.
        version: ``MAJOR.MINOR.PATCH`` version tag.
        data_url: Locator of the image archive (URL or local path).
        metadata_urls: Split name → locator of split-specific metadata.
        params: Extra per-configuration data (e.g. class subsets).
    """

    name: str = Field(default="default", pattern=r"^[A-Za-z0-9][\w.-]*$")
    description: str = Field(default="")
    version: str = Field(default="1.0.0", pattern=_VERSION_PATTERN)
    data_url: str | None = Field(default=None)
    metadata_urls: dict[str, str] = Field(default_factory=dict)
    params: dict[str, Any] = Field(default_factory=dict)


class ConfigRegistry(FrozenRecord):
    """
    Ordered, name-unique collection of BuilderConfigs.

    Attributes:
        configs: Configurations in declaration order.
        default: Name selected when the caller does not choose one.
    """

    configs: tuple[BuilderConfig, ...] = Field(default=(BuilderConfig(),))
    default: str | None = Field(default=None)

    @model_validator(mode="after")
    def _check_names(self) -> ConfigRegistry:
        if not self.configs:
            raise TrellisConfigError("ConfigRegistry needs at least one configuration")
        seen: set[str] = set()
        for cfg in self.configs:
            if cfg.name in seen:
                raise TrellisConfigError(f"Duplicate configuration name '{cfg.name}'")
            seen.add(cfg.name)
        if self.default is not None and self.default not in seen:
            raise TrellisConfigError(
                f"Default configuration '{self.default}' not found. Available: {self.names}"
            )
        return self

    @property
    def names(self) -> list[str]:
        return [cfg.name for cfg in self.configs]

    def get(self, name: str) -> BuilderConfig:
        """
        Retrieve a configuration by name.

        Raises:
            TrellisConfigError: If the name is unknown.
        """
        for cfg in self.configs:
            if cfg.name == name:
                return copy.deepcopy(cfg)
        raise TrellisConfigError(f"Configuration '{name}' not found. Available: {self.names}")

    def select(self, name: str | None = None) -> BuilderConfig:
        """
        Resolve the configuration to build.

        An explicit name wins; otherwise the declared default, otherwise the
        only configuration. Several configurations without a default and no
        explicit name is ambiguous.
        """
        if name is not None:
            return self.get(name)
        if self.default is not None:
            return self.get(self.default)
        if len(self.configs) == 1:
            return copy.deepcopy(self.configs[0])
        raise TrellisConfigError(
            f"Configuration name is missing; pick one of {self.names} "
            f"(e.g. name='{self.names[0]}')"
        )

    @classmethod
    def from_yaml(cls, path: Path, section: str = "configs") -> ConfigRegistry:
        """
        Load a registry from a YAML manifest.

        The manifest holds ``default`` and a ``configs`` mapping of
        ``name → fields``; shared fields under ``shared`` are applied to every
        configuration before its own values.
        """
        data = load_config_from_yaml(path) or {}
        shared = data.get("shared", {}) or {}
        entries = data.get(section) or {}
        configs = [
            BuilderConfig(**{**shared, **(fields or {}), "name": name})
            for name, fields in entries.items()
        ]
        return cls(configs=tuple(configs), default=data.get("default"))
