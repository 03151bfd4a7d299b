"""
Root Configuration Manifest.

Aggregates the download, loader and telemetry sections into a single frozen
``Config``. Recipes are YAML files whose top-level keys match the sections;
``--set section.field=value`` style overrides are applied on top of the
recipe before validation.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ...exceptions import TrellisConfigError
from ..io import load_config_from_yaml
from .download_config import DownloadConfig
from .loader_config import LoaderConfig
from .telemetry_config import TelemetryConfig


class Config(BaseModel):
    """
    Top-level configuration.

    Attributes:
        download: Resource fetcher settings.
        loader: Folder-convention loader policies.
        telemetry: Logging settings.

    Example:
        >>> cfg = Config.from_recipe(Path("recipe.yaml"), {"loader.drop_labels": False})
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    download: DownloadConfig = Field(default_factory=DownloadConfig)
    loader: LoaderConfig = Field(default_factory=LoaderConfig)
    telemetry: TelemetryConfig = Field(default_factory=TelemetryConfig)

    @classmethod
    def from_recipe(
        cls, recipe: Path | None = None, overrides: dict[str, Any] | None = None
    ) -> Config:
        """
        Build a Config from an optional YAML recipe plus dotted overrides.

        Args:
            recipe: YAML file path (None = defaults only).
            overrides: Mapping of ``"section.field"`` to value.

        Returns:
            Validated, frozen Config.

        Raises:
            TrellisConfigError: Invalid recipe structure, override key or value.
        """
        raw: dict[str, Any] = {}
        if recipe is not None:
            loaded = load_config_from_yaml(recipe)
            if loaded is not None and not isinstance(loaded, dict):
                raise TrellisConfigError(f"Recipe {recipe} must contain a mapping at top level")
            raw = loaded or {}

        for dotted, value in (overrides or {}).items():
            _apply_override(raw, dotted, value)

        try:
            return cls.model_validate(raw)
        except ValidationError as e:
            raise TrellisConfigError(f"Invalid configuration: {e}") from e

    def to_recipe_dict(self) -> dict[str, Any]:
        """JSON-compatible dict suitable for writing a starter recipe."""
        return self.model_dump(mode="json")


def _apply_override(raw: dict[str, Any], dotted: str, value: Any) -> None:
    """Set ``raw[a][b] = value`` for ``dotted == "a.b"``, creating sections as needed."""
    parts = dotted.split(".")
    if any(not p for p in parts):
        raise TrellisConfigError(f"Malformed override key: '{dotted}'")

    node = raw
    for part in parts[:-1]:
        child = node.get(part)
        if child is None:
            child = {}
            node[part] = child
        elif not isinstance(child, dict):
            raise TrellisConfigError(f"Override '{dotted}' traverses non-section key '{part}'")
        node = child
    node[parts[-1]] = value
