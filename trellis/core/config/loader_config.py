"""
Loader Configuration Schema.

Policies of the folder-based loader: whether directory names become labels,
whether metadata files are honored, and how the metadata join treats rows
and images that do not match.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .types import DanglingReferencePolicy, MissingMetadataPolicy


class LoaderConfig(BaseModel):
    """
    Folder-convention loader policies.

    Attributes:
        drop_labels: ``None`` infers labels from class directories only when
            no metadata file is present; ``False`` always infers them (opting
            back in next to metadata); ``True`` never does.
        drop_metadata: Ignore ``metadata.jsonl`` files entirely.
        on_dangling_reference: ``"error"`` raises DanglingReferenceError for
            metadata rows without a matching image; ``"skip"`` counts and
            skips them.
        on_missing_metadata: ``"error"`` raises MissingMetadataError for
            images without a metadata row; ``"drop"`` counts and drops them.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    drop_labels: bool | None = Field(default=None)
    drop_metadata: bool = Field(default=False)
    on_dangling_reference: DanglingReferencePolicy = Field(default="error")
    on_missing_metadata: MissingMetadataPolicy = Field(default="error")

    @model_validator(mode="before")
    @classmethod
    def handle_empty_config(cls, data: Any) -> Any:
        """An empty ``loader:`` YAML section arrives as None; apply defaults."""
        return {} if data is None else data

    def infer_labels(self, has_metadata: bool) -> bool:
        """Whether class directories become a ``label`` field."""
        if self.drop_labels is None:
            return not has_metadata
        return not self.drop_labels
