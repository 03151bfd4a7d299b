"""Frozen pydantic base whose validation failures surface as TrellisConfigError."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError

from ..exceptions import TrellisConfigError


class FrozenRecord(BaseModel):
    """Immutable declaration record (``extra="forbid"``)."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    def __init__(self, **data: Any) -> None:
        try:
            super().__init__(**data)
        except ValidationError as e:
            raise TrellisConfigError(f"Invalid {type(self).__name__}: {e}") from e
