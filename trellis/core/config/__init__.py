"""
Configuration Package Initialization.

Flat public API over the configuration schemas, loaded lazily (PEP 562) so
that importing ``trellis.core.config`` does not pull in pydantic until a
schema is actually used.

Example:
    >>> from trellis.core.config import Config, LoaderConfig
    >>> cfg = Config.from_recipe(None, {"loader.on_missing_metadata": "drop"})
"""

from importlib import import_module
from typing import Any

__all__ = [
    "Config",
    "DownloadConfig",
    "LoaderConfig",
    "TelemetryConfig",
    "ValidatedPath",
]

_PKG = "trellis.core.config"

_LAZY_IMPORTS: dict[str, str] = {
    "Config": f"{_PKG}.manifest",
    "DownloadConfig": f"{_PKG}.download_config",
    "LoaderConfig": f"{_PKG}.loader_config",
    "TelemetryConfig": f"{_PKG}.telemetry_config",
    "ValidatedPath": f"{_PKG}.types",
}


def __getattr__(name: str) -> Any:
    """Import a configuration component on first access and cache it."""
    if name not in _LAZY_IMPORTS:
        raise AttributeError(f"module {__name__!r} has no attribute {name!r}")

    attr = getattr(import_module(_LAZY_IMPORTS[name]), name)
    globals()[name] = attr
    return attr


def __dir__() -> list[str]:
    return sorted(__all__)
