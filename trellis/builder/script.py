"""
Loading Script Discovery.

A loading script is a Python file defining a builder class: any class with
``describe``, ``plan_splits`` and ``generate`` plus a ``CONFIGS``
registry, constructed as ``BuilderCls(config)``. A script may name its
builder explicitly through a module-level ``BUILDER`` attribute.
"""

from __future__ import annotations

import importlib.util
import inspect
import sys
from pathlib import Path
from types import ModuleType
from typing import Any

from ..exceptions import ResourceUnavailableError, TrellisConfigError
from .config import ConfigRegistry
from .protocol import DatasetBuilder

_REQUIRED_OPERATIONS = ("describe", "plan_splits", "generate")


def load_script_module(path: Path) -> ModuleType:
    """
    Import a loading script from its file path.

    Raises:
        ResourceUnavailableError: If the file does not exist.
    """
    path = Path(path).resolve()
    if not path.is_file():
        raise ResourceUnavailableError(str(path), "loading script not found")

    module_name = f"trellis_scripts.{path.stem}"
    spec = importlib.util.spec_from_file_location(module_name, path)
    if spec is None or spec.loader is None:
        raise TrellisConfigError(f"Cannot import loading script {path}")

    module = importlib.util.module_from_spec(spec)
    sys.modules[module_name] = module
    spec.loader.exec_module(module)
    return module


def _is_builder_class(obj: Any) -> bool:
    return (
        inspect.isclass(obj)
        and all(callable(getattr(obj, op, None)) for op in _REQUIRED_OPERATIONS)
        and isinstance(getattr(obj, "CONFIGS", None), ConfigRegistry)
    )


def find_builder_class(module: ModuleType) -> type:
    """
    Locate the builder class of a loading script.

    Raises:
        TrellisConfigError: No builder, or several without a ``BUILDER`` marker.
    """
    explicit = getattr(module, "BUILDER", None)
    if explicit is not None:
        if not _is_builder_class(explicit):
            raise TrellisConfigError(f"{module.__name__}.BUILDER is not a builder class")
        return explicit

    candidates = [
        obj
        for obj in vars(module).values()
        if _is_builder_class(obj) and obj.__module__ == module.__name__
    ]
    if not candidates:
        raise TrellisConfigError(
            f"No builder class in {module.__name__}: define a class with "
            f"{', '.join(_REQUIRED_OPERATIONS)} and a CONFIGS registry"
        )
    if len(candidates) > 1:
        names = sorted(c.__name__ for c in candidates)
        raise TrellisConfigError(f"Several builder classes {names}; set BUILDER = <class>")
    return candidates[0]


def instantiate(builder_cls: type, name: str | None = None, **kwargs: Any) -> DatasetBuilder:
    """Construct *builder_cls* for the configuration selected by *name*."""
    config = builder_cls.CONFIGS.select(name)
    return builder_cls(config, **kwargs)
