"""Planets package with dynamic loader utilities.

- list_available_planets(): discover planet module names in this package
- load_planet_class(name): import module and find a subclass of planet.Planet
- create_planet(name): instantiate the discovered planet class
"""

from __future__ import annotations

import importlib
import inspect
import os
import pkgutil
from types import ModuleType
from typing import List, Type

from core.planet import Planet

_PREFIX = "planet_"


def _package_path() -> str:
    return os.path.dirname(__file__)


def list_available_planets() -> List[str]:
    """Return available planet names (module names without the prefix)."""
    names: List[str] = []
    for mod in pkgutil.iter_modules([_package_path()]):
        if mod.name.startswith(_PREFIX):
            names.append(mod.name[len(_PREFIX):])
    names.sort()
    return names


def _find_planet_class_in_module(module: ModuleType) -> Type[Planet] | None:
    candidates: list[type] = []
    for _, cls in inspect.getmembers(module, inspect.isclass):
        if (
            issubclass(cls, Planet)
            and cls is not Planet
            and cls.__module__ == module.__name__
        ):
            candidates.append(cls)

    if not candidates:
        return None
    candidates.sort(key=lambda c: c.__name__)
    return candidates[0]


def load_planet_class(name: str) -> Type[Planet]:
    """
    Load Planet subclass by name (e.g., "mars" or "planet_mars").
    Raises ValueError on unknown or malformed names.
    """
    module_name = name.strip().lower().replace("-", "_")
    if not module_name or module_name.startswith(".") or "." in module_name:
        raise ValueError(f"Invalid planet name: {name!r}")
    if not module_name.startswith(_PREFIX):
        module_name = _PREFIX + module_name

    if module_name[len(_PREFIX):] not in list_available_planets():
        raise ValueError(f"Unknown planet: {name!r}")

    module = importlib.import_module(f"planets.{module_name}")
    planet_cls = _find_planet_class_in_module(module)
    if planet_cls is None:
        raise ValueError(f"No Planet subclass found in module 'planets.{module_name}'")
    return planet_cls


def create_planet(name: str) -> Planet:
    """Instantiate a planet preset by name."""
    planet_cls = load_planet_class(name)
    return planet_cls()


__all__ = [
    "list_available_planets",
    "load_planet_class",
    "create_planet",
]
