"""Typing protocols for terrain and physics collaborators."""

from __future__ import annotations

from typing import Any, Protocol, TYPE_CHECKING

if TYPE_CHECKING:
    from core.terrain import PlanetTerrainConfig


class HeightProvider(Protocol):
    """Absolute surface height at a world (x, z) column, queried every tick."""

    def surface_height_at(self, x: float, z: float) -> float: ...


class HeightOffsetFunction(Protocol):
    """Elevation delta at a surface point, used once to deform display geometry."""

    def height_offset_at(
        self,
        point: Any,
        radius: float | None = None,
        config: PlanetTerrainConfig | None = None,
    ) -> float: ...
