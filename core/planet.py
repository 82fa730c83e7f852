"""Planet base definition.

A planet bundles what the simulation needs to activate it: a display name,
a base radius and its terrain parameters. Presets subclass ``Planet`` and
override the class attributes; generated planets are plain instances.
"""

from __future__ import annotations

from typing import Any

from core.config import DEFAULT_PLANET_RADIUS
from core.terrain import PlanetTerrainConfig, TerrainHeightFunction


class Planet:
    """Named planet with a base radius and terrain configuration."""

    name: str = "Unnamed"
    description: str = ""
    radius: float = DEFAULT_PLANET_RADIUS
    biome: str = "mars"
    seed: int | None = None
    terrain_params: dict[str, Any] = {}

    def __init__(
        self,
        *,
        name: str | None = None,
        description: str | None = None,
        radius: float | None = None,
        biome: str | None = None,
        seed: int | None = None,
        terrain: PlanetTerrainConfig | None = None,
    ) -> None:
        if name is not None:
            self.name = name
        if description is not None:
            self.description = description
        if radius is not None:
            self.radius = float(radius)
        if biome is not None:
            self.biome = biome
        if seed is not None:
            self.seed = seed
        self.terrain = terrain or PlanetTerrainConfig.from_mapping(self.terrain_params)

    @property
    def planet_id(self) -> str:
        if self.seed is not None:
            return f"generated_{self.seed}"
        return self.name.strip().lower().replace(" ", "_")

    def height_function(self) -> TerrainHeightFunction:
        return TerrainHeightFunction(self.terrain)

    def to_mapping(self) -> dict[str, Any]:
        return {
            "id": self.planet_id,
            "name": self.name,
            "description": self.description,
            "radius": self.radius,
            "biome": self.biome,
            "seed": self.seed,
            "terrain": self.terrain.to_mapping(),
        }

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r}, radius={self.radius:g}, biome={self.biome!r})"
