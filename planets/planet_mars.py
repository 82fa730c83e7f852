from __future__ import annotations

from core.planet import Planet


class MarsPlanet(Planet):
    """Red planet with rocky terrain; the default terrain parameters."""

    name = "Mars"
    description = "Red planet with rocky terrain"
    radius = 80.0
    biome = "mars"
