from __future__ import annotations

from core.planet import Planet


class MoonPlanet(Planet):
    """Cratered airless moon."""

    name = "Moon"
    description = "Grey, heavily cratered surface with low relief"
    radius = 60.0
    biome = "moon"
    terrain_params = {
        "noiseScale": 0.05,
        "heightVariation": 6,
        "roughness": 0.85,
        "mountainDensity": 0.1,
        "valleyDensity": 0.05,
        "craterDensity": 0.75,
        "cliffDensity": 0.15,
        "mesaDensity": 0.05,
        "boulderDensity": 0.35,
    }
