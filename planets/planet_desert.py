from __future__ import annotations

from core.planet import Planet


class DesertPlanet(Planet):
    name = "Desert"
    description = "Wide dune plains cut by canyons and flat-topped mesas"
    radius = 300.0
    biome = "desert"
    terrain_params = {
        "noiseScale": 0.07,
        "heightVariation": 4,
        "roughness": 0.35,
        "mountainDensity": 0.15,
        "valleyDensity": 0.6,
        "craterDensity": 0.1,
        "cliffDensity": 0.1,
        "mesaDensity": 0.45,
        "boulderDensity": 0.1,
    }
