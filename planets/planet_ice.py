from __future__ import annotations

from core.planet import Planet


class IcePlanet(Planet):
    name = "Ice World"
    description = "Frozen ridges, glacial valleys and sheer ice cliffs"
    radius = 150.0
    biome = "ice"
    terrain_params = {
        "noiseScale": 0.09,
        "heightVariation": 5,
        "roughness": 0.5,
        "mountainDensity": 0.45,
        "valleyDensity": 0.35,
        "craterDensity": 0.1,
        "cliffDensity": 0.45,
        "mesaDensity": 0.25,
        "boulderDensity": 0.2,
    }
