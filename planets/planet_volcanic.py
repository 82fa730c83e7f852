from __future__ import annotations

from core.planet import Planet


class VolcanicPlanet(Planet):
    name = "Volcanic"
    description = "Jagged peaks, fault lines and ash-filled craters"
    radius = 120.0
    biome = "volcanic"
    terrain_params = {
        "noiseScale": 0.14,
        "heightVariation": 7,
        "roughness": 0.8,
        "mountainDensity": 0.6,
        "valleyDensity": 0.45,
        "craterDensity": 0.35,
        "cliffDensity": 0.55,
        "mesaDensity": 0.2,
        "boulderDensity": 0.7,
    }
