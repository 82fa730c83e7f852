from __future__ import annotations

from core.planet import Planet


class FlatPlanet(Planet):
    """Perfect sphere: every feature and the base noise are switched off.

    Useful for deterministic settling and movement runs.
    """

    name = "Flat"
    description = "Featureless sphere for calibration runs"
    radius = 80.0
    biome = "moon"
    terrain_params = {
        "heightVariation": 0,
        "mountainDensity": 0,
        "valleyDensity": 0,
        "craterDensity": 0,
        "cliffDensity": 0,
        "mesaDensity": 0,
        "boulderDensity": 0,
    }
