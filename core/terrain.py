"""Procedural planet terrain: the height field and its analytic sampler."""

from __future__ import annotations

import math
from dataclasses import dataclass, fields, replace
from typing import Any, Iterable, Mapping

from core.config import HEIGHT_SOLVER_ITERATIONS
from core.components import WorldRotation
from core.maths import Vector3, to_lat_lon
from core.noise import ridged_noise, turbulence, value_noise


# -----------------------------
# Planet terrain configuration
# -----------------------------

_CAMEL_KEYS = {
    "noiseScale": "noise_scale",
    "heightVariation": "height_variation",
    "roughness": "roughness",
    "mountainDensity": "mountain_density",
    "valleyDensity": "valley_density",
    "craterDensity": "crater_density",
    "cliffDensity": "cliff_density",
    "mesaDensity": "mesa_density",
    "boulderDensity": "boulder_density",
}

_DENSITY_FIELDS = {
    "mountain_density",
    "valley_density",
    "crater_density",
    "cliff_density",
    "mesa_density",
    "boulder_density",
}

@dataclass(frozen=True)
class PlanetTerrainConfig:
    """Per-planet terrain parameters, read-only once a planet is active."""

    noise_scale: float = 0.1
    height_variation: float = 3.0
    roughness: float = 0.7
    mountain_density: float = 0.2
    valley_density: float = 0.15
    crater_density: float = 0.3
    cliff_density: float = 0.25
    mesa_density: float = 0.2
    boulder_density: float = 0.3

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any] | None) -> "PlanetTerrainConfig":
        """Build from camelCase or snake_case keys.

        Missing, non-numeric or non-finite values fall back to the field
        default; densities are clamped to [0, 1].
        """
        defaults = cls()
        values: dict[str, float] = {}
        source = dict(data or {})
        for key, raw in source.items():
            name = _CAMEL_KEYS.get(key, key)
            if name not in _CAMEL_KEYS.values():
                continue
            try:
                value = float(raw)
            except (TypeError, ValueError):
                continue
            if not math.isfinite(value):
                continue
            if name in _DENSITY_FIELDS:
                value = max(0.0, min(1.0, value))
            values[name] = value
        for f in fields(cls):
            values.setdefault(f.name, getattr(defaults, f.name))
        return cls(**values)

    def with_overrides(self, **overrides: float) -> "PlanetTerrainConfig":
        return replace(self, **overrides)

    def to_mapping(self) -> dict[str, float]:
        inverse = {v: k for k, v in _CAMEL_KEYS.items()}
        return {inverse[f.name]: getattr(self, f.name) for f in fields(self)}

    def validate(self) -> list[str]:
        errors: list[str] = []
        if self.noise_scale <= 0:
            errors.append("noise_scale must be positive")
        if self.height_variation < 0:
            errors.append("height_variation must not be negative")
        for name in sorted(_DENSITY_FIELDS):
            value = getattr(self, name)
            if value < 0.0 or value > 1.0:
                errors.append(f"{name} must be between 0 and 1")
        return errors

# -----------------------------
# Feature constants
# -----------------------------

# Base layers: (frequency multiple of noise_scale, z offset, amplitude weight)
BASE_LAYERS = (
    (4.0, 0.0, 3.0),  # base terrain
    (8.0, 100.0, 2.0),  # hills and hollows
    (16.0, 200.0, 1.0),  # surface roughness
    (1.0, 300.0, 2.0),  # continental swells
)

MOUNTAIN_RIDGE_SCALE = 3.0
MOUNTAIN_RIDGE_THRESHOLD = 0.6
MOUNTAIN_HEIGHT = 120.0
MOUNTAIN_PEAK_HEIGHT = 50.0
HILL_SCALE = 6.0
HILL_BAND = (0.5, 0.8)
HILL_HEIGHT = 80.0
ROLLING_SCALE = 4.0
ROLLING_HEIGHT = 20.0

RIVER_SCALE = 2.5
RIVER_THRESHOLD = 0.7
RIVER_DEPTH = 100.0
RIVER_MEANDER_DEPTH = 40.0
CANYON_SCALE = 1.8
CANYON_BAND = (0.4, 0.6)
CANYON_DEPTH = 90.0
CANYON_WALL_DEPTH = 30.0
GULLY_SCALE = 8.0
GULLY_THRESHOLD = 0.6
GULLY_DEPTH = 3.0

CLIFF_SCALE = 3.5
CLIFF_THRESHOLD = 0.3
CLIFF_HEIGHT = 80.0
CLIFF_TEXTURE_HEIGHT = 2.0
CLIFF_STEPS = 4.0
TERRACE_SCALE = 2.0
TERRACE_THRESHOLD = 0.5
TERRACE_STEP_HEIGHT = 3.0
TERRACE_HEIGHT = 12.0
FAULT_SCALE = 1.5
FAULT_THRESHOLD = 0.6
FAULT_HEIGHT = 8.0

MESA_SCALE = 1.8
MESA_THRESHOLD = 0.4
MESA_HEIGHT = 100.0
MESA_TOP_EDGE = 0.3
MESA_SIDE_EDGE = 0.5
MESA_EROSION_BAND = (0.25, 0.35)
MESA_EROSION_HEIGHT = 3.0
BUTTE_SCALE = 4.0
BUTTE_THRESHOLD = 0.6
BUTTE_HEIGHT = 70.0
BUTTE_TOP_EDGE = 0.2
BUTTE_SIDE_EDGE = 0.3
PLATEAU_SCALE = 0.8
PLATEAU_BAND = (0.3, 0.7)
PLATEAU_HEIGHT = 8.0
PLATEAU_VARIATION = 1.5

CRATER_BOWL_EDGE = 0.8
CRATER_JITTER = 0.2

@dataclass(frozen=True)
class CraterClass:
    """One crater size class; relative_density multiplies crater_density."""

    scale: float
    depth: float
    relative_density: float

CRATER_CLASSES = (
    CraterClass(scale=2.0, depth=-60.0, relative_density=0.3),  # large
    CraterClass(scale=4.0, depth=-35.0, relative_density=0.5),  # medium
    CraterClass(scale=8.0, depth=-18.0, relative_density=0.7),  # small
)

FEATURE_NAMES = ("base", "mountains", "valleys", "cliffs", "mesas", "craters")

# -----------------------------
# Height function
# -----------------------------

def _as_xyz(point: Any) -> tuple[float, float, float]:
    x, y, z = point
    return float(x), float(y), float(z)

class TerrainHeightFunction:
    """Sums six independent terrain features into an elevation offset.

    Every feature works on the (lat, lon) of the sample point, so the
    offset depends only on the direction from the planet center. Overlapping
    features simply add.
    """

    def __init__(self, config: PlanetTerrainConfig | None = None):
        self.config = config or PlanetTerrainConfig()

    def __call__(self, point: Any) -> float:
        return self.height_offset_at(point)

    def height_offset_at(
        self,
        point: Any,
        radius: float | None = None,
        config: PlanetTerrainConfig | None = None,
    ) -> float:
        """Elevation delta to add to the base radius at ``point``.

        ``radius`` is accepted for interface parity with mesh deformation;
        no feature depends on it.
        """
        lat, lon = to_lat_lon(*_as_xyz(point))
        cfg = config or self.config
        return (
            self.base_layers(lat, lon, cfg)
            + self.mountains(lat, lon, cfg)
            + self.valleys(lat, lon, cfg)
            + self.cliffs(lat, lon, cfg)
            + self.mesas(lat, lon, cfg)
            + self.craters(lat, lon, cfg)
        )

    def feature_contributions(
        self, point: Any, config: PlanetTerrainConfig | None = None
    ) -> dict[str, float]:
        """Per-feature breakdown of ``height_offset_at`` for diagnostics."""
        lat, lon = to_lat_lon(*_as_xyz(point))
        cfg = config or self.config
        return {
            "base": self.base_layers(lat, lon, cfg),
            "mountains": self.mountains(lat, lon, cfg),
            "valleys": self.valleys(lat, lon, cfg),
            "cliffs": self.cliffs(lat, lon, cfg),
            "mesas": self.mesas(lat, lon, cfg),
            "craters": self.craters(lat, lon, cfg),
        }

    # ----- Features -----

    @staticmethod
    def base_layers(lat: float, lon: float, cfg: PlanetTerrainConfig) -> float:
        scale = cfg.noise_scale
        amplitude = cfg.height_variation
        total = 0.0
        for multiple, z_offset, weight in BASE_LAYERS:
            f = scale * multiple
            total += value_noise(lon * f, lat * f, z_offset) * amplitude * weight
        return total

    @staticmethod
    def mountains(lat: float, lon: float, cfg: PlanetTerrainConfig) -> float:
        density = cfg.mountain_density
        if density <= 0:
            return 0.0

        effect = 0.0

        # Ranges along ridgelines
        s = MOUNTAIN_RIDGE_SCALE
        ridge = ridged_noise(lon * s, lat * s, 0.0)
        if ridge > MOUNTAIN_RIDGE_THRESHOLD:
            height = (ridge - MOUNTAIN_RIDGE_THRESHOLD) * 0.4 * density
            peaks = turbulence(lon * s * 4.0, lat * s * 4.0, 0.0, 3) * height * 0.3
            effect += height * MOUNTAIN_HEIGHT + peaks * MOUNTAIN_PEAK_HEIGHT

        # Isolated hills
        hill = value_noise(lon * HILL_SCALE + 500.0, lat * HILL_SCALE + 500.0, 0.0)
        lo, hi = HILL_BAND
        if hill > lo and abs(hill) < hi:
            hill_height = (abs(hill) - lo) * 0.3 * density
            effect += hill_height * hill_height * HILL_HEIGHT

        rolling = value_noise(lon * ROLLING_SCALE, lat * ROLLING_SCALE, 700.0)
        effect += rolling * density * ROLLING_HEIGHT
        return effect

    @staticmethod
    def valleys(lat: float, lon: float, cfg: PlanetTerrainConfig) -> float:
        density = cfg.valley_density
        if density <= 0:
            return 0.0

        effect = 0.0

        # River valleys where the ridge field is low
        s = RIVER_SCALE
        inverted = 1.0 - ridged_noise(lon * s + 100.0, lat * s + 100.0, 0.0)
        if inverted > RIVER_THRESHOLD:
            depth = (inverted - RIVER_THRESHOLD) * 0.3 * density
            meander = value_noise(lon * s * 3.0, lat * s * 3.0, 400.0) * depth * 0.2
            effect -= depth * RIVER_DEPTH + meander * RIVER_MEANDER_DEPTH

        # Canyon networks from a two-frequency band
        c = CANYON_SCALE
        pattern = (
            value_noise(lon * c, lat * c, 600.0) * 0.7
            + value_noise(lon * c * 2.0, lat * c * 2.0, 800.0) * 0.3
        )
        lo, hi = CANYON_BAND
        if lo < pattern < hi:
            depth = (0.6 - abs(pattern - 0.5) * 2.0) * density
            wall = value_noise(lon * c * 8.0, lat * c * 8.0, 1000.0) * depth * 0.1
            effect -= depth * CANYON_DEPTH + wall * CANYON_WALL_DEPTH

        # Erosion gullies
        gully = turbulence(lon * GULLY_SCALE, lat * GULLY_SCALE, 1200.0, 2)
        if abs(gully) > GULLY_THRESHOLD:
            depth = (abs(gully) - GULLY_THRESHOLD) * 0.4 * density
            effect -= depth * GULLY_DEPTH
        return effect

    @staticmethod
    def cliffs(lat: float, lon: float, cfg: PlanetTerrainConfig) -> float:
        density = cfg.cliff_density
        if density <= 0:
            return 0.0

        effect = 0.0

        # Cliff faces: quantized step profile gives a vertical discontinuity
        s = CLIFF_SCALE
        n = value_noise(lon * s, lat * s, 1500.0)
        if abs(n) > CLIFF_THRESHOLD:
            height = (abs(n) - CLIFF_THRESHOLD) * density
            if n > 0:
                step = math.floor((n + 1.0) * CLIFF_STEPS) / CLIFF_STEPS
            else:
                step = math.ceil((n - 1.0) * CLIFF_STEPS) / CLIFF_STEPS
            effect += step * height * CLIFF_HEIGHT
            texture = value_noise(lon * s * 8.0, lat * s * 8.0, 2000.0)
            effect += texture * height * CLIFF_TEXTURE_HEIGHT

        # Sedimentary terraces
        t = TERRACE_SCALE
        terrace = value_noise(lon * t, lat * t, 2500.0)
        if abs(terrace) > TERRACE_THRESHOLD:
            height = (abs(terrace) - TERRACE_THRESHOLD) * 2.0 * density
            num_steps = math.floor(height * 4.0) + 1
            stepped = (
                math.floor(height * TERRACE_STEP_HEIGHT) / TERRACE_STEP_HEIGHT * num_steps
            )
            effect += stepped * TERRACE_HEIGHT

        # Fault lines from two decorrelated fields
        f = FAULT_SCALE
        fault1 = value_noise(lon * f + 0.5, lat * f, 3000.0)
        fault2 = value_noise(lon * f, lat * f + 0.5, 3500.0)
        pattern = abs(fault1 * fault2)
        if pattern > FAULT_THRESHOLD:
            height = (pattern - FAULT_THRESHOLD) * 2.5 * density
            sign = 1.0 if (fault1 + fault2) > 0 else -1.0
            effect += sign * height * FAULT_HEIGHT
        return effect

    @staticmethod
    def _flat_top_profile(
        height: float, distance: float, top_edge: float, side_edge: float, exponent: float
    ) -> float:
        if distance < top_edge:
            return height
        if distance < side_edge:
            side = (distance - top_edge) / (side_edge - top_edge)
            return height * (1.0 - side**exponent)
        return 0.0

    @classmethod
    def mesas(cls, lat: float, lon: float, cfg: PlanetTerrainConfig) -> float:
        density = cfg.mesa_density
        if density <= 0:
            return 0.0

        effect = 0.0

        s = MESA_SCALE
        base = value_noise(lon * s, lat * s, 4000.0)
        if base > MESA_THRESHOLD:
            height = (base - MESA_THRESHOLD) * 1.6 * density
            # Higher noise means closer to the mesa center
            distance = 1.0 - base
            effect += (
                cls._flat_top_profile(height, distance, MESA_TOP_EDGE, MESA_SIDE_EDGE, 0.3)
                * MESA_HEIGHT
            )
            lo, hi = MESA_EROSION_BAND
            if lo <= distance <= hi:
                erosion = value_noise(lon * s * 12.0, lat * s * 12.0, 4500.0)
                effect += erosion * height * MESA_EROSION_HEIGHT

        b = BUTTE_SCALE
        butte = value_noise(lon * b + 200.0, lat * b + 200.0, 0.0)
        if butte > BUTTE_THRESHOLD:
            height = (butte - BUTTE_THRESHOLD) * 2.5 * density
            effect += (
                cls._flat_top_profile(
                    height, 1.0 - butte, BUTTE_TOP_EDGE, BUTTE_SIDE_EDGE, 0.4
                )
                * BUTTE_HEIGHT
            )

        p = PLATEAU_SCALE
        plateau = value_noise(lon * p, lat * p, 5000.0)
        lo, hi = PLATEAU_BAND
        if lo < plateau < hi:
            height = (0.7 - abs(plateau - 0.5) * 2.0) * density
            variation = value_noise(lon * p * 3.0, lat * p * 3.0, 5500.0)
            effect += height * PLATEAU_HEIGHT + variation * height * PLATEAU_VARIATION
        return effect

    @staticmethod
    def crater_profile(normalized_distance: float, depth: float) -> float:
        """Bowl with quadratic falloff and a raised rim near the edge."""
        d = normalized_distance
        if d < CRATER_BOWL_EDGE:
            profile = (1.0 - d / CRATER_BOWL_EDGE) ** 2 * depth
        else:
            rim = (d - CRATER_BOWL_EDGE) / (1.0 - CRATER_BOWL_EDGE)
            profile = depth * 0.1 * (1.0 - rim) + depth * 0.3 * math.sin(rim * math.pi)
        return profile * (1.0 - d * 0.5)

    @classmethod
    def craters(cls, lat: float, lon: float, cfg: PlanetTerrainConfig) -> float:
        density = cfg.crater_density
        if density <= 0:
            return 0.0

        effect = 0.0
        for crater in CRATER_CLASSES:
            s = crater.scale
            center = value_noise(lon * s + 1000.0, lat * s + 2000.0, 0.0)
            if center <= 1.0 - density * crater.relative_density:
                continue

            jitter_lat = value_noise(lon * s + 3000.0, lat * s + 4000.0, 0.0) * CRATER_JITTER
            jitter_lon = value_noise(lon * s + 5000.0, lat * s + 6000.0, 0.0) * CRATER_JITTER
            # Offset from the jittered center is the jitter itself.
            distance = math.hypot(jitter_lat, jitter_lon)
            crater_radius = (0.15 + abs(center) * 0.1) / s
            if distance < crater_radius:
                effect += cls.crater_profile(distance / crater_radius, crater.depth)
        return effect

# -----------------------------
# Analytic sampler
# -----------------------------

class AnalyticHeightProvider:
    """Answers absolute surface heights straight from the height function.

    A vertical ray is cast down at world (x, z) onto the displaced sphere,
    taking the planet's current rotation into account.
    """

    def __init__(
        self,
        height_function: TerrainHeightFunction,
        radius: float,
        world_rotation: WorldRotation | None = None,
        config: PlanetTerrainConfig | None = None,
    ):
        self.height_function = height_function
        self.radius = float(radius)
        self.world_rotation = world_rotation or WorldRotation()
        self.config = config or height_function.config

    def height_offset_at(self, point: Any) -> float:
        return self.height_function.height_offset_at(point, self.radius, self.config)

    def surface_height_at(self, x: float, z: float) -> float:
        """Absolute surface y at world (x, z); the base radius when the ray misses."""
        horizontal_sq = x * x + z * z
        y = math.sqrt(max(self.radius * self.radius - horizontal_sq, 0.0))
        for _ in range(HEIGHT_SOLVER_ITERATIONS):
            local = self.world_rotation.to_planet_frame(Vector3(x, y, z))
            target = self.radius + self.height_offset_at(local)
            if target <= 0.0 or target * target <= horizontal_sq:
                return self.radius
            y = math.sqrt(target * target - horizontal_sq)
        return y

    def heights_at(self, points: Iterable[tuple[float, float]]) -> list[float]:
        return [self.surface_height_at(x, z) for x, z in points]

@dataclass(frozen=True)
class SurfaceInfo:
    height: float
    normal: Vector3
    point: Vector3

def surface_info_at(
    provider: Any, x: float, z: float, sample_distance: float = 1.0
) -> SurfaceInfo:
    """Height plus a central-difference surface normal at world (x, z)."""
    d = max(1e-6, float(sample_distance))
    center = provider.surface_height_at(x, z)
    front = provider.surface_height_at(x, z + d)
    back = provider.surface_height_at(x, z - d)
    right = provider.surface_height_at(x + d, z)
    left = provider.surface_height_at(x - d, z)

    normal = Vector3((left - right) / (2.0 * d), 1.0, (back - front) / (2.0 * d))
    normal.normalize_ip()
    return SurfaceInfo(height=center, normal=normal, point=Vector3(x, center, z))
