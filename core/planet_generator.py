"""Seeded procedural planet generation.

Generation is deterministic per seed: the same seed (and biome, when given)
always produces the same name, radius and terrain parameters.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Mapping, Sequence, TypeVar

from core.planet import Planet
from core.terrain import PlanetTerrainConfig

LOGGER = logging.getLogger(__name__)

T = TypeVar("T")

_LCG_MULTIPLIER = 1664525
_LCG_INCREMENT = 1013904223
_LCG_MODULUS = 2**32

PLANET_NAMES = (
    "Kepler", "Proxima", "Gliese", "Ross", "Wolf", "Barnard", "Vega", "Altair",
    "Arcturus", "Polaris", "Sirius", "Rigel", "Betelgeuse", "Antares",
    "Nova", "Zenith", "Apex", "Prima", "Ultima", "Nexus",
)
PLANET_SUFFIXES = (
    "Prime", "Alpha", "Beta", "Gamma", "Major", "Minor", "Central", "Outer",
    "Inner", "New", "Far", "Deep", "Bright", "Dark", "Red", "Blue",
)

BIOMES = ("mars", "moon", "ice", "volcanic", "desert")

# (min, max) per parameter; terrain keys match PlanetTerrainConfig fields.
BIOME_RANGES: dict[str, dict[str, Any]] = {
    "mars": {
        "radius": (60, 120),
        "terrain": {
            "noise_scale": (0.08, 0.15),
            "height_variation": (2, 5),
            "roughness": (0.5, 0.9),
            "mountain_density": (0.2, 0.5),
            "valley_density": (0.15, 0.4),
            "crater_density": (0.3, 0.6),
            "cliff_density": (0.1, 0.3),
            "mesa_density": (0.1, 0.25),
            "boulder_density": (0.3, 0.7),
        },
    },
    "moon": {
        "radius": (40, 100),
        "terrain": {
            "noise_scale": (0.03, 0.08),
            "height_variation": (5, 12),
            "roughness": (0.7, 1.0),
            "mountain_density": (0.05, 0.2),
            "valley_density": (0.02, 0.1),
            "crater_density": (0.6, 0.9),
            "cliff_density": (0.1, 0.25),
            "mesa_density": (0.02, 0.1),
            "boulder_density": (0.2, 0.5),
        },
    },
    "ice": {
        "radius": (100, 250),
        "terrain": {
            "noise_scale": (0.06, 0.12),
            "height_variation": (3, 8),
            "roughness": (0.3, 0.7),
            "mountain_density": (0.3, 0.6),
            "valley_density": (0.25, 0.5),
            "crater_density": (0.05, 0.2),
            "cliff_density": (0.3, 0.6),
            "mesa_density": (0.15, 0.4),
            "boulder_density": (0.1, 0.3),
        },
    },
    "volcanic": {
        "radius": (80, 200),
        "terrain": {
            "noise_scale": (0.1, 0.18),
            "height_variation": (4, 10),
            "roughness": (0.6, 0.95),
            "mountain_density": (0.4, 0.8),
            "valley_density": (0.3, 0.6),
            "crater_density": (0.2, 0.5),
            "cliff_density": (0.4, 0.7),
            "mesa_density": (0.1, 0.3),
            "boulder_density": (0.5, 0.9),
        },
    },
    "desert": {
        "radius": (200, 500),
        "terrain": {
            "noise_scale": (0.04, 0.1),
            "height_variation": (2, 6),
            "roughness": (0.2, 0.5),
            "mountain_density": (0.1, 0.25),
            "valley_density": (0.4, 0.8),
            "crater_density": (0.05, 0.2),
            "cliff_density": (0.05, 0.2),
            "mesa_density": (0.3, 0.6),
            "boulder_density": (0.05, 0.2),
        },
    },
}

# Decimal places kept per generated terrain value
_ROUNDING = {"noise_scale": 3}


class SeededRng:
    """32-bit linear congruential generator."""

    def __init__(self, seed: int) -> None:
        self.state = int(seed) % _LCG_MODULUS

    def next(self) -> float:
        """Uniform float in [0, 1)."""
        self.state = (self.state * _LCG_MULTIPLIER + _LCG_INCREMENT) % _LCG_MODULUS
        return self.state / _LCG_MODULUS

    def range(self, lo: float, hi: float) -> float:
        return lo + (hi - lo) * self.next()

    def int_range(self, lo: int, hi: int) -> int:
        """Integer in [lo, hi], both inclusive."""
        return int(self.range(lo, hi + 1) // 1)

    def choice(self, items: Sequence[T]) -> T:
        return items[self.int_range(0, len(items) - 1)]


def hash_string(text: str) -> int:
    """Stable non-negative 32-bit hash for textual seeds."""
    h = 0
    for ch in text:
        h = ((h << 5) - h + ord(ch)) & 0xFFFFFFFF
    if h >= 0x80000000:
        h -= 0x100000000
    return abs(h)


def generate_planet_name(rng: SeededRng) -> str:
    name = rng.choice(PLANET_NAMES)
    suffix = rng.choice(PLANET_SUFFIXES)
    number = rng.int_range(1, 999)
    patterns = (
        f"{name}-{number}",
        f"{name} {suffix}",
        f"{name}-{suffix}",
        f"{suffix} {name}",
        f"{name} {number}",
    )
    return rng.choice(patterns)


def normalize_seed(seed: int | str | None) -> int:
    if seed is None:
        return int(time.time() * 1000) % 1_000_000
    if isinstance(seed, str):
        stripped = seed.strip()
        if stripped.lstrip("-").isdigit():
            return abs(int(stripped))
        return hash_string(stripped)
    return abs(int(seed))


def generate_planet(
    seed: int | str | None = None,
    biome: str | None = None,
    overrides: Mapping[str, Any] | None = None,
) -> Planet:
    """Generate a planet from a seed.

    ``overrides`` may set ``name``, ``radius`` or any terrain field; those
    values skip the random draw but the remaining draws are unchanged.
    Raises ValueError for an unsupported biome.
    """
    seed = normalize_seed(seed)
    rng = SeededRng(seed)
    overrides = dict(overrides or {})

    if biome is None:
        biome = rng.choice(BIOMES)
    elif biome not in BIOME_RANGES:
        raise ValueError(f"Unsupported biome: {biome!r} (choose from {', '.join(BIOMES)})")

    ranges = BIOME_RANGES[biome]
    radius = overrides.get("radius")
    if radius is None:
        radius = rng.range(*ranges["radius"])

    terrain: dict[str, float] = {}
    for key, (lo, hi) in ranges["terrain"].items():
        value = overrides.get(key)
        if value is None:
            value = rng.range(lo, hi)
        terrain[key] = round(float(value), _ROUNDING.get(key, 2))

    name = overrides.get("name") or generate_planet_name(rng)
    planet = Planet(
        name=name,
        description=f"Procedurally generated {biome}-type planet",
        radius=float(round(radius)),
        biome=biome,
        seed=seed,
        terrain=PlanetTerrainConfig.from_mapping(terrain),
    )
    LOGGER.debug("generated planet %r from seed %d (%s)", planet.name, seed, biome)
    return planet
