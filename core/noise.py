"""Deterministic scalar noise primitives for planet terrain.

All functions are pure: identical inputs give identical outputs, so a planet
seed always reproduces the same surface.
"""

from __future__ import annotations

import math


def value_noise(x: float, y: float, z: float) -> float:
    """Weighted sum of three decorrelated sine/cosine products, roughly [-1, 1]."""
    a = math.sin(x * 1.2) * math.cos(y * 0.8) * math.sin(z * 1.5)
    b = math.cos(x * 2.1) * math.sin(y * 1.7) * math.cos(z * 0.9)
    c = math.sin(x * 0.5) * math.sin(y * 2.3) * math.cos(z * 1.8)
    return a * 0.5 + b * 0.3 + c * 0.2


def ridged_noise(x: float, y: float, z: float) -> float:
    """1 - |value_noise|, in [0, 1]; zero-crossings become ridgelines."""
    return 1.0 - abs(value_noise(x, y, z))


def turbulence(x: float, y: float, z: float, octaves: int = 4) -> float:
    """Sum value noise over octaves, doubling frequency and halving amplitude."""
    value = 0.0
    amplitude = 1.0
    frequency = 1.0
    for _ in range(octaves):
        value += value_noise(x * frequency, y * frequency, z * frequency) * amplitude
        amplitude *= 0.5
        frequency *= 2.0
    return value
