"""Grid-keyed memoization in front of a surface height provider."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Any, Iterable

from core.config import (
    CACHE_GRID_SIZE,
    CACHE_MAX_SIZE,
    CACHE_PRUNE_KEEP_FRACTION,
    CACHE_VALIDATION_THRESHOLD,
)
from utils.protocols import HeightProvider

LOGGER = logging.getLogger(__name__)


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    raycasts: int = 0
    cache_clears: int = 0


class HeightQueryCache:
    """Caches ``surface_height_at`` answers per grid cell.

    Every point inside a cell returns the height first sampled in that cell.
    A miss always asks the provider, so the worst case is a lower hit rate.
    Pruning drops the oldest inserted entries, not the least recently read.
    """

    def __init__(
        self,
        provider: HeightProvider,
        grid_size: float = CACHE_GRID_SIZE,
        max_cache_size: int = CACHE_MAX_SIZE,
        validation_threshold: float = CACHE_VALIDATION_THRESHOLD,
    ) -> None:
        self.provider = provider
        self.grid_size = max(1e-6, float(grid_size))
        self.max_cache_size = max(1, int(max_cache_size))
        self.validation_threshold = float(validation_threshold)
        self._cache: dict[tuple[int, int], float] = {}
        self._last_valid_position: tuple[float, float] | None = None
        self._stats = CacheStats()

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, point: tuple[float, float]) -> bool:
        return self.cell_key(*point) in self._cache

    def cell_key(self, x: float, z: float) -> tuple[int, int]:
        return (math.floor(x / self.grid_size), math.floor(z / self.grid_size))

    # ----- Queries -----

    def get_height_at(self, x: float, z: float) -> float:
        key = self.cell_key(x, z)
        cached = self._cache.get(key)
        if cached is not None:
            self._stats.hits += 1
            return cached

        self._stats.misses += 1
        self._stats.raycasts += 1
        height = float(self.provider.surface_height_at(x, z))
        self._cache[key] = height

        if len(self._cache) > self.max_cache_size:
            self._prune()
        return height

    def surface_height_at(self, x: float, z: float) -> float:
        """HeightProvider capability so the cache can stand in for its provider."""
        return self.get_height_at(x, z)

    def get_heights_batch(self, points: Iterable[Any]) -> list[float]:
        out: list[float] = []
        for point in points:
            x, z = _xz(point)
            out.append(self.get_height_at(x, z))
        return out

    def preload_region(
        self,
        center_x: float,
        center_z: float,
        radius: float,
        step: float | None = None,
    ) -> None:
        step = self.grid_size if step is None else max(1e-6, float(step))
        x = center_x - radius
        while x <= center_x + radius + 1e-9:
            z = center_z - radius
            while z <= center_z + radius + 1e-9:
                self.get_height_at(x, z)
                z += step
            x += step

    # ----- Invalidation -----

    def invalidate_if_needed(self, reference_position: Any) -> bool:
        """Clear everything once the reference moves beyond the threshold.

        The first call only records the reference.
        """
        x, z = _xz(reference_position)
        if self._last_valid_position is None:
            self._last_valid_position = (x, z)
            return False

        lx, lz = self._last_valid_position
        moved = math.hypot(x - lx, z - lz)
        if moved > self.validation_threshold:
            LOGGER.debug("height cache invalidated after moving %.2f units", moved)
            self.invalidate((x, z))
            return True
        return False

    def invalidate(self, reference_position: Any = None) -> None:
        """Clear every entry; optionally restart tracking from ``reference_position``."""
        self._cache.clear()
        self._stats.cache_clears += 1
        if reference_position is not None:
            self._last_valid_position = _xz(reference_position)

    def invalidate_region(self, center: Any, radius: float) -> int:
        """Drop entries whose cell center lies within ``radius``; return count."""
        cx, cz = _xz(center)
        half = 0.5 * self.grid_size
        doomed = [
            key
            for key in self._cache
            if math.hypot(
                key[0] * self.grid_size + half - cx,
                key[1] * self.grid_size + half - cz,
            )
            < radius
        ]
        for key in doomed:
            del self._cache[key]
        return len(doomed)

    def _prune(self) -> None:
        target = int(self.max_cache_size * CACHE_PRUNE_KEEP_FRACTION)
        excess = len(self._cache) - target
        for key in list(self._cache)[:excess]:
            del self._cache[key]

    # ----- Settings / stats -----

    def set_validation_threshold(self, threshold: float) -> None:
        self.validation_threshold = float(threshold)

    def set_grid_size(self, size: float) -> None:
        size = max(1e-6, float(size))
        if size != self.grid_size:
            self.grid_size = size
            # Keys depend on the grid size.
            self.invalidate()

    def stats(self) -> dict:
        total = self._stats.hits + self._stats.misses
        hit_rate = (self._stats.hits / total) * 100.0 if total > 0 else 0.0
        return {
            "hits": self._stats.hits,
            "misses": self._stats.misses,
            "raycasts": self._stats.raycasts,
            "cache_clears": self._stats.cache_clears,
            "hit_rate": round(hit_rate, 2),
            "cache_size": len(self._cache),
            "total_queries": total,
        }

    def reset_stats(self) -> None:
        self._stats = CacheStats()


def _xz(point: Any) -> tuple[float, float]:
    """Accept (x, z) pairs, 3D vectors, or objects with .x/.z."""
    if hasattr(point, "x") and hasattr(point, "z"):
        return float(point.x), float(point.z)
    values = tuple(point)
    if len(values) == 2:
        return float(values[0]), float(values[1])
    return float(values[0]), float(values[2])
