from __future__ import annotations

import pytest

from core.height_cache import HeightQueryCache
from core.maths import Vector3


class _CountingTerrain:
    """Height equals x + z; counts provider queries."""

    def __init__(self) -> None:
        self.calls = 0

    def surface_height_at(self, x: float, z: float) -> float:
        self.calls += 1
        return x + z


def test_same_cell_is_served_from_cache() -> None:
    terrain = _CountingTerrain()
    cache = HeightQueryCache(terrain, grid_size=5.0)

    first = cache.get_height_at(1.0, 1.0)
    second = cache.get_height_at(4.0, 3.0)

    assert first == second == 2.0
    assert terrain.calls == 1
    stats = cache.stats()
    assert stats["hits"] == 1
    assert stats["misses"] == 1
    assert stats["raycasts"] == 1
    assert stats["hit_rate"] == 50.0
    assert stats["total_queries"] == 2
    assert (2.0, 2.0) in cache


def test_negative_coordinates_use_floor_cells() -> None:
    cache = HeightQueryCache(_CountingTerrain(), grid_size=5.0)
    assert cache.cell_key(-0.1, 0.1) == (-1, 0)
    assert cache.cell_key(-5.0, 4.99) == (-1, 0)


def test_cache_stands_in_for_provider() -> None:
    terrain = _CountingTerrain()
    cache = HeightQueryCache(terrain)
    assert cache.surface_height_at(7.0, 1.0) == 8.0
    assert cache.get_heights_batch([(7.0, 1.0), Vector3(11.0, 0.0, 1.0)]) == [8.0, 12.0]
    assert terrain.calls == 2


def test_prune_keeps_newest_three_quarters() -> None:
    cache = HeightQueryCache(_CountingTerrain(), grid_size=1.0, max_cache_size=4)
    for i in range(5):
        cache.get_height_at(float(i), 0.0)

    assert len(cache) == 3
    assert (0.0, 0.0) not in cache
    assert (1.0, 0.0) not in cache
    assert (4.0, 0.0) in cache


def test_invalidate_if_needed_tracks_reference_position() -> None:
    cache = HeightQueryCache(_CountingTerrain(), validation_threshold=10.0)
    cache.get_height_at(0.0, 0.0)

    assert cache.invalidate_if_needed(Vector3(0.0, 80.0, 0.0)) is False
    assert cache.invalidate_if_needed((6.0, 6.0)) is False
    assert len(cache) == 1

    assert cache.invalidate_if_needed((8.0, 8.0)) is True
    assert len(cache) == 0
    assert cache.stats()["cache_clears"] == 1
    # Reference moved to the new position.
    assert cache.invalidate_if_needed((9.0, 9.0)) is False


def test_manual_invalidate_and_reset_stats() -> None:
    cache = HeightQueryCache(_CountingTerrain())
    cache.get_height_at(1.0, 1.0)
    cache.invalidate()

    assert len(cache) == 0
    assert cache.stats()["cache_clears"] == 1
    cache.reset_stats()
    assert cache.stats() == {
        "hits": 0,
        "misses": 0,
        "raycasts": 0,
        "cache_clears": 0,
        "hit_rate": 0.0,
        "cache_size": 0,
        "total_queries": 0,
    }


def test_invalidate_region_drops_nearby_cells() -> None:
    cache = HeightQueryCache(_CountingTerrain(), grid_size=5.0)
    cache.preload_region(0.0, 0.0, 20.0)
    size = len(cache)
    assert size == 81

    removed = cache.invalidate_region((2.5, 2.5), 4.0)

    assert removed == 1
    assert len(cache) == size - 1
    assert (1.0, 1.0) not in cache


def test_set_grid_size_clears_only_on_change() -> None:
    cache = HeightQueryCache(_CountingTerrain(), grid_size=5.0)
    cache.get_height_at(1.0, 1.0)

    cache.set_grid_size(5.0)
    assert len(cache) == 1

    cache.set_grid_size(2.0)
    assert len(cache) == 0
    assert cache.grid_size == 2.0


def test_set_validation_threshold() -> None:
    cache = HeightQueryCache(_CountingTerrain())
    cache.set_validation_threshold(1.0)
    cache.invalidate_if_needed((0.0, 0.0))
    assert cache.invalidate_if_needed((1.5, 0.0)) is True


def test_hit_rate_is_rounded_percentage() -> None:
    cache = HeightQueryCache(_CountingTerrain())
    for _ in range(3):
        cache.get_height_at(0.0, 0.0)
    assert cache.stats()["hit_rate"] == pytest.approx(66.67)


def test_invalidate_with_reference_restarts_tracking() -> None:
    cache = HeightQueryCache(_CountingTerrain(), validation_threshold=10.0)
    cache.invalidate_if_needed((0.0, 0.0))
    cache.get_height_at(1.0, 1.0)

    cache.invalidate((20.0, 0.0))

    assert len(cache) == 0
    assert cache.stats()["cache_clears"] == 1
    assert cache.invalidate_if_needed((25.0, 0.0)) is False
    assert cache.invalidate_if_needed((31.0, 0.0)) is True
