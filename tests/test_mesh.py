from __future__ import annotations

import math

import numpy as np
import pytest

from core.components import WorldRotation
from core.maths import Quaternion, Vector3
from core.mesh import (
    MeshHeightProvider,
    build_icosphere,
    deform_vertices,
    subdivisions_for_radius,
)
from core.terrain import AnalyticHeightProvider, PlanetTerrainConfig, TerrainHeightFunction

_FLAT = PlanetTerrainConfig(
    height_variation=0.0,
    mountain_density=0.0,
    valley_density=0.0,
    crater_density=0.0,
    cliff_density=0.0,
    mesa_density=0.0,
    boulder_density=0.0,
)


def test_icosphere_counts_and_radius() -> None:
    verts, faces = build_icosphere(5.0, 0)
    assert verts.shape == (12, 3)
    assert faces.shape == (20, 3)

    verts, faces = build_icosphere(5.0, 1)
    assert verts.shape == (42, 3)
    assert faces.shape == (80, 3)
    assert np.allclose(np.linalg.norm(verts, axis=1), 5.0)


def test_subdivisions_scale_with_sqrt_radius() -> None:
    assert subdivisions_for_radius(80.0) == 12
    assert subdivisions_for_radius(320.0) == 24
    assert subdivisions_for_radius(20.0) == 6


class _ConstantOffset:
    def height_offset_at(self, point, radius=None, config=None) -> float:
        return 2.0


def test_deform_vertices_accepts_any_offset_function() -> None:
    verts, _ = build_icosphere(10.0, 1)
    out = deform_vertices(verts, 10.0, _FLAT, _ConstantOffset())

    assert np.allclose(np.linalg.norm(out, axis=1), 12.0)


def test_deform_vertices_moves_along_radius() -> None:
    verts, _ = build_icosphere(10.0, 1)
    config = _FLAT.with_overrides(height_variation=3.0)
    func = TerrainHeightFunction(config)

    out = deform_vertices(verts, 10.0, config)

    for before, after in zip(verts[:10], out[:10]):
        expected = 10.0 + func.height_offset_at(before)
        assert np.linalg.norm(after) == pytest.approx(expected)
        assert np.allclose(after / np.linalg.norm(after), before / 10.0)


def test_raycast_hits_unit_triangle() -> None:
    verts = np.array([[-1.0, 0.0, -1.0], [1.0, 0.0, -1.0], [0.0, 0.0, 1.0]])
    provider = MeshHeightProvider(verts, np.array([[0, 1, 2]]), radius=1.0)

    assert provider.raycast((0.0, 5.0, 0.0), (0.0, -1.0, 0.0)) == pytest.approx(5.0)
    assert provider.raycast((5.0, 5.0, 0.0), (0.0, -1.0, 0.0)) is None


def test_mesh_matches_analytic_on_flat_planet() -> None:
    mesh = MeshHeightProvider.from_terrain(80.0, _FLAT)
    analytic = AnalyticHeightProvider(TerrainHeightFunction(_FLAT), 80.0)

    for x, z in ((0.0, 0.0), (2.5, 2.0), (-2.5, -2.0), (10.0, -7.0)):
        assert mesh.surface_height_at(x, z) == pytest.approx(
            analytic.surface_height_at(x, z), abs=0.5
        )


def test_mesh_matches_analytic_on_rotated_planet() -> None:
    config = _FLAT.with_overrides(height_variation=3.0)
    rotation = WorldRotation()
    rotation.rotate_by(Quaternion.from_axis_angle(Vector3(0.0, 0.0, 1.0), math.pi / 2.0))

    mesh = MeshHeightProvider.from_terrain(80.0, config, world_rotation=rotation)
    analytic = AnalyticHeightProvider(TerrainHeightFunction(config), 80.0, world_rotation=rotation)

    for x, z in ((0.0, 0.0), (2.5, 2.0), (-2.5, 2.0), (3.0, -3.0)):
        assert mesh.surface_height_at(x, z) == pytest.approx(
            analytic.surface_height_at(x, z), abs=1.0
        )


def test_mesh_falls_back_to_radius_on_miss() -> None:
    mesh = MeshHeightProvider.from_terrain(10.0, _FLAT, detail=1)
    assert mesh.surface_height_at(50.0, 50.0) == 10.0


def test_mesh_tracks_analytic_with_terrain_features() -> None:
    # Default mountains, valleys, craters and mesas; cliff steps are left out.
    config = PlanetTerrainConfig(cliff_density=0.0)
    verts, faces = build_icosphere(80.0, subdivisions_for_radius(80.0))
    verts = deform_vertices(verts, 80.0, config)
    mesh = MeshHeightProvider(verts, faces, 80.0)
    analytic = AnalyticHeightProvider(TerrainHeightFunction(config), 80.0)

    top = verts[verts[:, 1] > 0.0]
    nearest = top[np.argsort(np.hypot(top[:, 0], top[:, 2]))[:5]]
    for x, y, z in nearest:
        assert analytic.surface_height_at(x, z) == pytest.approx(y, abs=0.5)

    centroids = verts[faces].mean(axis=1)
    upper = centroids[centroids[:, 1] > 0.0]
    for x, y, z in upper[np.argsort(np.hypot(upper[:, 0], upper[:, 2]))[:5]]:
        assert mesh.surface_height_at(x, z) == pytest.approx(y, abs=1e-6)
