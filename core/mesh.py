"""Display-geometry helpers and the mesh-raycast height provider.

The physics tick samples the analytic height function directly; the mesh path
exists to check that deformed display geometry and physics agree.
"""

from __future__ import annotations

import math
from typing import Any

import numpy as np

from core.config import RAYCAST_START_OFFSET, REFERENCE_RADIUS
from core.components import WorldRotation
from core.maths import Vector3
from core.terrain import PlanetTerrainConfig, TerrainHeightFunction
from utils.protocols import HeightOffsetFunction

BASE_SUBDIVISIONS = 12  # Icosphere detail at the reference radius

_T = (1.0 + math.sqrt(5.0)) / 2.0

_ICOSAHEDRON_VERTICES = np.array(
    [
        [-1, _T, 0], [1, _T, 0], [-1, -_T, 0], [1, -_T, 0],
        [0, -1, _T], [0, 1, _T], [0, -1, -_T], [0, 1, -_T],
        [_T, 0, -1], [_T, 0, 1], [-_T, 0, -1], [-_T, 0, 1],
    ],
    dtype=float,
)

_ICOSAHEDRON_FACES = (
    (0, 11, 5), (0, 5, 1), (0, 1, 7), (0, 7, 10), (0, 10, 11),
    (1, 5, 9), (5, 11, 4), (11, 10, 2), (10, 7, 6), (7, 1, 8),
    (3, 9, 4), (3, 4, 2), (3, 2, 6), (3, 6, 8), (3, 8, 9),
    (4, 9, 5), (2, 4, 11), (6, 2, 10), (8, 6, 7), (9, 8, 1),
)


def subdivisions_for_radius(radius: float) -> int:
    """Detail level scaled so triangle size stays similar across planet sizes."""
    return max(0, round(BASE_SUBDIVISIONS * math.sqrt(max(radius, 0.0) / REFERENCE_RADIUS)))


def build_icosphere(radius: float, detail: int = 0) -> tuple[np.ndarray, np.ndarray]:
    """Return (vertices[N, 3], faces[M, 3]) of a subdivided icosahedron.

    Each base face is split into (detail + 1)^2 triangles; shared vertices
    are merged.
    """
    n = max(0, int(detail)) + 1
    index: dict[tuple[float, float, float], int] = {}
    vertices: list[np.ndarray] = []
    faces: list[tuple[int, int, int]] = []

    def vertex_id(p: np.ndarray) -> int:
        unit = p / np.linalg.norm(p)
        key = tuple(np.round(unit, 9).tolist())
        found = index.get(key)
        if found is None:
            found = len(vertices)
            index[key] = found
            vertices.append(unit * radius)
        return found

    for ia, ib, ic in _ICOSAHEDRON_FACES:
        a = _ICOSAHEDRON_VERTICES[ia]
        b = _ICOSAHEDRON_VERTICES[ib]
        c = _ICOSAHEDRON_VERTICES[ic]

        rows: list[list[int]] = []
        for i in range(n + 1):
            aj = a + (c - a) * (i / n)
            bj = b + (c - b) * (i / n)
            cols = n - i
            row = []
            for j in range(cols + 1):
                p = aj if cols == 0 else aj + (bj - aj) * (j / cols)
                row.append(vertex_id(p))
            rows.append(row)

        for i in range(n):
            for j in range(2 * (n - i) - 1):
                k = j // 2
                if j % 2 == 0:
                    faces.append((rows[i][k + 1], rows[i + 1][k], rows[i][k]))
                else:
                    faces.append((rows[i][k + 1], rows[i + 1][k + 1], rows[i + 1][k]))

    return np.array(vertices, dtype=float), np.array(faces, dtype=np.int64)


def deform_vertices(
    vertices: np.ndarray,
    radius: float,
    config: PlanetTerrainConfig,
    height_function: HeightOffsetFunction | None = None,
) -> np.ndarray:
    """Push each vertex along its radial direction by the terrain offset."""
    func = height_function or TerrainHeightFunction(config)
    verts = np.asarray(vertices, dtype=float)
    lengths = np.linalg.norm(verts, axis=1)
    offsets = np.array(
        [func.height_offset_at(v, radius, config) for v in verts], dtype=float
    )
    safe = np.where(lengths > 0.0, lengths, 1.0)
    return verts / safe[:, None] * (lengths + offsets)[:, None]


class MeshHeightProvider:
    """Ray-casts straight down against (rotated) planet triangles."""

    def __init__(
        self,
        vertices: np.ndarray,
        faces: np.ndarray,
        radius: float,
        world_rotation: WorldRotation | None = None,
    ):
        verts = np.asarray(vertices, dtype=float)
        tris = np.asarray(faces, dtype=np.int64)
        self.radius = float(radius)
        self.world_rotation = world_rotation or WorldRotation()
        self._v0 = verts[tris[:, 0]]
        self._e1 = verts[tris[:, 1]] - self._v0
        self._e2 = verts[tris[:, 2]] - self._v0
        self.max_extent = float(np.linalg.norm(verts, axis=1).max()) if len(verts) else 0.0

    @classmethod
    def from_terrain(
        cls,
        radius: float,
        config: PlanetTerrainConfig,
        *,
        detail: int | None = None,
        world_rotation: WorldRotation | None = None,
        height_function: TerrainHeightFunction | None = None,
    ) -> "MeshHeightProvider":
        level = subdivisions_for_radius(radius) if detail is None else detail
        verts, faces = build_icosphere(radius, level)
        verts = deform_vertices(verts, radius, config, height_function)
        return cls(verts, faces, radius, world_rotation)

    def raycast(self, origin: Any, direction: Any) -> float | None:
        """Distance to the nearest triangle hit (Moller-Trumbore), or None."""
        o = np.asarray(tuple(origin), dtype=float)
        d = np.asarray(tuple(direction), dtype=float)

        p = np.cross(d, self._e2)
        det = np.einsum("ij,ij->i", self._e1, p)
        valid = np.abs(det) > 1e-12
        inv_det = np.zeros_like(det)
        inv_det[valid] = 1.0 / det[valid]

        s = o - self._v0
        u = np.einsum("ij,ij->i", s, p) * inv_det
        q = np.cross(s, self._e1)
        v = (q @ d) * inv_det
        t = np.einsum("ij,ij->i", self._e2, q) * inv_det

        hit = valid & (u >= 0.0) & (v >= 0.0) & (u + v <= 1.0) & (t > 0.0)
        if not hit.any():
            return None
        return float(t[hit].min())

    def surface_height_at(self, x: float, z: float) -> float:
        start_y = self.radius + RAYCAST_START_OFFSET
        origin = self.world_rotation.to_planet_frame(Vector3(x, start_y, z))
        direction = self.world_rotation.to_planet_frame(Vector3(0.0, -1.0, 0.0))
        distance = self.raycast(origin, direction)
        if distance is None:
            return self.radius
        return start_y - distance
