"""Static stability of the rover over its grounded wheels.

Torque convention matches the attitude: positive pitch raises the front,
positive roll raises the right side. An unsupported rover tips toward its
center of mass, so torque components point opposite to the direction from
the support toward the center.
"""

from __future__ import annotations

import math
from typing import Sequence

from core.components import StabilityResult, Torque

LINE_SUPPORT_TOLERANCE = 1.5
LINE_TORQUE_SCALE = 0.5

Point = tuple[float, float]  # local (x, z)


def distance_point_to_segment(point: Point, start: Point, end: Point) -> float:
    px, pz = point
    ax, az = start
    bx, bz = end
    cx = bx - ax
    cz = bz - az
    len_sq = cx * cx + cz * cz
    if len_sq == 0.0:
        return math.hypot(px - ax, pz - az)

    t = ((px - ax) * cx + (pz - az) * cz) / len_sq
    t = max(0.0, min(1.0, t))
    return math.hypot(px - (ax + t * cx), pz - (az + t * cz))


def convex_hull(points: Sequence[Point]) -> list[Point]:
    """Monotone-chain hull in counter-clockwise order."""
    pts = sorted(set(points))
    if len(pts) <= 2:
        return list(pts)

    def cross(o: Point, a: Point, b: Point) -> float:
        return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])

    lower: list[Point] = []
    for p in pts:
        while len(lower) >= 2 and cross(lower[-2], lower[-1], p) <= 0:
            lower.pop()
        lower.append(p)
    upper: list[Point] = []
    for p in reversed(pts):
        while len(upper) >= 2 and cross(upper[-2], upper[-1], p) <= 0:
            upper.pop()
        upper.append(p)
    return lower[:-1] + upper[:-1]


def point_in_polygon(point: Point, polygon: Sequence[Point]) -> bool:
    """Even-odd ray casting along +x."""
    px, pz = point
    inside = False
    j = len(polygon) - 1
    for i in range(len(polygon)):
        xi, zi = polygon[i]
        xj, zj = polygon[j]
        if (zi > pz) != (zj > pz):
            cross_x = (xj - xi) * (pz - zi) / (zj - zi) + xi
            if px < cross_x:
                inside = not inside
        j = i
    return inside


class StabilityAnalyzer:
    """Checks whether grounded wheels support the center of mass."""

    def __init__(
        self,
        center_of_mass: Point = (0.0, 0.0),
        line_tolerance: float = LINE_SUPPORT_TOLERANCE,
    ) -> None:
        self.center_of_mass = (float(center_of_mass[0]), float(center_of_mass[1]))
        self.line_tolerance = float(line_tolerance)

    def analyze(self, contact_points: Sequence[Point]) -> StabilityResult:
        points = [(float(x), float(z)) for x, z in contact_points]
        com = self.center_of_mass

        if not points:
            return StabilityResult(stable=False)

        if len(points) == 1:
            return StabilityResult(stable=False, torque=self._point_torque(points[0]))

        if len(points) == 2:
            return self._line_support(points[0], points[1])

        hull = convex_hull(points)
        if len(hull) == 1:
            return StabilityResult(stable=False, torque=self._point_torque(hull[0]))
        if len(hull) == 2:
            # Collinear contacts
            return self._line_support(hull[0], hull[1])
        if point_in_polygon(com, hull):
            return StabilityResult(stable=True)
        return StabilityResult(stable=False, torque=self._nearest_edge_torque(hull))

    def _line_support(self, a: Point, b: Point) -> StabilityResult:
        if distance_point_to_segment(self.center_of_mass, a, b) < self.line_tolerance:
            return StabilityResult(stable=True)
        return StabilityResult(stable=False, torque=self._edge_torque(a, b))

    # ----- Torque directions -----

    def _point_torque(self, contact: Point) -> Torque:
        com_x, com_z = self.center_of_mass
        pitch = -1.0 if com_z - contact[1] > 0 else 1.0
        roll = -1.0 if com_x - contact[0] > 0 else 1.0
        return Torque(pitch=pitch, roll=roll)

    def _edge_torque(self, a: Point, b: Point) -> Torque:
        """Tip perpendicular to the support edge, toward the center of mass."""
        line_x = b[0] - a[0]
        line_z = b[1] - a[1]
        perp_x, perp_z = -line_z, line_x
        length = math.hypot(perp_x, perp_z)
        if length == 0.0:
            return self._point_torque(a)
        perp_x /= length
        perp_z /= length

        com_x, com_z = self.center_of_mass
        if perp_x * (com_x - a[0]) + perp_z * (com_z - a[1]) < 0:
            perp_x, perp_z = -perp_x, -perp_z
        return Torque(
            pitch=-perp_z * LINE_TORQUE_SCALE,
            roll=-perp_x * LINE_TORQUE_SCALE,
        )

    def _nearest_edge_torque(self, hull: Sequence[Point]) -> Torque:
        best = (hull[0], hull[1])
        best_distance = distance_point_to_segment(self.center_of_mass, *best)
        for i in range(1, len(hull)):
            a = hull[i]
            b = hull[(i + 1) % len(hull)]
            d = distance_point_to_segment(self.center_of_mass, a, b)
            if d < best_distance:
                best_distance = d
                best = (a, b)
        return self._edge_torque(*best)
