"""Math utilities for 3D vectors, rotations, and spherical coordinates."""

from __future__ import annotations

import math
from dataclasses import dataclass
from pygame.math import Vector3 as _Vector3

# Export Vector3 alias
Vector3 = _Vector3


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def lerp(start: float, end: float, factor: float) -> float:
    return start + (end - start) * factor


def to_lat_lon(x: float, y: float, z: float) -> tuple[float, float]:
    """Return (lat, lon) in radians for a point, lat measured from the xz plane.

    The origin has no direction; it maps to (0, 0).
    """
    radius = math.sqrt(x * x + y * y + z * z)
    if radius <= 0.0:
        return 0.0, 0.0
    lat = math.asin(clamp(y / radius, -1.0, 1.0))
    lon = math.atan2(z, x)
    return lat, lon


def rotate_offset(x: float, z: float, yaw: float) -> tuple[float, float]:
    """Rotate a local (x, z) offset about the vertical axis by yaw."""
    c = math.cos(yaw)
    s = math.sin(yaw)
    return x * c - z * s, x * s + z * c


@dataclass(frozen=True)
class Quaternion:
    """Unit quaternion (w, x, y, z) for planet rotation."""

    w: float = 1.0
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    @classmethod
    def identity(cls) -> "Quaternion":
        return cls()

    @classmethod
    def from_axis_angle(cls, axis: Vector3, angle: float) -> "Quaternion":
        length = axis.length()
        if length <= 0.0:
            return cls()
        half = angle * 0.5
        s = math.sin(half) / length
        return cls(math.cos(half), axis.x * s, axis.y * s, axis.z * s)

    def __mul__(self, other: "Quaternion") -> "Quaternion":
        # Hamilton product: self applied after other.
        return Quaternion(
            self.w * other.w - self.x * other.x - self.y * other.y - self.z * other.z,
            self.w * other.x + self.x * other.w + self.y * other.z - self.z * other.y,
            self.w * other.y - self.x * other.z + self.y * other.w + self.z * other.x,
            self.w * other.z + self.x * other.y - self.y * other.x + self.z * other.w,
        )

    def conjugate(self) -> "Quaternion":
        return Quaternion(self.w, -self.x, -self.y, -self.z)

    def normalized(self) -> "Quaternion":
        n = math.sqrt(self.w * self.w + self.x * self.x + self.y * self.y + self.z * self.z)
        if n <= 0.0:
            return Quaternion()
        return Quaternion(self.w / n, self.x / n, self.y / n, self.z / n)

    @property
    def angle(self) -> float:
        """Rotation angle in radians, in [0, pi]."""
        w = clamp(abs(self.w), 0.0, 1.0)
        return 2.0 * math.acos(w)

    def rotate(self, v: Vector3) -> Vector3:
        # v' = v + 2w(q x v) + 2 q x (q x v)
        qx, qy, qz = self.x, self.y, self.z
        tx = 2.0 * (qy * v.z - qz * v.y)
        ty = 2.0 * (qz * v.x - qx * v.z)
        tz = 2.0 * (qx * v.y - qy * v.x)
        return Vector3(
            v.x + self.w * tx + (qy * tz - qz * ty),
            v.y + self.w * ty + (qz * tx - qx * tz),
            v.z + self.w * tz + (qx * ty - qy * tx),
        )
