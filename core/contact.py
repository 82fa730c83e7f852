"""Per-wheel ground contact detection."""

from __future__ import annotations

import math
from typing import Sequence

from core.components import ContactSummary, WheelContact, WheelOffset
from core.maths import Vector3, rotate_offset
from utils.protocols import HeightProvider

# Two axles (z = +/-2) by two tracks (x = +/-2.5); +z is the front.
DEFAULT_WHEEL_OFFSETS: tuple[WheelOffset, ...] = (
    WheelOffset("front-left", -2.5, 2.0),
    WheelOffset("front-right", 2.5, 2.0),
    WheelOffset("rear-left", -2.5, -2.0),
    WheelOffset("rear-right", 2.5, -2.0),
)

DEFAULT_WHEEL_CLEARANCE = 1.0  # Rover center sits this far above a touching wheel's ground
DEFAULT_CONTACT_TOLERANCE = 0.8


class WheelContactModel:
    """Maps rover pose and fixed wheel mounts to grounded contacts."""

    def __init__(
        self,
        height_provider: HeightProvider,
        wheel_offsets: Sequence[WheelOffset] = DEFAULT_WHEEL_OFFSETS,
        *,
        wheel_clearance: float = DEFAULT_WHEEL_CLEARANCE,
        contact_tolerance: float = DEFAULT_CONTACT_TOLERANCE,
    ) -> None:
        self.height_provider = height_provider
        self.wheel_offsets = tuple(wheel_offsets)
        self.wheel_clearance = float(wheel_clearance)
        self.contact_tolerance = float(contact_tolerance)

    def wheel_world_xz(self, position: Vector3, yaw: float, wheel: WheelOffset) -> tuple[float, float]:
        dx, dz = rotate_offset(wheel.x, wheel.z, yaw)
        return position.x + dx, position.z + dz

    def compute(self, position: Vector3, yaw: float) -> list[WheelContact]:
        """Sample the ground under every wheel for the current pose."""
        contacts: list[WheelContact] = []
        for wheel in self.wheel_offsets:
            wx, wz = self.wheel_world_xz(position, yaw, wheel)
            ground = float(self.height_provider.surface_height_at(wx, wz))
            contacts.append(
                WheelContact(
                    name=wheel.name,
                    local_x=wheel.x,
                    local_z=wheel.z,
                    world_x=wx,
                    world_z=wz,
                    ground_height=ground,
                    contact_height=ground + self.wheel_clearance,
                    grounded=position.y
                    <= ground + self.wheel_clearance + self.contact_tolerance,
                )
            )
        return contacts


def summarize(contacts: Sequence[WheelContact]) -> ContactSummary:
    """Aggregate grounded state.

    The tallest grounded contact sets the resting height because the rover
    must clear every touching wheel at once.
    """
    grounded = [c for c in contacts if c.grounded]
    lowest = max(c.contact_height for c in grounded) if grounded else None
    return ContactSummary(
        any_grounded=bool(grounded),
        grounded_count=len(grounded),
        lowest_contact_height=lowest,
    )


def lowest_possible_contact_height(contacts: Sequence[WheelContact]) -> float | None:
    """Highest contact height over all wheels, grounded or not."""
    if not contacts:
        return None
    return max(c.contact_height for c in contacts)


def terrain_attitude(
    contacts: Sequence[WheelContact],
    wheel_base: float,
    wheel_track: float,
    slope_factor: float = 1.0,
) -> tuple[float, float]:
    """Target (pitch, roll) from front/rear and right/left ground averages."""

    def _avg(values: list[float]) -> float:
        return sum(values) / len(values) if values else 0.0

    front = _avg([c.ground_height for c in contacts if c.local_z > 0])
    rear = _avg([c.ground_height for c in contacts if c.local_z < 0])
    right = _avg([c.ground_height for c in contacts if c.local_x > 0])
    left = _avg([c.ground_height for c in contacts if c.local_x < 0])

    pitch = math.atan2(front - rear, wheel_base) * slope_factor
    roll = math.atan2(right - left, wheel_track) * slope_factor
    return pitch, roll
