from __future__ import annotations

from dataclasses import dataclass, field

from core.maths import Quaternion, Vector3
from core.config import DEFAULT_PLANET_RADIUS, ROVER_SPAWN_HEIGHT_OFFSET


@dataclass
class Orientation:
    """Rover attitude in radians."""
    pitch: float = 0.0
    roll: float = 0.0
    yaw: float = 0.0

    def copy(self) -> "Orientation":
        return Orientation(self.pitch, self.roll, self.yaw)


@dataclass
class RoverPose:
    """Rigid-body state mutated only by the physics engine."""
    position: Vector3 = field(
        default_factory=lambda: Vector3(
            0.0, DEFAULT_PLANET_RADIUS + ROVER_SPAWN_HEIGHT_OFFSET, 0.0
        )
    )
    velocity: Vector3 = field(default_factory=lambda: Vector3(0.0, 0.0, 0.0))
    angular_velocity: Vector3 = field(default_factory=lambda: Vector3(0.0, 0.0, 0.0))
    orientation: Orientation = field(default_factory=Orientation)
    grounded: bool = False


@dataclass(frozen=True)
class WheelOffset:
    """Fixed wheel mount in rover-local coordinates."""
    name: str
    x: float
    z: float


@dataclass
class WheelContact:
    """Per-wheel contact snapshot for one tick."""
    name: str
    local_x: float
    local_z: float
    world_x: float = 0.0
    world_z: float = 0.0
    ground_height: float = 0.0
    contact_height: float = 0.0  # Rover center height when this wheel touches
    grounded: bool = False


@dataclass(frozen=True)
class ContactSummary:
    any_grounded: bool
    grounded_count: int
    lowest_contact_height: float | None


@dataclass(frozen=True)
class Torque:
    pitch: float = 0.0
    roll: float = 0.0


@dataclass(frozen=True)
class StabilityResult:
    stable: bool
    torque: Torque = field(default_factory=Torque)


@dataclass
class InputState:
    """Per-tick movement intent selected by the input collaborator."""
    forward: bool = False
    backward: bool = False
    turn_left: bool = False
    turn_right: bool = False

    @classmethod
    def from_keys(cls, keys: dict) -> "InputState":
        """Build from browser-style key codes (KeyW/KeyS/KeyA/KeyD)."""
        return cls(
            forward=bool(keys.get("KeyW", False)),
            backward=bool(keys.get("KeyS", False)),
            turn_left=bool(keys.get("KeyA", False)),
            turn_right=bool(keys.get("KeyD", False)),
        )

    @property
    def any_active(self) -> bool:
        return self.forward or self.backward or self.turn_left or self.turn_right


@dataclass(frozen=True)
class MovementResult:
    moved: bool = False
    forward_movement: bool = False


@dataclass(frozen=True)
class PhysicsResult:
    """Outcome of one physics tick."""
    was_grounded: bool
    is_grounded: bool
    contact: ContactSummary
    landing_impact: float = 0.0


@dataclass(frozen=True)
class RoverSnapshot:
    """Read-only copy of rover state for rendering/particle collaborators."""
    position: Vector3
    velocity: Vector3
    orientation: Orientation
    grounded: bool
    wheel_contacts: tuple[WheelContact, ...]
    landing_impact: float


@dataclass
class WorldRotation:
    """Planet orientation; the rover stays put while the world turns under it."""
    quaternion: Quaternion = field(default_factory=Quaternion.identity)

    def rotate_by(self, rotation: Quaternion) -> None:
        self.quaternion = (rotation * self.quaternion).normalized()

    def to_planet_frame(self, world_point: Vector3) -> Vector3:
        return self.quaternion.conjugate().rotate(world_point)

    def to_world_frame(self, planet_point: Vector3) -> Vector3:
        return self.quaternion.rotate(planet_point)

    def reset(self) -> None:
        self.quaternion = Quaternion.identity()
