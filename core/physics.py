"""Terrain-contact rover physics, integrated once per tick.

World is y-up. The rover stays near the top of the planet; driving turns the
planet under it instead of translating the rover.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass

from core.config import DEFAULT_PLANET_RADIUS, REFERENCE_RADIUS, ROVER_SPAWN_HEIGHT_OFFSET
from core.components import (
    InputState,
    MovementResult,
    PhysicsResult,
    RoverPose,
    RoverSnapshot,
    WheelContact,
    WorldRotation,
)
from core.contact import (
    DEFAULT_WHEEL_OFFSETS,
    WheelContactModel,
    lowest_possible_contact_height,
    summarize,
    terrain_attitude,
)
from core.maths import Quaternion, Vector3, clamp, lerp
from core.stability import StabilityAnalyzer
from utils.protocols import HeightProvider

LOGGER = logging.getLogger(__name__)

MAX_TILT = math.pi / 2.0


@dataclass(frozen=True)
class PhysicsTuning:
    """Per-tick physics constants. Velocities are in units per tick."""

    gravity: float = -0.3
    air_damping: float = 0.99
    ground_damping: float = 0.7
    angular_damping: float = 0.95
    torque_strength: float = 0.12
    angular_step: float = 0.03

    wheel_base: float = 4.0  # Front to rear axle
    wheel_track: float = 5.0  # Left to right wheel
    wheel_clearance: float = 1.0
    contact_tolerance: float = 0.8

    settling_distance: float = 3.0
    settling_force: float = 0.1
    snap_tolerance: float = 0.2
    rest_speed: float = 0.25  # Rebounds slower than this end the bounce
    hard_snap_distance: float = 0.05
    hard_snap_speed: float = 0.02

    orientation_blend: float = 0.3
    slope_factor: float = 0.7
    heading_blend: float = 0.15

    turn_rate: float = 0.03
    move_speed: float = 0.01  # Radians of planet rotation per tick at the reference radius
    reference_radius: float = REFERENCE_RADIUS
    spawn_height_offset: float = ROVER_SPAWN_HEIGHT_OFFSET

    def validate(self) -> list[str]:
        errors: list[str] = []
        if self.gravity >= 0:
            errors.append("gravity must be negative")
        for name in ("air_damping", "ground_damping", "angular_damping"):
            value = getattr(self, name)
            if value < 0 or value > 1:
                errors.append(f"{name} must be between 0 and 1")
        if self.wheel_base <= 0:
            errors.append("wheel_base must be positive")
        if self.wheel_track <= 0:
            errors.append("wheel_track must be positive")
        if self.move_speed <= 0:
            errors.append("move_speed must be positive")
        return errors


class RoverPhysicsEngine:
    """Single-body integrator: gravity, settling, wheel contact, tipping, bounce.

    The height provider is injected; it may be the analytic terrain sampler,
    a mesh raycaster, or a cache in front of either.
    """

    def __init__(
        self,
        height_provider: HeightProvider,
        planet_radius: float = DEFAULT_PLANET_RADIUS,
        tuning: PhysicsTuning | None = None,
        *,
        stability: StabilityAnalyzer | None = None,
        wheel_offsets=DEFAULT_WHEEL_OFFSETS,
    ) -> None:
        self.tuning = tuning or PhysicsTuning()
        self.height_provider = height_provider
        self.contact_model = WheelContactModel(
            height_provider,
            wheel_offsets,
            wheel_clearance=self.tuning.wheel_clearance,
            contact_tolerance=self.tuning.contact_tolerance,
        )
        self.stability = stability or StabilityAnalyzer()
        self.planet_radius = float(planet_radius)
        self.pose = RoverPose()
        self.wheel_contacts: list[WheelContact] = []
        self.landing_impact = 0.0
        self.reset(self.planet_radius)

    # ----- Lifecycle -----

    def reset(self, planet_radius: float | None = None) -> None:
        """Respawn above the planet with zero motion; yaw faces north."""
        if planet_radius is not None:
            self.planet_radius = float(planet_radius)
        self.pose = RoverPose(
            position=Vector3(0.0, self.planet_radius + self.tuning.spawn_height_offset, 0.0)
        )
        self.pose.orientation.yaw = -math.pi / 2.0
        self.wheel_contacts = self.contact_model.compute(
            self.pose.position, self.pose.orientation.yaw
        )
        self.landing_impact = 0.0

    def set_height_provider(self, provider: HeightProvider, planet_radius: float) -> None:
        """Swap terrain on planet switch and respawn the rover."""
        self.height_provider = provider
        self.contact_model.height_provider = provider
        self.reset(planet_radius)
        LOGGER.debug("rover respawned on planet of radius %.1f", planet_radius)

    # ----- Tick -----

    def step(self) -> PhysicsResult:
        """Advance one tick. Stage order is part of the physical behavior."""
        t = self.tuning
        pose = self.pose

        # 1-2. Gravity, then air damping on every tick.
        pose.velocity.y += t.gravity
        pose.velocity *= t.air_damping

        # 3. Pull gently toward the ground just before contact.
        lowest_possible = lowest_possible_contact_height(self.wheel_contacts)
        if lowest_possible is not None:
            gap = pose.position.y - lowest_possible
            if 0.0 < gap < t.settling_distance:
                pose.velocity.y -= t.settling_force * (1.0 - gap / t.settling_distance)

        # 4. Integrate position.
        pose.position += pose.velocity

        # 5. Contacts and terrain-following attitude.
        self.wheel_contacts = self.contact_model.compute(pose.position, pose.orientation.yaw)
        contact = summarize(self.wheel_contacts)
        if contact.any_grounded:
            target_pitch, target_roll = terrain_attitude(
                self.wheel_contacts, t.wheel_base, t.wheel_track, t.slope_factor
            )
            pose.orientation.pitch = lerp(pose.orientation.pitch, target_pitch, t.orientation_blend)
            pose.orientation.roll = lerp(pose.orientation.roll, target_roll, t.orientation_blend)

        # 6. Tip toward stability.
        self._apply_stability_torque()

        # 7. Ground resolution.
        was_grounded = pose.grounded
        pose.grounded = contact.any_grounded
        if contact.lowest_contact_height is not None:
            self._resolve_ground(contact.lowest_contact_height)

        # 8. Landing impact on the airborne -> grounded transition only.
        impact = abs(pose.velocity.y) if (pose.grounded and not was_grounded) else 0.0
        self.landing_impact = impact
        if impact > 0.0:
            LOGGER.debug("landing impact %.3f at y=%.3f", impact, pose.position.y)

        return PhysicsResult(
            was_grounded=was_grounded,
            is_grounded=pose.grounded,
            contact=contact,
            landing_impact=impact,
        )

    def _apply_stability_torque(self) -> None:
        t = self.tuning
        pose = self.pose
        grounded_points = [(c.local_x, c.local_z) for c in self.wheel_contacts if c.grounded]
        if grounded_points:
            result = self.stability.analyze(grounded_points)
            if not result.stable:
                pose.angular_velocity.x += result.torque.pitch * t.torque_strength
                pose.angular_velocity.z += result.torque.roll * t.torque_strength

        pose.angular_velocity *= t.angular_damping
        orientation = pose.orientation
        orientation.pitch += pose.angular_velocity.x * t.angular_step
        orientation.roll += pose.angular_velocity.z * t.angular_step
        orientation.pitch = clamp(orientation.pitch, -MAX_TILT, MAX_TILT)
        orientation.roll = clamp(orientation.roll, -MAX_TILT, MAX_TILT)

    def _resolve_ground(self, contact_height: float) -> None:
        t = self.tuning
        pose = self.pose
        gap = pose.position.y - contact_height
        if gap > t.snap_tolerance:
            return

        pose.position.y = contact_height
        if pose.velocity.y < 0:
            pose.velocity.y *= -t.ground_damping
            if abs(pose.velocity.y) < t.rest_speed:
                pose.velocity.y = 0.0

        if abs(gap) < t.hard_snap_distance and abs(pose.velocity.y) < t.hard_snap_speed:
            pose.position.y = contact_height
            pose.velocity.y = 0.0

    # ----- Movement -----

    def move_speed_for(self, planet_radius: float) -> float:
        """Planet rotation per tick; inverse in radius so surface speed is constant."""
        radius = max(1e-6, float(planet_radius))
        return self.tuning.move_speed * (self.tuning.reference_radius / radius)

    def handle_movement(
        self,
        input_state: InputState,
        heading: float,
        world_rotation: WorldRotation,
        planet_radius: float,
    ) -> MovementResult:
        """Tank controls: turning changes yaw, driving rotates the world."""
        t = self.tuning
        moved = False
        forward_movement = False

        if input_state.turn_left:
            self.pose.orientation.yaw += t.turn_rate
            moved = True
        if input_state.turn_right:
            self.pose.orientation.yaw -= t.turn_rate
            moved = True

        speed = self.move_speed_for(planet_radius)
        axis = Vector3(math.cos(heading), 0.0, math.sin(heading))
        if input_state.forward:
            world_rotation.rotate_by(Quaternion.from_axis_angle(axis, -speed))
            moved = True
            forward_movement = True
        if input_state.backward:
            world_rotation.rotate_by(Quaternion.from_axis_angle(axis, speed))
            moved = True
            forward_movement = True

        return MovementResult(moved=moved, forward_movement=forward_movement)

    def update_heading(self, heading: float) -> None:
        """Ease yaw toward the display heading."""
        yaw = self.pose.orientation.yaw
        self.pose.orientation.yaw = lerp(yaw, -heading, self.tuning.heading_blend)

    # ----- Views -----

    @property
    def is_grounded(self) -> bool:
        return self.pose.grounded

    def snapshot(self) -> RoverSnapshot:
        pose = self.pose
        return RoverSnapshot(
            position=Vector3(pose.position),
            velocity=Vector3(pose.velocity),
            orientation=pose.orientation.copy(),
            grounded=pose.grounded,
            wheel_contacts=tuple(
                WheelContact(**vars(c)) for c in self.wheel_contacts
            ),
            landing_impact=self.landing_impact,
        )
