from __future__ import annotations

import math

import pytest

from core.components import InputState, WorldRotation
from core.physics import PhysicsTuning, RoverPhysicsEngine
from core.terrain import AnalyticHeightProvider, PlanetTerrainConfig, TerrainHeightFunction


class _FlatTerrain:
    def __init__(self, height: float = 80.0) -> None:
        self.height = height

    def surface_height_at(self, _x: float, _z: float) -> float:
        return self.height


class _RampTerrain:
    """Rises along world x."""

    def __init__(self, base: float, slope: float) -> None:
        self.base = base
        self.slope = slope

    def surface_height_at(self, x: float, _z: float) -> float:
        return self.base + self.slope * x


def _flat_sphere(radius: float = 80.0) -> AnalyticHeightProvider:
    config = PlanetTerrainConfig(
        height_variation=0.0,
        mountain_density=0.0,
        valley_density=0.0,
        crater_density=0.0,
        cliff_density=0.0,
        mesa_density=0.0,
        boulder_density=0.0,
    )
    return AnalyticHeightProvider(TerrainHeightFunction(config), radius)


def _first_impact(height_above_contact: float) -> float:
    engine = RoverPhysicsEngine(_FlatTerrain(80.0), planet_radius=80.0)
    engine.pose.position.y = 81.0 + height_above_contact
    for _ in range(1000):
        result = engine.step()
        if result.landing_impact > 0.0:
            assert not result.was_grounded
            assert result.is_grounded
            assert result.landing_impact == pytest.approx(abs(engine.pose.velocity.y))
            return result.landing_impact
    raise AssertionError("rover never landed")


def test_spawn_above_radius_facing_north() -> None:
    engine = RoverPhysicsEngine(_FlatTerrain(), planet_radius=80.0)

    assert engine.pose.position.y == 100.0
    assert engine.pose.orientation.yaw == pytest.approx(-math.pi / 2.0)
    assert engine.pose.velocity.length() == 0.0
    assert not engine.is_grounded


def test_free_fall_applies_gravity_then_damping() -> None:
    engine = RoverPhysicsEngine(_FlatTerrain(0.0), planet_radius=80.0)
    engine.step()

    assert engine.pose.velocity.y == pytest.approx(-0.3 * 0.99)
    assert engine.pose.position.y == pytest.approx(100.0 - 0.297)


def test_settles_on_flat_sphere_from_high_drop() -> None:
    engine = RoverPhysicsEngine(_flat_sphere(), planet_radius=80.0)
    engine.pose.position.y = 80.0 + 120.0

    for _ in range(600):
        engine.step()

    expected = math.sqrt(80.0**2 - (2.5**2 + 2.0**2)) + 1.0
    assert engine.pose.position.y == pytest.approx(expected, abs=1e-6)
    assert engine.pose.position.y == pytest.approx(80.94, abs=0.01)
    assert engine.pose.velocity.y == 0.0
    assert engine.is_grounded
    assert engine.pose.orientation.pitch == pytest.approx(0.0, abs=1e-9)
    assert engine.pose.orientation.roll == pytest.approx(0.0, abs=1e-9)


def test_resting_rover_stays_put() -> None:
    engine = RoverPhysicsEngine(_FlatTerrain(), planet_radius=80.0)
    for _ in range(400):
        engine.step()

    for _ in range(50):
        result = engine.step()
        assert engine.pose.position.y == pytest.approx(81.0)
        assert engine.pose.velocity.y == 0.0
        assert result.landing_impact == 0.0
        assert result.contact.grounded_count == 4


def test_landing_impact_grows_with_drop_height() -> None:
    low = _first_impact(5.0)
    high = _first_impact(100.0)

    assert low > 0.0
    assert high > low


def test_impact_only_on_airborne_to_grounded_transition() -> None:
    engine = RoverPhysicsEngine(_FlatTerrain(), planet_radius=80.0)
    engine.pose.position.y = 150.0
    for _ in range(600):
        result = engine.step()
        if result.landing_impact > 0.0:
            assert not result.was_grounded and result.is_grounded
        if result.was_grounded and result.is_grounded:
            assert result.landing_impact == 0.0
        assert engine.landing_impact == result.landing_impact


def test_orientation_follows_gentle_slope() -> None:
    engine = RoverPhysicsEngine(_RampTerrain(80.0, 0.1), planet_radius=80.0)
    for _ in range(400):
        engine.step()

    # Facing north, the front wheels sit at world x = +2.
    target = math.atan2(0.4, 4.0) * 0.7
    assert engine.is_grounded
    assert engine.pose.orientation.pitch == pytest.approx(target, abs=1e-4)
    assert engine.pose.orientation.roll == pytest.approx(0.0, abs=1e-4)


def test_tilt_is_clamped() -> None:
    engine = RoverPhysicsEngine(_FlatTerrain(), planet_radius=80.0)
    engine.pose.angular_velocity.x = 1e6
    engine.step()
    assert engine.pose.orientation.pitch == pytest.approx(math.pi / 2.0)


def test_turn_only_changes_yaw() -> None:
    engine = RoverPhysicsEngine(_FlatTerrain(), planet_radius=80.0)
    rotation = WorldRotation()
    yaw = engine.pose.orientation.yaw

    result = engine.handle_movement(InputState(turn_left=True), math.pi / 2.0, rotation, 80.0)

    assert result.moved
    assert not result.forward_movement
    assert engine.pose.orientation.yaw == pytest.approx(yaw + 0.03)
    assert rotation.quaternion.angle == pytest.approx(0.0)

    engine.handle_movement(InputState(turn_right=True), math.pi / 2.0, rotation, 80.0)
    assert engine.pose.orientation.yaw == pytest.approx(yaw)


def test_forward_rotates_world() -> None:
    engine = RoverPhysicsEngine(_FlatTerrain(), planet_radius=80.0)
    rotation = WorldRotation()

    result = engine.handle_movement(InputState(forward=True), math.pi / 2.0, rotation, 80.0)

    assert result.moved
    assert result.forward_movement
    assert rotation.quaternion.angle == pytest.approx(0.01)


def test_backward_undoes_forward() -> None:
    engine = RoverPhysicsEngine(_FlatTerrain(), planet_radius=80.0)
    rotation = WorldRotation()
    engine.handle_movement(InputState(forward=True), 0.3, rotation, 80.0)
    engine.handle_movement(InputState(backward=True), 0.3, rotation, 80.0)
    assert rotation.quaternion.angle == pytest.approx(0.0, abs=1e-7)


def test_no_input_means_no_movement() -> None:
    engine = RoverPhysicsEngine(_FlatTerrain(), planet_radius=80.0)
    result = engine.handle_movement(InputState(), 0.0, WorldRotation(), 80.0)
    assert not result.moved
    assert not result.forward_movement


def test_move_speed_scales_inversely_with_radius() -> None:
    engine = RoverPhysicsEngine(_FlatTerrain(), planet_radius=80.0)
    small = WorldRotation()
    large = WorldRotation()

    engine.handle_movement(InputState(forward=True), 0.0, small, 80.0)
    engine.handle_movement(InputState(forward=True), 0.0, large, 160.0)

    assert large.quaternion.angle == pytest.approx(small.quaternion.angle / 2.0, rel=1e-6)
    # Surface distance per tick is the same on both planets.
    assert large.quaternion.angle * 160.0 == pytest.approx(small.quaternion.angle * 80.0)


def test_update_heading_blends_toward_negated_heading() -> None:
    engine = RoverPhysicsEngine(_FlatTerrain(), planet_radius=80.0)
    engine.update_heading(math.pi / 2.0)
    assert engine.pose.orientation.yaw == pytest.approx(-math.pi / 2.0)

    engine.update_heading(0.0)
    assert engine.pose.orientation.yaw == pytest.approx(-math.pi / 2.0 * 0.85)


def test_snapshot_is_a_copy() -> None:
    engine = RoverPhysicsEngine(_FlatTerrain(), planet_radius=80.0)
    engine.step()
    snap = engine.snapshot()

    snap.position.y = -1.0
    snap.orientation.pitch = 1.0
    snap.wheel_contacts[0].grounded = True

    assert engine.pose.position.y != -1.0
    assert engine.pose.orientation.pitch != 1.0
    assert not engine.wheel_contacts[0].grounded
    assert len(snap.wheel_contacts) == 4


def test_reset_and_provider_switch_respawn() -> None:
    engine = RoverPhysicsEngine(_FlatTerrain(), planet_radius=80.0)
    for _ in range(100):
        engine.step()

    engine.set_height_provider(_FlatTerrain(160.0), 160.0)

    assert engine.planet_radius == 160.0
    assert engine.pose.position.y == 180.0
    assert engine.pose.velocity.length() == 0.0
    assert not engine.is_grounded
    for _ in range(400):
        engine.step()
    assert engine.pose.position.y == pytest.approx(161.0)


def test_tuning_validation() -> None:
    assert PhysicsTuning().validate() == []
    errors = PhysicsTuning(gravity=0.1, air_damping=1.5, wheel_base=0.0).validate()
    assert len(errors) == 3
