from __future__ import annotations

import pytest

from core.components import InputState
from planets import create_planet
from simulation import SimulationContext, SimulationRunner, TickReport


def test_context_settles_on_flat_planet() -> None:
    context = SimulationContext.create(create_planet("flat"))
    for _ in range(300):
        report = context.tick()

    assert isinstance(report, TickReport)
    assert report.tick == 300
    assert context.physics.is_grounded
    assert context.physics.pose.position.y == pytest.approx(80.94, abs=0.01)
    assert context.cache is not None
    assert context.cache.stats()["hits"] > 0


def test_context_without_cache_queries_provider_directly() -> None:
    context = SimulationContext.create(create_planet("flat"), use_cache=False)
    assert context.cache is None
    assert context.height_provider is context.provider
    context.tick()


def test_driving_rotates_world_and_revalidates_cache() -> None:
    context = SimulationContext.create(create_planet("flat"))
    reports = [context.tick(InputState(forward=True)) for _ in range(60)]

    assert all(r.movement.forward_movement for r in reports)
    assert context.world_rotation.quaternion.angle == pytest.approx(0.6, rel=1e-3)
    assert all(r.cache_invalidated for r in reports)


def test_turning_updates_heading() -> None:
    context = SimulationContext.create(create_planet("flat"))
    start = context.heading
    context.tick(InputState(turn_left=True))

    assert context.heading == pytest.approx(start - 0.03)
    assert context.physics.pose.orientation.yaw == pytest.approx(-context.heading)


def test_switch_planet_rebuilds_state() -> None:
    context = SimulationContext.create(create_planet("flat"))
    old_cache = context.cache
    for _ in range(30):
        context.tick(InputState(forward=True))

    context.switch_planet(create_planet("moon"))

    assert context.planet.name == "Moon"
    assert context.tick_count == 0
    assert context.physics.planet_radius == 60.0
    assert context.physics.pose.position.y == 80.0
    assert context.world_rotation.quaternion.angle == pytest.approx(0.0)
    assert context.cache is not old_cache
    assert context.physics.height_provider is context.cache
    assert context.provider.radius == 60.0


def test_runner_drop_summary(capsys) -> None:
    context = SimulationContext.create(create_planet("flat"))
    runner = SimulationRunner(context, script="drop", drop_height=40.0)

    result = runner.run(max_steps=300, print_freq=100)

    out = capsys.readouterr().out
    assert out.count("t:") == 3
    assert result["steps"] == 300
    assert result["time"] == pytest.approx(5.0)
    assert result["grounded"] is True
    assert result["landing_count"] >= 1
    assert result["max_impact"] > 0.0
    assert result["vertical_speed"] == 0.0
    assert "cache_hit_rate" in result
    assert "plot_path" not in result


def test_runner_drive_covers_distance() -> None:
    context = SimulationContext.create(create_planet("flat"))
    result = SimulationRunner(context, script="drive").run(max_steps=120, print_freq=0)
    assert result["distance"] == pytest.approx(60 * 0.01 * 80.0)


def test_runner_spin_only_turns() -> None:
    context = SimulationContext.create(create_planet("flat"))
    result = SimulationRunner(context, script="spin").run(max_steps=90, print_freq=0)
    assert result["distance"] == 0.0
    assert context.world_rotation.quaternion.angle == pytest.approx(0.0)


def test_runner_rejects_unknown_script() -> None:
    context = SimulationContext.create(create_planet("flat"))
    with pytest.raises(ValueError):
        SimulationRunner(context, script="fly")


def test_cached_wheel_heights_follow_rotating_terrain() -> None:
    context = SimulationContext.create(create_planet("mars"))
    for _ in range(120):
        context.tick()

    worst = 0.0
    for _ in range(60):
        report = context.tick(InputState(forward=True))
        assert report.cache_invalidated
        for wheel in context.physics.wheel_contacts:
            exact = context.provider.surface_height_at(wheel.world_x, wheel.world_z)
            worst = max(worst, abs(wheel.ground_height - exact))

    assert worst < 1e-6
    assert context.world_rotation.quaternion.angle > 0.5
