"""Simulation context and headless runner.

``SimulationContext`` owns everything a single active planet needs: the
terrain function, the planet's world rotation, the height provider (with an
optional cache in front), the rover physics engine, the display heading and
the tick counter. Switching planets rebuilds all of it synchronously.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from core.components import InputState, MovementResult, PhysicsResult, WorldRotation
from core.config import PHYSICS_TICKS_PER_SECOND
from core.height_cache import HeightQueryCache
from core.maths import Vector3
from core.physics import PhysicsTuning, RoverPhysicsEngine
from core.planet import Planet
from core.terrain import AnalyticHeightProvider
from utils.plot import Plotter

LOGGER = logging.getLogger(__name__)

INITIAL_HEADING = 1.5707963267948966  # Facing north; matches the spawn yaw


@dataclass(frozen=True)
class TickReport:
    tick: int
    movement: MovementResult
    physics: PhysicsResult
    cache_invalidated: bool = False


class SimulationContext:
    """Per-planet simulation state, advanced one tick at a time."""

    def __init__(
        self,
        planet: Planet,
        *,
        use_cache: bool = True,
        tuning: PhysicsTuning | None = None,
    ) -> None:
        self.use_cache = use_cache
        self.tuning = tuning or PhysicsTuning()
        self.planet = planet
        self.world_rotation = WorldRotation()
        self.height_function = planet.height_function()
        self.provider = self._build_provider(planet)
        self.cache = HeightQueryCache(self.provider) if use_cache else None
        self.physics = RoverPhysicsEngine(
            self.height_provider, planet.radius, self.tuning
        )
        self.heading = INITIAL_HEADING
        self.tick_count = 0
        LOGGER.debug("activated planet %r (radius %.1f)", planet.name, planet.radius)

    @classmethod
    def create(
        cls,
        planet: Planet,
        use_cache: bool = True,
        tuning: PhysicsTuning | None = None,
    ) -> "SimulationContext":
        return cls(planet, use_cache=use_cache, tuning=tuning)

    def _build_provider(self, planet: Planet) -> AnalyticHeightProvider:
        return AnalyticHeightProvider(
            self.height_function,
            planet.radius,
            world_rotation=self.world_rotation,
            config=planet.terrain,
        )

    @property
    def height_provider(self):
        return self.cache if self.cache is not None else self.provider

    @property
    def planet_radius(self) -> float:
        return self.planet.radius

    def switch_planet(self, planet: Planet) -> None:
        """Discard terrain, cache and pose, then respawn on ``planet``."""
        previous = self.planet.name
        self.planet = planet
        self.world_rotation.reset()
        self.height_function = planet.height_function()
        self.provider = self._build_provider(planet)
        self.cache = HeightQueryCache(self.provider) if self.use_cache else None
        self.physics.set_height_provider(self.height_provider, planet.radius)
        self.heading = INITIAL_HEADING
        self.tick_count = 0
        LOGGER.debug("switched planet %r -> %r", previous, planet.name)

    def rover_planet_position(self) -> Vector3:
        """Rover position expressed in the rotating planet frame."""
        return self.world_rotation.to_planet_frame(self.physics.pose.position)

    def tick(self, input_state: InputState | None = None) -> TickReport:
        """Movement, then cache revalidation, then the physics step."""
        input_state = input_state or InputState()
        movement = self.physics.handle_movement(
            input_state, self.heading, self.world_rotation, self.planet.radius
        )
        if movement.moved:
            self.heading = -self.physics.pose.orientation.yaw
            self.physics.update_heading(self.heading)

        invalidated = False
        if self.cache is not None:
            if movement.forward_movement:
                # Cells are keyed on world x/z; the terrain under them just moved.
                self.cache.invalidate(self.rover_planet_position())
                invalidated = True
            else:
                invalidated = self.cache.invalidate_if_needed(self.rover_planet_position())

        physics = self.physics.step()
        self.tick_count += 1
        return TickReport(
            tick=self.tick_count,
            movement=movement,
            physics=physics,
            cache_invalidated=invalidated,
        )


# -----------------------------
# Headless scripted runs
# -----------------------------

InputScript = Callable[[int], InputState]


def _drop_script(_tick: int) -> InputState:
    return InputState()


def _drive_script(tick: int) -> InputState:
    # Let the rover land before driving off.
    return InputState(forward=tick >= PHYSICS_TICKS_PER_SECOND)


def _spin_script(tick: int) -> InputState:
    return InputState(turn_left=tick >= PHYSICS_TICKS_PER_SECOND)


SCRIPTS: dict[str, InputScript] = {
    "drop": _drop_script,
    "drive": _drive_script,
    "spin": _spin_script,
}


class SimulationRunner:
    """Runs a scripted session without graphics and reports a summary.

    Usage:
        runner = SimulationRunner(context, script="drive", plot=True)
        result = runner.run(max_steps=600, print_freq=60)
    """

    def __init__(
        self,
        context: SimulationContext,
        *,
        script: str = "drop",
        drop_height: float | None = None,
        plot: bool = False,
    ) -> None:
        if script not in SCRIPTS:
            raise ValueError(f"Unknown script: {script!r} (choose from {', '.join(SCRIPTS)})")
        self.context = context
        self.script_name = script
        self.script = SCRIPTS[script]
        self.drop_height = drop_height
        self.plotter = Plotter(context.physics, enabled=plot)

    def _prepare(self) -> None:
        physics = self.context.physics
        if self.drop_height is not None:
            physics.pose.position.y = self.context.planet_radius + float(self.drop_height)

    def run(self, max_steps: int = 600, print_freq: int = 60) -> dict:
        self._prepare()
        self.plotter.seed_initial_sample()

        landing_count = 0
        max_impact = 0.0
        moved_ticks = 0
        step_count = 0

        while step_count < max_steps:
            report = self.context.tick(self.script(step_count))
            step_count += 1

            if report.physics.landing_impact > 0.0:
                landing_count += 1
                max_impact = max(max_impact, report.physics.landing_impact)
            if report.movement.forward_movement:
                moved_ticks += 1

            self.plotter.update(report)

            if print_freq > 0 and step_count % print_freq == 0:
                print(self.format_stats(report))

        physics = self.context.physics
        pose = physics.pose
        result = {
            "planet": self.context.planet.name,
            "script": self.script_name,
            "steps": step_count,
            "time": step_count / float(PHYSICS_TICKS_PER_SECOND),
            "final_height": pose.position.y,
            "altitude": pose.position.y - self.context.planet_radius,
            "vertical_speed": pose.velocity.y,
            "grounded": pose.grounded,
            "landing_count": landing_count,
            "max_impact": max_impact,
            "distance": moved_ticks
            * physics.move_speed_for(self.context.planet_radius)
            * self.context.planet_radius,
            "yaw": pose.orientation.yaw,
        }
        if self.context.cache is not None:
            result["cache_hit_rate"] = self.context.cache.stats()["hit_rate"]
        plot_extras = self.plotter.finalize()
        if plot_extras:
            result.update(plot_extras)
        return result

    def format_stats(self, report: TickReport) -> str:
        pose = self.context.physics.pose
        contact = report.physics.contact
        parts = [
            f"t:{report.tick / PHYSICS_TICKS_PER_SECOND:6.2f}",
            f"y:{pose.position.y:8.3f} vy:{pose.velocity.y:7.3f}",
            f"wheels:{contact.grounded_count}/{len(self.context.physics.wheel_contacts)}",
            f"pitch:{pose.orientation.pitch:6.3f} roll:{pose.orientation.roll:6.3f}",
        ]
        if self.context.cache is not None:
            parts.append(f"cache:{self.context.cache.stats()['hit_rate']:5.1f}%")
        return " | ".join(parts)
