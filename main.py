"""Main entry point for the headless rover simulation (thin wrapper)."""

from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass

from core.planet import Planet
from core.planet_generator import BIOMES, generate_planet
from planets import create_planet, list_available_planets
from simulation import SCRIPTS, SimulationContext, SimulationRunner


@dataclass
class RunConfig:
    planet_name: str | None
    generate_seed: str | None
    biome: str | None
    script: str
    print_freq: int
    max_steps: int
    drop_height: float | None
    use_cache: bool
    plot: bool
    verbose: bool


def _format_list(title: str, items: list[str]) -> str:
    if not items:
        return f"{title}:\n  (none)"
    joined = "\n  ".join(items)
    return f"{title}:\n  {joined}"


def _build_parser() -> argparse.ArgumentParser:
    planets = list_available_planets()

    epilog = "\n".join(
        [
            _format_list("Available planets", planets),
            _format_list("Available biomes", list(BIOMES)),
            _format_list("Available scripts", list(SCRIPTS)),
        ]
    )

    parser = argparse.ArgumentParser(
        description="Planet Rover Simulation",
        formatter_class=argparse.RawTextHelpFormatter,
        epilog=epilog,
    )
    parser.add_argument(
        "planet_name",
        nargs="?",
        choices=planets,
        help="Planet preset name (omit with --generate)",
    )
    parser.add_argument(
        "--generate",
        metavar="SEED",
        default=None,
        help="Generate a planet from SEED (number or text)",
    )
    parser.add_argument(
        "--biome",
        choices=BIOMES,
        default=None,
        help="Biome for --generate (default: picked by the seed)",
    )
    parser.add_argument(
        "--script",
        choices=tuple(SCRIPTS),
        default="drop",
        help="Scripted input for the run",
    )
    parser.add_argument(
        "--steps",
        type=int,
        default=None,
        help="Run for N physics ticks (default: 600)",
    )
    parser.add_argument(
        "--freq",
        type=int,
        default=None,
        help="Print stats every N ticks (60=1/sec, 1=every tick, 0=off)",
    )
    parser.add_argument(
        "--drop-height",
        type=float,
        default=None,
        help="Start H units above the base radius instead of the spawn offset",
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Query the terrain directly without the height cache",
    )
    parser.add_argument(
        "--plot",
        action="store_true",
        help="Save a settling plot to outputs/",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser


def _parse_args(args: argparse.Namespace) -> RunConfig:
    print_freq = 60 if args.freq is None else args.freq
    max_steps = 600 if args.steps is None else args.steps

    return RunConfig(
        planet_name=args.planet_name,
        generate_seed=args.generate,
        biome=args.biome,
        script=args.script,
        print_freq=print_freq,
        max_steps=max_steps,
        drop_height=args.drop_height,
        use_cache=not args.no_cache,
        plot=args.plot,
        verbose=args.verbose,
    )


def _announce_config(config: RunConfig, args: argparse.Namespace) -> None:
    if args.freq is not None:
        if config.print_freq == 0:
            print("Stats output disabled")
        elif config.print_freq == 1:
            print("Printing stats every tick")
        else:
            print(
                f"Printing stats every {config.print_freq} ticks ({config.print_freq / 60:.2f}s)"
            )

    if args.steps is not None:
        print(f"Max steps: {config.max_steps}")

    if config.drop_height is not None:
        print(f"Drop height: {config.drop_height}")

    if not config.use_cache:
        print("Height cache: disabled")

    if config.plot:
        print("Plot: enabled")


def _resolve_planet(config: RunConfig, parser: argparse.ArgumentParser) -> Planet:
    if config.generate_seed is not None:
        planet = generate_planet(config.generate_seed, biome=config.biome)
        print(
            f"Generated planet {planet.name} ({planet.biome}, radius {planet.radius:g}, seed {planet.seed})"
        )
        return planet

    if config.planet_name is None:
        parser.error("A planet name or --generate SEED is required")
    if config.biome is not None:
        parser.error("--biome only applies with --generate")

    planet = create_planet(config.planet_name)
    print(f"Using planet {planet.name} (radius {planet.radius:g})")
    return planet


def _print_results(result: dict) -> None:
    print("\n" + "=" * 60)
    print("FINAL RESULTS")
    print("=" * 60)
    for key in (
        "planet",
        "script",
        "steps",
        "time",
        "altitude",
        "vertical_speed",
        "grounded",
        "landing_count",
        "max_impact",
        "distance",
        "cache_hit_rate",
    ):
        if key in result:
            val = result[key]
            label = key.replace("_", " ").capitalize()
            if isinstance(val, float):
                print(f"{label:<18}{val:.2f}")
            else:
                print(f"{label:<18}{val}")
    print("=" * 60)
    if result.get("plot_path"):
        print(f"Plot:             {result['plot_path']}")
    if result.get("plot_error"):
        print(f"Plot error:       {result['plot_error']}")


def main(argv: list[str] | None = None) -> dict:
    """Entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    config = _parse_args(args)

    if config.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    _announce_config(config, args)
    planet = _resolve_planet(config, parser)

    context = SimulationContext.create(planet, use_cache=config.use_cache)
    print(f"Running script {config.script}")
    runner = SimulationRunner(
        context,
        script=config.script,
        drop_height=config.drop_height,
        plot=config.plot,
    )
    result = runner.run(max_steps=config.max_steps, print_freq=config.print_freq)
    _print_results(result)
    return result


if __name__ == "__main__":
    main()
