"""Headless settling plots.

Renders rover height against the resting contact height for every sampled
tick, marks landings, and saves a PNG via the Agg backend.
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from core.physics import RoverPhysicsEngine

# (tick, rover y, contact height or None, landing impact)
Sample = tuple[int, float, Any, float]


def save_settling_plot(samples: list[Sample], out_path: str | None = None) -> str:
    """Save a PNG of rover height and contact height over ticks.

    Args:
        samples: list of (tick, y, contact_height, landing_impact) tuples;
            contact_height is None while no wheel touches the ground
        out_path: optional explicit output path

    Returns:
        Output file path.
    """
    if out_path is None:
        out_path = str(Path("outputs") / "settling.png")

    if not samples:
        samples = [(0, 0.0, None, 0.0)]

    ticks = [s[0] for s in samples]
    heights = [s[1] for s in samples]
    contact_ticks = [s[0] for s in samples if s[2] is not None]
    contacts = [s[2] for s in samples if s[2] is not None]
    landings = [(s[0], s[1], s[3]) for s in samples if s[3] > 0.0]

    import matplotlib

    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    fig, ax = plt.subplots(figsize=(10, 5), dpi=150)
    ax.plot(ticks, heights, color="#cc5522", linewidth=1.5, label="rover y")
    if contacts:
        ax.plot(
            contact_ticks,
            contacts,
            color="#444444",
            linewidth=1.0,
            linestyle="--",
            alpha=0.8,
            label="contact height",
        )
    if landings:
        ax.scatter(
            [p[0] for p in landings],
            [p[1] for p in landings],
            marker="v",
            color="#2266cc",
            zorder=3,
            label="landing",
        )
        for tick, y, impact in landings:
            ax.annotate(f"{impact:.2f}", (tick, y), textcoords="offset points", xytext=(4, 6), fontsize=7)

    all_y = heights + contacts
    y_min = min(all_y)
    y_max = max(all_y)
    y_pad = 0.05 * max(1.0, (y_max - y_min))
    ax.set_ylim(y_min - y_pad, y_max + y_pad)

    ax.set_xlabel("tick")
    ax.set_ylabel("y (world units)")
    ax.set_title("Rover settling")
    ax.legend(loc="upper right")
    ax.grid(True, linestyle=":", alpha=0.3)

    fig.tight_layout()
    out_file = Path(out_path)
    out_file.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(out_file)
    plt.close(fig)
    return str(out_file)


class Plotter:
    """Collects settling samples and writes the plot at the end of a headless run.

    Usage:
        plotter = Plotter(physics, enabled=True)
        plotter.seed_initial_sample()
        ... each tick ...
        plotter.update(report)
        ... on shutdown ...
        extras = plotter.finalize()
    """

    def __init__(
        self,
        physics: RoverPhysicsEngine,
        *,
        enabled: bool = False,
        sample_every: int = 1,
        out_dir: str = "outputs",
    ) -> None:
        self.physics = physics
        self.enabled = enabled
        self.sample_every = max(1, int(sample_every))
        self.out_dir = out_dir
        self._samples: list[Sample] = []

    def seed_initial_sample(self) -> None:
        if not self.enabled:
            return
        self._samples.clear()
        self._samples.append((0, self.physics.pose.position.y, None, 0.0))

    def update(self, report) -> None:
        """Record a sample from a tick report."""
        if not self.enabled or report.tick % self.sample_every != 0:
            return
        self._samples.append(
            (
                report.tick,
                self.physics.pose.position.y,
                report.physics.contact.lowest_contact_height,
                report.physics.landing_impact,
            )
        )

    def get_samples(self) -> list[Sample]:
        return list(self._samples)

    def finalize(self) -> dict:
        """Write the plot if enabled.

        Returns a dict suitable for merging into the run summary, with
        either "plot_path" or "plot_error".
        """
        if not self.enabled:
            return {}
        try:
            import datetime as _dt

            ts = _dt.datetime.now().strftime("%Y%m%d_%H%M%S")
            out_path = str(Path(self.out_dir) / f"settling_{ts}.png")
            save_settling_plot(self._samples, out_path=out_path)
            return {"plot_path": out_path}
        except Exception as e:  # pragma: no cover - plotting optional
            return {"plot_error": str(e)}
