"""Matplotlib-based rendering of purchase logs and publication chains."""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt  # noqa: E402
import numpy as np  # noqa: E402

from theory_sim.config.types import PurchaseEvent  # noqa: E402
from theory_sim.experiments.pub_tables import ChainStep  # noqa: E402

SECONDS_PER_HOUR = 3600.0


def _save(fig: plt.Figure, output_path: Path) -> None:
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    fig.tight_layout()
    fig.savefig(output_path, dpi=150)
    plt.close(fig)


def render_purchase_timeline(
    purchases: Sequence[PurchaseEvent],
    output_path: Path,
    title: str | None = None,
) -> None:
    """Step plot of each upgrade's level against elapsed hours."""
    if not purchases:
        raise ValueError("no purchases to render")

    fig, ax = plt.subplots(figsize=(8, 4.5))
    names = sorted({event.upgrade for event in purchases})
    for name in names:
        events = [event for event in purchases if event.upgrade == name]
        hours = np.array([event.time for event in events]) / SECONDS_PER_HOUR
        levels = np.array([event.level for event in events])
        ax.step(hours, levels, where="post", label=name, linewidth=1.5)

    ax.set_xlabel("Elapsed time (h)")
    ax.set_ylabel("Level")
    ax.grid(True, alpha=0.3)
    ax.legend(loc="upper left", fontsize="small")
    if title:
        ax.set_title(title)
    _save(fig, output_path)


def render_pub_chain(steps: Sequence[ChainStep], grid: int, output_path: Path) -> None:
    """Remaining time and per-publication time along a publication chain."""
    if not steps:
        raise ValueError("no chain steps to render")

    rho = np.array([step.index for step in steps], dtype=float) / grid
    remaining = np.array([step.remaining for step in steps]) / SECONDS_PER_HOUR
    publication = np.array([step.publication for step in steps]) / SECONDS_PER_HOUR

    fig, (ax_total, ax_pub) = plt.subplots(2, 1, figsize=(8, 6), sharex=True)
    ax_total.plot(rho, remaining, marker="o", color="tab:blue")
    ax_total.set_ylabel("Remaining (h)")
    ax_total.grid(True, alpha=0.3)

    ax_pub.bar(rho, publication, width=0.6 * float(np.min(np.diff(rho))) if len(rho) > 1 else 0.5)
    ax_pub.set_xlabel("log10 rho at publication")
    ax_pub.set_ylabel("Publication (h)")
    ax_pub.grid(True, alpha=0.3)
    _save(fig, output_path)
