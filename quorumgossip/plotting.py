from __future__ import annotations

"""Plotting utilities for simulation metrics.

This module renders per-round belief-set sizes and active followee counts of
the compliant nodes. Figures are saved to files for downstream reporting.
"""

from pathlib import Path
from typing import Optional, Tuple

import matplotlib.pyplot as plt
import numpy as np

from quorumgossip.metrics import RoundMetrics


def save_round_plot(
    rounds: np.ndarray,
    mean: np.ndarray,
    *,
    low: Optional[np.ndarray] = None,
    high: Optional[np.ndarray] = None,
    ylabel: str,
    title: str,
    output_path: Path,
) -> Path:
    """Save a per-round line plot, optionally with a min/max band.

    Args:
        rounds: Round indices for the x-axis.
        mean: Mean value per round.
        low: Optional per-round minimum for the shaded band.
        high: Optional per-round maximum for the shaded band.
        ylabel: Label for y-axis.
        title: Figure title.
        output_path: Destination file path (parent directories will be created).

    Returns:
        The path to the saved figure file.
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    _, ax = plt.subplots(figsize=(8, 4.5), constrained_layout=True)
    ax.plot(rounds, mean, color="#1f77b4", linewidth=2.0, marker="o", markersize=3)
    if low is not None and high is not None:
        ax.fill_between(rounds, low, high, color="#1f77b4", alpha=0.15, linewidth=0)
    ax.set_xlabel("Round")
    ax.set_ylabel(ylabel)
    ax.set_title(title)
    ax.grid(True, linestyle=":", linewidth=0.8, alpha=0.8)

    plt.savefig(output_path, dpi=150)
    plt.close()
    return output_path


def save_round_plots(metrics: RoundMetrics, *, output_dir: Path) -> Tuple[Path, Path]:
    """Save belief-size and active-followee plots and return their paths."""
    output_dir = Path(output_dir)
    summaries = metrics.summaries()
    rounds = np.array([s.round for s in summaries], dtype=int)

    beliefs_path = save_round_plot(
        rounds,
        np.array([s.mean_beliefs for s in summaries]),
        low=np.array([s.min_beliefs for s in summaries]),
        high=np.array([s.max_beliefs for s in summaries]),
        ylabel="Belief set size",
        title="Compliant belief set size per round",
        output_path=output_dir / "beliefs_per_round.png",
    )
    active_path = save_round_plot(
        rounds,
        np.array([s.mean_active_followees for s in summaries]),
        ylabel="Active followees (mean)",
        title="Active followees per round",
        output_path=output_dir / "active_followees_per_round.png",
    )
    return beliefs_path, active_path


__all__ = ["save_round_plot", "save_round_plots"]
