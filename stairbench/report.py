"""Tables and charts of evaluation results.

scores_frame lays per-bucket arrays side by side (one column per design,
indexed by bucket 1..D); summary_frame flattens TrialResults into one row per
trial; plot_scores draws a scores frame as a line chart.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from pathlib import Path

import pandas as pd

from stairbench.experiment import TrialResult

logger = logging.getLogger(__name__)


def scores_frame(results: Mapping[str, Sequence[float]], index_name: str = "length") -> pd.DataFrame:
    """Per-bucket scores of several designs, one column each.

    Args:
        results: Design name -> 1-indexed score array (index 0 is dropped).
        index_name: Name of the bucket index (range length or window offset).

    Raises:
        ValueError: If the arrays have different lengths.
    """
    sizes = {len(scores) for scores in results.values()}
    if len(sizes) > 1:
        raise ValueError(f"score arrays differ in length: {sorted(sizes)}")

    columns = {name: list(scores[1:]) for name, scores in results.items()}
    frame = pd.DataFrame(columns)
    frame.index = pd.RangeIndex(1, len(frame) + 1, name=index_name)
    return frame


def trial_scores_frame(results: Sequence[TrialResult], metric: str) -> pd.DataFrame:
    """scores_frame of the successful trials that ran ``metric``."""
    return scores_frame(
        {r.name: r.scores for r in results if r.ok and r.metric == metric and r.scores}
    )


def summary_frame(results: Sequence[TrialResult]) -> pd.DataFrame:
    """One row per trial: name, metric, weighted score, memory, timing, error."""
    frame = pd.DataFrame([r.to_dict() for r in results])
    if frame.empty:
        return pd.DataFrame(columns=["name", "metric", "score", "memory", "elapsed_s", "error"])
    return frame


def plot_scores(
    frame: pd.DataFrame,
    path: str | Path,
    title: str = "",
    ylabel: str = "score",
    logy: bool = False,
) -> Path:
    """Save a line chart of a scores frame (one line per column).

    Returns:
        The written path.
    """
    import matplotlib
    matplotlib.use("Agg")
    import matplotlib.pyplot as plt

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    fig, ax = plt.subplots(figsize=(8, 5))
    for name in frame.columns:
        ax.plot(frame.index, frame[name], marker="o", label=str(name))
    ax.set_xlabel(frame.index.name or "bucket")
    ax.set_ylabel(ylabel)
    if logy:
        ax.set_yscale("log")
    if title:
        ax.set_title(title)
    ax.grid(True, alpha=0.3)
    ax.legend()
    fig.tight_layout()

    fig.savefig(path, dpi=150)
    plt.close(fig)
    logger.info("Saved plot to %s", path)
    return path
