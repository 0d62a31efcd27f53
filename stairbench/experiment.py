"""Run several sketch designs through the same metrics on the same data.

A Trial names a builder and a metric. run_trials builds a fresh sketch for
every trial, so no design ever sees state left behind by another, and
collects one TrialResult per trial.

A FalseNegativeError ends only the trial that raised it: the broken sketch's
statistics are meaningless, but the remaining trials still run.

Example:
    ctx = EvaluationContext(snapshot, cfg)
    results = run_trials(ctx, [
        Trial("stair", "sbf", "fpr"),
        Trial("per-window", "pbf", "fpr"),
    ])
    for r in results:
        print(r.name, r.score)
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, MutableSequence, Sequence
from dataclasses import dataclass
from typing import Any

from stairbench.builders import Builder, build
from stairbench.evaluation import (
    EvaluationContext,
    FalseNegativeError,
    bf_test_fpr,
    bf_test_multi_fpr,
    bf_test_qcnt,
    cnt_test_aae,
    cnt_test_are,
    cnt_test_multi_aae,
    cnt_test_multi_are,
    cnt_test_qcnt,
    weighted_score,
)
from stairbench.sketching.base import WindowedSketch

logger = logging.getLogger(__name__)

Metric = Callable[[EvaluationContext, WindowedSketch], MutableSequence[float]]

METRICS: dict[str, Metric] = {
    "fpr": bf_test_fpr,
    "multi_fpr": bf_test_multi_fpr,
    "bf_qcnt": bf_test_qcnt,
    "are": cnt_test_are,
    "aae": cnt_test_aae,
    "multi_are": cnt_test_multi_are,
    "multi_aae": cnt_test_multi_aae,
    "cnt_qcnt": cnt_test_qcnt,
}


@dataclass(frozen=True)
class Trial:
    """One (sketch design, metric) pairing.

    Args:
        name: Label used in results and reports.
        builder: Registry name (see stairbench.builders.BUILDERS) or a
            callable taking the EvaluationConfig.
        metric: Key of METRICS.
    """

    name: str
    builder: str | Builder
    metric: str

    def __post_init__(self) -> None:
        if self.metric not in METRICS:
            raise ValueError(f"unknown metric {self.metric!r}; known: {sorted(METRICS)}")

    def make_sketch(self, ctx: EvaluationContext) -> WindowedSketch:
        if isinstance(self.builder, str):
            return build(self.builder, ctx.config)
        return self.builder(ctx.config)


@dataclass
class TrialResult:
    """Outcome of one trial.

    ``scores`` is the 1-indexed per-bucket array and ``score`` its weighted
    fold; both are None when the trial was aborted, with ``error`` set.
    """

    name: str
    metric: str
    scores: list[float] | None = None
    score: float | None = None
    memory: int | None = None
    elapsed_s: float = 0.0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "metric": self.metric,
            "score": self.score,
            "memory": self.memory,
            "elapsed_s": round(self.elapsed_s, 6),
            "error": self.error,
        }


def run_trial(ctx: EvaluationContext, trial: Trial) -> TrialResult:
    """Build a fresh sketch and run one metric over it."""
    sketch = trial.make_sketch(ctx)
    metric = METRICS[trial.metric]
    started = time.perf_counter()
    try:
        scores = list(metric(ctx, sketch))
    except FalseNegativeError as exc:
        logger.error("Trial %s/%s aborted: %s", trial.name, trial.metric, exc)
        return TrialResult(
            name=trial.name,
            metric=trial.metric,
            memory=sketch.memory(),
            elapsed_s=time.perf_counter() - started,
            error=str(exc),
        )

    result = TrialResult(
        name=trial.name,
        metric=trial.metric,
        scores=scores,
        score=weighted_score(scores, ctx.ds_win_num),
        memory=sketch.memory(),
        elapsed_s=time.perf_counter() - started,
    )
    logger.info("Trial %s/%s: score=%.6f", trial.name, trial.metric, result.score)
    return result


def run_trials(ctx: EvaluationContext, trials: Sequence[Trial]) -> list[TrialResult]:
    """Run every trial in order against the shared snapshot."""
    logger.info("Running %d trials over %r", len(trials), ctx.snapshot)
    return [run_trial(ctx, trial) for trial in trials]
